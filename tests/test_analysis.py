"""Tests for dilution analysis and result export."""

import json

import pandas as pd
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from maxsupply.analysis import simulate_dilution
from maxsupply.config.loader import load_config
from maxsupply.engine import (
    Position,
    PositionKind,
    SimulationAnchor,
    build_reward_schedule,
    project_max_supply,
)
from maxsupply.reporting import export_csv, export_json, projection_to_dataframe
from maxsupply.simulation.runner import ProjectionRunner


FLAT = build_reward_schedule(initial_pool=1000, first_day=1, last_day=10, decay_numerator=0)


class TestDilution:
    """Existing positions lose reward share to new ones."""

    def test_equal_newcomer_halves_rewards(self):
        """A new position with equal shares takes half of every day's pool."""
        existing = [Position("P", PositionKind.STAKE, 1_000, 100, 1, 5)]
        new = [Position("N", PositionKind.CREATE, 1_000, 100, 1, 10)]

        report = simulate_dilution(existing, new, FLAT, SimulationAnchor(1, 0), target_day=5)

        day5 = report.impacts[-1]
        assert day5.day == 5
        assert day5.rewards_before == 4_000
        assert day5.rewards_after == 2_000
        assert day5.dilution_amount == 2_000
        assert day5.dilution_percentage == pytest.approx(50.0)
        assert report.total_dilution == 2_000

    def test_no_dilution_before_release(self):
        """Released rewards only differ once the existing position matures."""
        existing = [Position("P", PositionKind.STAKE, 1_000, 100, 1, 5)]
        new = [Position("N", PositionKind.CREATE, 1_000, 100, 1, 10)]

        report = simulate_dilution(existing, new, FLAT, SimulationAnchor(1, 0), target_day=5)

        assert [i.dilution_amount for i in report.impacts[:-1]] == [0, 0, 0, 0]
        assert [i.dilution_percentage for i in report.impacts[:-1]] == [0.0] * 4

    def test_pending_dilution_counted(self):
        """Unreleased accrual lost to newcomers is part of the total."""
        existing = [Position("P", PositionKind.STAKE, 1_000, 100, 1, 9)]
        new = [Position("N", PositionKind.CREATE, 1_000, 300, 2, 10)]

        report = simulate_dilution(existing, new, FLAT, SimulationAnchor(1, 0), target_day=4)

        # Alone: 1000/day for days 1-4. With N from day 2: 250/day.
        assert report.pending_before == 4_000
        assert report.pending_after == 1_000 + 3 * 250
        assert report.total_dilution == 2_250

    def test_supply_unchanged_by_unmatured_newcomer(self):
        """Supply only moves when something matures."""
        existing = [Position("P", PositionKind.STAKE, 1_000, 100, 1, 3)]
        new = [Position("N", PositionKind.CREATE, 1_000, 100, 2, 9)]
        report = simulate_dilution(existing, new, FLAT, SimulationAnchor(1, 0), target_day=4)
        assert report.before.final_supply == 1_000 + 2_000
        assert report.after.final_supply == 1_000 + 1_000 + 500


class TestExport:
    """DataFrame, CSV and JSON output."""

    def _run(self):
        config = load_config()
        unit = config.calendar.unit
        positions = [
            Position("a", PositionKind.STAKE, 500 * unit, 10 ** 30, 1, 5),
            Position("b", PositionKind.CREATE, 200 * unit, 10 ** 29, 2, 50),
        ]
        return ProjectionRunner(config).run(positions, SimulationAnchor(1, 10 ** 6 * unit), target_day=10)

    def test_dataframe_keeps_exact_amounts(self):
        """Amounts beyond int64 survive as Python ints."""
        result = project_max_supply(
            [Position("big", PositionKind.STAKE, 2 ** 100, 1, 1, 2)],
            FLAT, SimulationAnchor(1, 2 ** 90), target_day=2,
        )
        df = projection_to_dataframe(result)
        assert df['cumulative_supply'].iloc[-1] == 2 ** 90 + 2 ** 100 + 1_000
        assert 'date' not in df

    def test_dataframe_date_column(self):
        """Dates follow the protocol calendar."""
        run = self._run()
        df = projection_to_dataframe(run.projection, run.config.calendar.start_date)
        assert df['date'].iloc[0] == '2025-07-10'
        assert len(df) == 10

    def test_export_csv(self, tmp_path):
        """CSV has one row per projected day."""
        run = self._run()
        path = tmp_path / "projection.csv"
        export_csv(run, str(path))

        df = pd.read_csv(path)
        assert list(df['day']) == list(range(1, 11))
        assert 'cumulative_supply' in df.columns
        assert df['date'].iloc[-1] == '2025-07-19'

    def test_export_json(self, tmp_path):
        """JSON carries config hash and string amounts."""
        run = self._run()
        path = tmp_path / "projection.json"
        export_json(run, str(path))

        with open(path) as f:
            data = json.load(f)

        assert data['config_hash'] == run.config.compute_hash()
        assert data['target_day'] == 10
        assert len(data['days']) == 10
        assert data['days'][-1]['cumulative_supply'] == str(run.projection.final_supply)
        assert [r['position_id'] for r in data['releases']] == ['a']
        assert set(data['pending']) == {'b'}
        assert data['final_metrics']['final_supply'] == str(run.projection.final_supply)
