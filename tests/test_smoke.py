"""Smoke tests for core max supply modules.

These tests verify basic functionality without deep validation.
Run these first to catch obvious breakage.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from maxsupply.config.loader import load_config, config_from_dict
from maxsupply.config.schema import Config
from maxsupply.engine import (
    Position,
    PositionKind,
    RewardDaySchedule,
    RewardSchedule,
    SimulationAnchor,
    project_max_supply,
)
from maxsupply.simulation.runner import ProjectionRunner, ProjectionRunResult


class TestConfigLoading:
    """Smoke tests for configuration loading."""

    def test_load_default_config(self):
        """Config loads without errors."""
        config = load_config()
        assert config is not None
        assert isinstance(config, Config)

    def test_config_has_required_sections(self):
        """Config contains all expected sections."""
        config = load_config()
        assert hasattr(config, 'reward_pool')
        assert hasattr(config, 'calendar')
        assert hasattr(config, 'projection')
        assert hasattr(config, 'sanity')

    def test_config_hash_is_deterministic(self):
        """Same config produces same hash."""
        config1 = load_config()
        config2 = load_config()
        assert config1.compute_hash() == config2.compute_hash()

    def test_default_contract_constants(self):
        """Defaults carry the contract's day-1 pool and 0.08% decay."""
        config = load_config()
        assert config.reward_pool.initial_pool == 100_000 * 10 ** 18
        assert config.reward_pool.decay_numerator == 8
        assert config.reward_pool.decay_denominator == 10_000
        assert config.projection.horizon_days == 88

    def test_decay_numerator_above_denominator_rejected(self):
        """A decay rate above 100% is a config error."""
        data = load_config().to_dict()
        data['reward_pool']['decay_numerator'] = 20_000
        with pytest.raises(ValueError):
            config_from_dict(data)

    def test_horizon_above_cap_rejected(self):
        """Default horizon must fit under the iteration cap."""
        data = load_config().to_dict()
        data['projection'] = {'horizon_days': 500, 'max_horizon_days': 100}
        with pytest.raises(ValueError):
            config_from_dict(data)

    def test_partial_yaml_layers_over_defaults(self, tmp_path):
        """A user file with one section keeps every other default."""
        path = tmp_path / "custom.yaml"
        path.write_text("projection:\n  horizon_days: 30\nreward_pool:\n  penalties:\n    12: 500\n")
        config = load_config(str(path))
        assert config.projection.horizon_days == 30
        assert config.projection.max_horizon_days == 3650
        assert config.reward_pool.penalties == {12: 500}
        assert config.reward_pool.initial_pool == 100_000 * 10 ** 18

    def test_overrides_applied_last(self):
        """Overrides change the hash."""
        config = load_config(overrides={'sanity': {'spike_fraction': 0.5}})
        assert config.sanity.spike_fraction == 0.5
        assert config.sanity.check_conservation is True
        assert config.compute_hash() != load_config().compute_hash()


class TestWorkedExample:
    """The single-stake example: two accrual days, release on day 3."""

    def test_single_stake_release(self):
        """Principal plus 1000 + 900 of rewards lands on the maturity day."""
        position = Position(
            id="stake-1",
            kind=PositionKind.STAKE,
            amount=1_000_000,
            shares=100,
            start_day=1,
            maturity_day=3,
        )
        schedule = RewardSchedule([
            RewardDaySchedule(day=1, base_pool=1000),
            RewardDaySchedule(day=2, base_pool=900),
        ])

        result = project_max_supply(
            [position], schedule, SimulationAnchor(current_day=1, current_supply=0), target_day=3
        )

        assert [d.day for d in result.days] == [1, 2, 3]
        assert [d.cumulative_supply for d in result.days] == [0, 0, 1_001_900]
        day3 = result.days[2]
        assert day3.principal_released == 1_000_000
        assert day3.rewards_released == 1900
        assert day3.total_released == 1_001_900
        assert day3.active_positions == 0


class TestProjectionRunner:
    """Smoke tests for a full config-driven run."""

    def test_run_with_default_horizon(self):
        """Runner projects horizon_days past the anchor."""
        config = load_config()
        unit = config.calendar.unit
        positions = [
            Position("a", PositionKind.STAKE, 1_000 * unit, 5_000 * unit, 1, 30),
            Position("b", PositionKind.CREATE, 250 * unit, 2_000 * unit, 10, 60),
        ]
        anchor = SimulationAnchor(current_day=20, current_supply=1_000_000 * unit)

        run = ProjectionRunner(config).run(positions, anchor)

        assert isinstance(run, ProjectionRunResult)
        assert run.target_day == 20 + config.projection.horizon_days
        assert len(run.projection.days) == config.projection.horizon_days + 1
        assert run.errors == []
        assert run.final_metrics['positions_released'] == 2
        assert run.projection.final_supply > anchor.current_supply
