"""Unit tests for projection engine invariants.

These tests verify:
- Anchor continuity (no pre-anchor rewards leak into the anchor day)
- Monotonic cumulative supply
- Pro-rata conservation with bounded floor residual
- Single release per position
- No pre-anchor double counting
- Determinism
- Fail-fast input, horizon and overflow errors
"""

import json
import random

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from maxsupply.engine import (
    UINT256_MAX,
    ActiveSetSweep,
    ArithmeticOverflowError,
    HorizonError,
    InputIntegrityError,
    Position,
    PositionKind,
    ProjectionEngine,
    RewardDaySchedule,
    RewardSchedule,
    SimulationAnchor,
    accrue_position,
    build_reward_schedule,
    geometric_base_pool,
    project_max_supply,
)


def stake(pid, amount, shares, start, maturity):
    return Position(pid, PositionKind.STAKE, amount, shares, start, maturity)


def create(pid, amount, shares, start, maturity):
    return Position(pid, PositionKind.CREATE, amount, shares, start, maturity)


def random_positions(seed=7, count=60, last_start=40, max_length=30):
    rng = random.Random(seed)
    positions = []
    for i in range(count):
        start = rng.randint(1, last_start)
        maker = stake if rng.random() < 0.6 else create
        positions.append(maker(
            f"p{i:03d}",
            rng.randint(0, 10 ** 21),
            rng.randint(0, 10 ** 24),
            start,
            start + rng.randint(1, max_length),
        ))
    return positions


SCHEDULE = build_reward_schedule(initial_pool=100_000 * 10 ** 18, first_day=1, last_day=120)


class TestAnchorContinuity:
    """The first projected day only adds that day's maturities."""

    def test_anchor_day_adds_only_its_maturities(self):
        """A position maturing on the anchor day releases principal only."""
        positions = [
            stake("matures-on-anchor", 500, 100, 2, 5),
            stake("later", 700, 100, 1, 9),
        ]
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(5, 10_000), target_day=9)

        first = result.days[0]
        assert first.day == 5
        assert first.principal_released == 500
        assert first.rewards_released == 0
        assert first.cumulative_supply - 10_000 == 500

    def test_anchor_day_without_maturities(self):
        """With no maturity on the anchor day the supply starts at the anchor."""
        result = project_max_supply(random_positions(), SCHEDULE, SimulationAnchor(45, 123), target_day=80)
        first = result.days[0]
        expected = sum(p.amount for p in random_positions() if p.maturity_day == 45)
        assert first.cumulative_supply - 123 == first.total_released
        assert first.principal_released == expected
        assert first.rewards_released == 0

    def test_pre_anchor_maturities_ignored(self):
        """Positions matured before the anchor are already realized."""
        positions = [stake("old", 10 ** 6, 100, 1, 3), stake("live", 5, 100, 1, 8)]
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(4, 0), target_day=10)
        assert [r.position_id for r in result.releases] == ["live"]
        assert result.final_supply == 5 + result.releases_for("live")[0].reward


class TestMonotonicity:
    """Cumulative supply never decreases."""

    @pytest.mark.parametrize('seed', [1, 2, 3])
    def test_supply_non_decreasing(self, seed):
        """Random registries produce non-decreasing supply."""
        positions = random_positions(seed=seed)
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(10, 10 ** 24), target_day=100)
        supplies = [d.cumulative_supply for d in result.days]
        assert all(b >= a for a, b in zip(supplies, supplies[1:]))
        assert supplies[0] >= 10 ** 24


class TestProRataConservation:
    """Daily distribution never exceeds the pool."""

    def test_distributed_within_pool(self):
        """Residual is below the number of active positions."""
        result = project_max_supply(random_positions(), SCHEDULE, SimulationAnchor(1, 0), target_day=100)
        for day in result.days:
            assert day.distributed <= day.total_pool
            if day.active_positions and day.total_active_shares:
                assert day.total_pool - day.distributed < day.active_positions

    def test_zero_active_shares_distributes_nothing(self):
        """Only zero-share positions active: floor-at-1 divisor, zero rewards."""
        positions = [stake("zero", 100, 0, 1, 4)]
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(1, 0), target_day=4)
        assert all(d.distributed == 0 for d in result.days)
        assert result.days[-1].total_released == 100
        assert result.days[-1].rewards_released == 0

    def test_rewards_total_matches_distributions(self):
        """Everything distributed ends up released or pending."""
        positions = random_positions(seed=11)
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(1, 0), target_day=110)
        distributed = sum(d.distributed for d in result.days)
        released = sum(d.rewards_released for d in result.days)
        assert released + result.pending_rewards == distributed


class TestSingleRelease:
    """Every position releases exactly once, on its maturity day."""

    def test_each_position_released_once(self):
        """Releases are unique and land on maturity_day."""
        positions = random_positions(seed=5)
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(1, 0), target_day=100)

        ids = [r.position_id for r in result.releases]
        assert len(ids) == len(set(ids))

        by_id = {p.id: p for p in positions}
        for release in result.releases:
            position = by_id[release.position_id]
            assert release.day == position.maturity_day
            assert release.amount == position.amount

        expected = {p.id for p in positions if p.maturity_day <= 100}
        assert set(ids) == expected

    def test_daily_totals_match_releases(self):
        """Per-day totals are the sum of that day's position releases."""
        result = project_max_supply(random_positions(seed=9), SCHEDULE, SimulationAnchor(1, 0), target_day=100)
        for day in result.days:
            total = sum(r.total for r in result.releases if r.day == day.day)
            assert day.total_released == total

    def test_unreleased_positions_pending(self):
        """Positions maturing after the horizon keep their accrual in pending."""
        positions = [stake("long", 1_000, 100, 1, 50)]
        result = project_max_supply(positions, SCHEDULE, SimulationAnchor(1, 0), target_day=10)
        assert result.releases == ()
        assert result.pending["long"] == sum(d.distributed for d in result.days)


class TestNoPreAnchorDoubleCount:
    """Positions straddling the anchor accrue only from the anchor on."""

    def test_accrual_restricted_to_anchor_window(self):
        """Accrued reward equals per-day allocations over [current_day, maturity_day)."""
        straddler = stake("P", 1_000, 100, 1, 10)
        other = stake("Q", 1_000, 300, 3, 8)
        schedule = build_reward_schedule(initial_pool=10_000, first_day=1, last_day=12)
        result = project_max_supply([straddler, other], schedule, SimulationAnchor(5, 0), target_day=12)

        expected = 0
        for day in range(5, 10):
            pool = geometric_base_pool(10_000, day)
            total_shares = 400 if day < 8 else 100
            expected += pool * 100 // total_shares

        (release,) = result.releases_for("P")
        assert release.reward == expected

    def test_matches_per_position_decomposition(self):
        """Engine accrual equals the position-partitioned computation."""
        positions = random_positions(seed=3)
        anchor = SimulationAnchor(20, 0)
        result = project_max_supply(positions, SCHEDULE, anchor, target_day=100)

        share_totals = ActiveSetSweep(positions, 20, 100).daily_share_totals()
        pools = {entry.day: entry.total_pool for entry in SCHEDULE}
        for release in result.releases:
            position = next(p for p in positions if p.id == release.position_id)
            assert release.reward == accrue_position(position, pools, share_totals, 20)


class TestDeterminism:
    """Identical inputs give identical output."""

    def test_repeat_runs_identical(self):
        """Two runs serialize to the same bytes."""
        positions = random_positions(seed=21)
        anchor = SimulationAnchor(10, 5 * 10 ** 24)
        first = project_max_supply(positions, SCHEDULE, anchor, target_day=90)
        second = project_max_supply(positions, SCHEDULE, anchor, target_day=90)
        assert json.dumps(first.to_records()) == json.dumps(second.to_records())
        assert first.releases == second.releases

    def test_input_order_irrelevant(self):
        """Shuffling the registry does not change the projection."""
        positions = random_positions(seed=21)
        shuffled = list(positions)
        random.Random(0).shuffle(shuffled)
        anchor = SimulationAnchor(10, 0)
        a = project_max_supply(positions, SCHEDULE, anchor, target_day=90)
        b = project_max_supply(shuffled, SCHEDULE, anchor, target_day=90)
        assert a.to_records() == b.to_records()
        assert a.pending == b.pending


class TestFailFast:
    """Integrity, horizon and overflow errors abort the run."""

    def test_maturity_not_after_start(self):
        """maturity_day <= start_day is rejected."""
        with pytest.raises(InputIntegrityError):
            ProjectionEngine([stake("bad", 1, 1, 5, 5)], SCHEDULE)

    def test_negative_amount(self):
        """Negative principal is rejected."""
        with pytest.raises(InputIntegrityError):
            ProjectionEngine([stake("neg", -1, 1, 1, 5)], SCHEDULE)

    def test_float_amount(self):
        """Float token amounts are rejected."""
        with pytest.raises(InputIntegrityError):
            ProjectionEngine([stake("flt", 1.5, 1, 1, 5)], SCHEDULE)

    def test_non_string_id(self):
        """Ids must be strings so ordering by id is well defined."""
        with pytest.raises(InputIntegrityError):
            ProjectionEngine([stake(1, 1, 1, 1, 2), stake("a", 1, 1, 1, 2)], SCHEDULE)

    def test_duplicate_ids(self):
        """Two positions with the same id are rejected."""
        with pytest.raises(InputIntegrityError):
            ProjectionEngine([stake("dup", 1, 1, 1, 5), create("dup", 1, 1, 2, 6)], SCHEDULE)

    def test_schedule_gap_with_active_positions(self):
        """A missing day with active positions aborts before any output."""
        schedule = RewardSchedule([
            RewardDaySchedule(day=1, base_pool=100),
            RewardDaySchedule(day=3, base_pool=100),
        ])
        with pytest.raises(InputIntegrityError, match="2"):
            project_max_supply([stake("s", 1, 1, 1, 4)], schedule, SimulationAnchor(1, 0), target_day=4)

    def test_schedule_gap_without_active_positions_allowed(self):
        """Days nobody is active on need no schedule entry."""
        schedule = RewardSchedule([RewardDaySchedule(day=1, base_pool=100)])
        result = project_max_supply([stake("s", 1, 1, 1, 2)], schedule, SimulationAnchor(1, 0), target_day=6)
        assert result.final_supply == 101

    def test_target_before_anchor(self):
        """target_day < current_day is a horizon error."""
        with pytest.raises(HorizonError):
            project_max_supply([], SCHEDULE, SimulationAnchor(10, 0), target_day=9)

    def test_horizon_cap(self):
        """Horizons above the cap are rejected."""
        with pytest.raises(HorizonError):
            project_max_supply([], SCHEDULE, SimulationAnchor(1, 0), target_day=200, max_horizon_days=100)

    def test_negative_anchor_supply(self):
        """Anchor supply must be non-negative."""
        with pytest.raises(InputIntegrityError):
            project_max_supply([], SCHEDULE, SimulationAnchor(1, -5), target_day=2)

    def test_supply_overflow_detected(self):
        """Cumulative supply beyond uint256 raises rather than wrapping."""
        schedule = build_reward_schedule(initial_pool=0, first_day=1, last_day=3)
        with pytest.raises(ArithmeticOverflowError):
            project_max_supply(
                [stake("s", 10, 1, 1, 2)], schedule, SimulationAnchor(1, UINT256_MAX - 5), target_day=3
            )

    def test_reward_product_overflow_detected(self):
        """pool * shares beyond uint256 raises."""
        schedule = RewardSchedule([RewardDaySchedule(day=1, base_pool=2 ** 60)])
        with pytest.raises(ArithmeticOverflowError):
            project_max_supply(
                [stake("s", 1, 2 ** 200, 1, 2)], schedule, SimulationAnchor(1, 0), target_day=1
            )

    def test_empty_registry(self):
        """No positions: supply stays at the anchor."""
        result = project_max_supply([], SCHEDULE, SimulationAnchor(3, 42), target_day=6)
        assert [d.cumulative_supply for d in result.days] == [42, 42, 42, 42]
