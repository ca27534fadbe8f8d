"""Daily accrual distributor - split each day's pool pro-rata over active shares.

Formula: reward_p(d) = floor(total_pool(d) * shares_p / max(total_active_shares(d), 1))

Floor division guarantees sum(reward_p) <= total_pool(d). The residual is
dropped, not redistributed: a rounding-down bias of less than one unit per
active position per day.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .checked import checked_add, checked_sum, mul_div
from .errors import InputIntegrityError
from .positions import Position


@dataclass(frozen=True)
class DailyDistribution:
    """One day's pro-rata allocation."""
    day: int
    total_pool: int
    total_active_shares: int
    rewards: Tuple[Tuple[str, int], ...]  # (position id, reward), id order

    @property
    def distributed(self) -> int:
        return checked_sum((reward for _, reward in self.rewards), f"distributed day {self.day}")

    @property
    def residual(self) -> int:
        """Undistributed remainder (floor residual, or the whole pool if nobody is active)."""
        return self.total_pool - self.distributed


def distribute(
    day: int,
    total_pool: int,
    positions: Iterable[Position],
    total_active_shares: int,
) -> DailyDistribution:
    """
    Allocate one day's pool across the active set.

    Args:
        day: Protocol day being distributed
        total_pool: base + penalty pool for the day
        positions: Positions active on the day
        total_active_shares: Sum of their shares

    Returns:
        DailyDistribution with one reward per position, in id order
    """
    divisor = max(total_active_shares, 1)
    rewards = tuple(
        (position.id, mul_div(total_pool, position.shares, divisor, f"reward day {day}"))
        for position in sorted(positions, key=lambda p: p.id)
    )
    return DailyDistribution(
        day=day,
        total_pool=total_pool,
        total_active_shares=total_active_shares,
        rewards=rewards,
    )


class PositionLedger:
    """Run-owned accrued-reward counters.

    Counters start at zero for every position regardless of start day; only
    days simulated by the owning run are ever added. A counter is consumed
    exactly once, at maturity.
    """

    def __init__(self):
        self._accrued: Dict[str, int] = {}
        self._taken = set()

    def accrue(self, distribution: DailyDistribution):
        for position_id, reward in distribution.rewards:
            if position_id in self._taken:
                raise InputIntegrityError(
                    f"Position {position_id!r} accrued on day {distribution.day} after release"
                )
            self._accrued[position_id] = checked_add(
                self._accrued.get(position_id, 0), reward, f"accrued reward {position_id}"
            )

    def accrued(self, position_id: str) -> int:
        return self._accrued.get(position_id, 0)

    def take(self, position_id: str) -> int:
        """
        Consume a position's accrued reward.

        Raises:
            InputIntegrityError: If the position was already released
        """
        if position_id in self._taken:
            raise InputIntegrityError(f"Position {position_id!r} released twice")
        self._taken.add(position_id)
        return self._accrued.pop(position_id, 0)

    def pending(self) -> Dict[str, int]:
        """Accrued rewards of positions not yet released, sorted by id."""
        return dict(sorted(self._accrued.items()))


# ============================================================================
# PER-POSITION DECOMPOSITION
# ============================================================================

@dataclass(frozen=True)
class PositionDay:
    """One position's view of one simulated day."""
    day: int
    active: bool
    reward: int
    cumulative_reward: int


@dataclass(frozen=True)
class PositionProjection:
    """A position's accrual path from the anchor to maturity (or horizon)."""
    position: Position
    days: Tuple[PositionDay, ...]

    @property
    def total_reward(self) -> int:
        return self.days[-1].cumulative_reward if self.days else 0


def project_position(
    position: Position,
    pools: Mapping[int, int],
    share_totals: Mapping[int, int],
    current_day: int,
    last_day: Optional[int] = None,
) -> PositionProjection:
    """
    Compute one position's daily accrual independently of all others.

    A position's reward on a day depends only on that day's pool and the
    precomputed share total, so positions can be projected separately.

    Args:
        position: Position to project
        pools: day -> total pool
        share_totals: day -> total active shares (see ActiveSetSweep.daily_share_totals)
        current_day: Anchor day; nothing before it accrues
        last_day: Last day to include (defaults to the last share-total day)

    Returns:
        PositionProjection covering [current_day, min(maturity_day, last_day)]

    Raises:
        InputIntegrityError: If a pool is missing for a day the position is active
    """
    if last_day is None:
        last_day = max(share_totals) if share_totals else current_day - 1
    end = min(position.maturity_day, last_day)

    days = []
    cumulative = 0
    for day in range(current_day, end + 1):
        active = position.is_active(day)
        reward = 0
        if active:
            if day not in pools:
                raise InputIntegrityError(f"Reward schedule has no entry for day {day}")
            divisor = max(share_totals.get(day, 0), 1)
            reward = mul_div(pools[day], position.shares, divisor, f"reward day {day}")
            cumulative = checked_add(cumulative, reward, f"accrued reward {position.id}")
        days.append(PositionDay(day=day, active=active, reward=reward, cumulative_reward=cumulative))

    return PositionProjection(position=position, days=tuple(days))


def accrue_position(
    position: Position,
    pools: Mapping[int, int],
    share_totals: Mapping[int, int],
    current_day: int,
    last_day: Optional[int] = None,
) -> int:
    """Total reward a position accrues on [current_day, maturity_day) within range."""
    return project_position(position, pools, share_totals, current_day, last_day).total_reward
