"""Max supply projection - stitch future maturities onto realized supply.

Key Concepts:
- Anchor (current_day, current_supply): supply already realized on-chain
- Nothing before current_day is simulated; its rewards are inside current_supply
- Every position's accrued reward starts at zero at the anchor
- cumulative_supply(current_day) = current_supply + total_released(current_day)
- A run is pure: identical inputs produce identical results
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .accumulator import MaturityReleaseAccumulator, PositionRelease
from .distributor import PositionLedger, distribute
from .errors import HorizonError, InputIntegrityError
from .positions import Position, validate_positions
from .schedule import RewardSchedule
from .sweep import ActiveSetSweep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationAnchor:
    """Boundary between realized history and projection."""
    current_day: int  # Last day already reflected in current_supply
    current_supply: int  # Smallest token unit

    def validate(self) -> "SimulationAnchor":
        for name in ("current_day", "current_supply"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InputIntegrityError(f"Anchor {name} must be an integer, got {value!r}")
        if self.current_supply < 0:
            raise InputIntegrityError(f"Anchor supply must be non-negative, got {self.current_supply}")
        return self


class BoundaryGuard:
    """Single gate keeping realized and projected reward windows apart."""

    def __init__(self, current_day: int):
        self.current_day = current_day

    def check_horizon(self, target_day: int, max_horizon_days: Optional[int] = None):
        """
        Reject horizons that end before the anchor or exceed the iteration cap.

        Raises:
            HorizonError: If target_day < current_day or the span exceeds the cap
        """
        if not isinstance(target_day, int) or isinstance(target_day, bool):
            raise HorizonError(f"Target day must be an integer, got {target_day!r}")
        if target_day < self.current_day:
            raise HorizonError(
                f"Target day {target_day} is before anchor day {self.current_day}"
            )
        if max_horizon_days is not None and target_day - self.current_day > max_horizon_days:
            raise HorizonError(
                f"Horizon of {target_day - self.current_day} days exceeds cap of {max_horizon_days}"
            )

    def check_day(self, day: int):
        """
        Precondition for every accrual and release.

        Raises:
            HorizonError: If the day is before the anchor
        """
        if day < self.current_day:
            raise HorizonError(
                f"Day {day} is before anchor day {self.current_day}; "
                f"its effects are already in the anchor supply"
            )


@dataclass(frozen=True)
class ProjectionDay:
    """Supply projection for one day."""
    day: int
    principal_released: int
    rewards_released: int
    total_released: int
    cumulative_supply: int
    released_from_stakes: int = 0
    released_from_creates: int = 0
    positions_matured: int = 0
    active_positions: int = 0
    total_active_shares: int = 0
    total_pool: int = 0
    distributed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'day': self.day,
            'principal_released': self.principal_released,
            'rewards_released': self.rewards_released,
            'total_released': self.total_released,
            'cumulative_supply': self.cumulative_supply,
            'released_from_stakes': self.released_from_stakes,
            'released_from_creates': self.released_from_creates,
            'positions_matured': self.positions_matured,
            'active_positions': self.active_positions,
            'total_active_shares': self.total_active_shares,
            'total_pool': self.total_pool,
            'distributed': self.distributed,
        }


@dataclass(frozen=True)
class ProjectionResult:
    """Complete projection from the anchor day to the target day."""
    current_day: int
    current_supply: int
    target_day: int
    days: Tuple[ProjectionDay, ...]
    releases: Tuple[PositionRelease, ...] = ()
    pending: Dict[str, int] = field(default_factory=dict)  # Accrued, unreleased at horizon

    def __len__(self) -> int:
        return len(self.days)

    def __iter__(self):
        return iter(self.days)

    @property
    def final_supply(self) -> int:
        return self.days[-1].cumulative_supply

    @property
    def pending_rewards(self) -> int:
        return sum(self.pending.values())

    def supply_at(self, day: int) -> int:
        """Cumulative supply on a projected day."""
        if not self.current_day <= day <= self.target_day:
            raise HorizonError(f"Day {day} outside projection [{self.current_day}, {self.target_day}]")
        return self.days[day - self.current_day].cumulative_supply

    def releases_for(self, position_id: str) -> List[PositionRelease]:
        return [r for r in self.releases if r.position_id == position_id]

    def to_records(self) -> List[Dict[str, int]]:
        return [day.to_dict() for day in self.days]


class ProjectionEngine:
    """Discrete-event max supply simulation."""

    def __init__(
        self,
        positions: Iterable[Position],
        schedule: RewardSchedule,
        max_horizon_days: Optional[int] = None,
    ):
        """
        Initialize projection engine.

        Args:
            positions: Stake and create positions (validated here)
            schedule: Reward schedule covering every day with active positions
            max_horizon_days: Optional cap on target_day - current_day

        Raises:
            InputIntegrityError: On malformed or duplicate positions
        """
        self.positions: List[Position] = validate_positions(positions)
        self.schedule = schedule
        self.max_horizon_days = max_horizon_days

    def run(self, anchor: SimulationAnchor, target_day: int) -> ProjectionResult:
        """
        Project supply for every day in [anchor.current_day, target_day].

        Args:
            anchor: Realized (current_day, current_supply)
            target_day: Last projected day (inclusive)

        Returns:
            ProjectionResult

        Raises:
            HorizonError: If the horizon is invalid
            InputIntegrityError: On a schedule gap for a day with active positions
            ArithmeticOverflowError: If any amount leaves the uint256 range
        """
        anchor.validate()
        guard = BoundaryGuard(anchor.current_day)
        guard.check_horizon(target_day, self.max_horizon_days)

        sweep = ActiveSetSweep(self.positions, anchor.current_day, target_day)
        self._check_schedule_coverage(sweep)

        logger.info(
            "Projecting max supply for %d positions, days %d-%d, anchor supply %d",
            len(self.positions), anchor.current_day, target_day, anchor.current_supply,
        )

        ledger = PositionLedger()
        accumulator = MaturityReleaseAccumulator(anchor.current_day, anchor.current_supply)
        days: List[ProjectionDay] = []
        releases: List[PositionRelease] = []

        for active_day in sweep:
            day = active_day.day
            guard.check_day(day)

            released = accumulator.release(day, active_day.maturing, ledger)
            releases.extend(released.releases)

            total_pool = 0
            distributed = 0
            if active_day.positions:
                total_pool = self.schedule.total_pool(day)
                distribution = distribute(
                    day, total_pool, active_day.positions, active_day.total_active_shares
                )
                ledger.accrue(distribution)
                distributed = distribution.distributed
            elif day in self.schedule:
                # Nobody to receive it; the pool is not carried forward
                total_pool = self.schedule.total_pool(day)

            days.append(ProjectionDay(
                day=day,
                principal_released=released.principal_released,
                rewards_released=released.rewards_released,
                total_released=released.total_released,
                cumulative_supply=released.cumulative_supply,
                released_from_stakes=released.released_from_stakes,
                released_from_creates=released.released_from_creates,
                positions_matured=len(released.releases),
                active_positions=len(active_day.positions),
                total_active_shares=active_day.total_active_shares,
                total_pool=total_pool,
                distributed=distributed,
            ))

        result = ProjectionResult(
            current_day=anchor.current_day,
            current_supply=anchor.current_supply,
            target_day=target_day,
            days=tuple(days),
            releases=tuple(releases),
            pending=ledger.pending(),
        )
        logger.info(
            "Projection complete: supply %d -> %d by day %d (%d releases, %d pending rewards)",
            anchor.current_supply, result.final_supply, target_day,
            len(releases), result.pending_rewards,
        )
        return result

    def _check_schedule_coverage(self, sweep: ActiveSetSweep):
        """Fail before producing output if any day with active positions is unscheduled."""
        missing = [
            day for day, count in sweep.daily_active_counts().items()
            if count > 0 and day not in self.schedule
        ]
        if missing:
            shown = ", ".join(str(d) for d in missing[:10])
            more = f" and {len(missing) - 10} more" if len(missing) > 10 else ""
            raise InputIntegrityError(
                f"Reward schedule missing for days with active positions: {shown}{more}"
            )


def project_max_supply(
    positions: Iterable[Position],
    schedule: RewardSchedule,
    anchor: SimulationAnchor,
    target_day: int,
    max_horizon_days: Optional[int] = None,
) -> ProjectionResult:
    """Run a single projection. See ProjectionEngine.run."""
    return ProjectionEngine(positions, schedule, max_horizon_days).run(anchor, target_day)
