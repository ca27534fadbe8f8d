"""Maturity release accumulator - turn maturities into supply.

Position state machine:
    Pending (start_day <= today < maturity_day) -> Released (today == maturity_day)

Released is terminal. On its maturity day a position releases its amount
(stake principal or newly created tokens) plus everything it accrued since
the anchor, exactly once. Cumulative supply is seeded with the anchor supply:
    cumulative(d) = cumulative(d - 1) + total_released(d)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .checked import checked_add, ensure_uint
from .distributor import PositionLedger
from .errors import InputIntegrityError
from .positions import Position, PositionKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionRelease:
    """A single position's payout on its maturity day."""
    position_id: str
    kind: PositionKind
    day: int
    amount: int  # Principal or minted amount
    reward: int  # Rewards accrued from the anchor to maturity

    @property
    def total(self) -> int:
        return checked_add(self.amount, self.reward, f"release {self.position_id}")


@dataclass(frozen=True)
class DayRelease:
    """Everything released on one day."""
    day: int
    principal_released: int
    rewards_released: int
    total_released: int
    released_from_stakes: int
    released_from_creates: int
    cumulative_supply: int
    releases: Tuple[PositionRelease, ...]


class MaturityReleaseAccumulator:
    """Accumulate daily maturity releases onto the anchor supply."""

    def __init__(self, current_day: int, current_supply: int):
        """
        Initialize accumulator.

        Args:
            current_day: Anchor day; maturities before it are already realized
            current_supply: Realized supply at the anchor, smallest unit
        """
        self.current_day = current_day
        self.cumulative_supply = ensure_uint(current_supply, "current supply")
        self._released = set()
        self._next_day = current_day

    def release(self, day: int, maturing: Iterable[Position], ledger: PositionLedger) -> DayRelease:
        """
        Release every position maturing on `day` and advance cumulative supply.

        Args:
            day: Day being processed; days must be processed in order
            maturing: Positions with maturity_day == day
            ledger: Run ledger holding accrued rewards

        Returns:
            DayRelease totals for the day

        Raises:
            InputIntegrityError: On out-of-order days, a mismatched maturity
                day, or a second release of the same position
        """
        if day != self._next_day:
            raise InputIntegrityError(f"Release days out of order: expected {self._next_day}, got {day}")
        self._next_day = day + 1

        releases: List[PositionRelease] = []
        principal = rewards = from_stakes = from_creates = 0
        for position in sorted(maturing, key=lambda p: p.id):
            if position.maturity_day != day or day < self.current_day:
                raise InputIntegrityError(
                    f"Position {position.id!r} matures on day {position.maturity_day}, "
                    f"cannot be released on day {day}"
                )
            if position.id in self._released:
                raise InputIntegrityError(f"Position {position.id!r} released twice")
            self._released.add(position.id)

            release = PositionRelease(
                position_id=position.id,
                kind=position.kind,
                day=day,
                amount=position.amount,
                reward=ledger.take(position.id),
            )
            releases.append(release)

            principal = checked_add(principal, release.amount, f"principal released day {day}")
            rewards = checked_add(rewards, release.reward, f"rewards released day {day}")
            if position.kind is PositionKind.STAKE:
                from_stakes = checked_add(from_stakes, release.total, f"stake releases day {day}")
            else:
                from_creates = checked_add(from_creates, release.total, f"create releases day {day}")

        total = checked_add(principal, rewards, f"total released day {day}")
        self.cumulative_supply = checked_add(self.cumulative_supply, total, f"cumulative supply day {day}")

        if releases:
            logger.debug(
                "Day %d: %d maturities released %d (principal %d, rewards %d)",
                day, len(releases), total, principal, rewards,
            )

        return DayRelease(
            day=day,
            principal_released=principal,
            rewards_released=rewards,
            total_released=total,
            released_from_stakes=from_stakes,
            released_from_creates=from_creates,
            cumulative_supply=self.cumulative_supply,
            releases=tuple(releases),
        )
