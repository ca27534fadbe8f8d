"""Active-set sweep - which positions share each day's reward pool.

Rather than rescanning every position for every day, the sweep walks two
event lists sorted by (day, id):
- activations keyed by max(start_day, current_day)
- deactivations keyed by maturity_day

On day d maturing positions leave the set before the day's distribution,
then positions starting on d join it. That is the half-open rule
start_day <= d < maturity_day. Cost is O(n log n + D) for the walk itself.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple

from .checked import checked_add
from .positions import Position


@dataclass(frozen=True)
class ActiveDay:
    """Active set for one simulated day."""
    day: int
    positions: Tuple[Position, ...]  # Active on `day`, sorted by id
    total_active_shares: int
    maturing: Tuple[Position, ...]  # maturity_day == day, sorted by id

    @property
    def divisor(self) -> int:
        """Share total used for pro-rata division, floored at 1."""
        return max(self.total_active_shares, 1)


class ActiveSetSweep:
    """Event-driven walk over [current_day, target_day]."""

    def __init__(self, positions: Sequence[Position], current_day: int, target_day: int):
        """
        Initialize the sweep.

        Args:
            positions: Validated positions
            current_day: Anchor day, first simulated day
            target_day: Last simulated day (inclusive)
        """
        self.current_day = current_day
        self.target_day = target_day

        # Positions already running at the anchor join on the anchor day
        self._activations: List[Tuple[int, Position]] = sorted(
            (
                (max(p.start_day, current_day), p)
                for p in positions
                if p.maturity_day > current_day and p.start_day <= target_day
            ),
            key=lambda event: (event[0], event[1].id),
        )
        # Maturities before the anchor are already realized
        self._deactivations: List[Tuple[int, Position]] = sorted(
            (
                (p.maturity_day, p)
                for p in positions
                if current_day <= p.maturity_day <= target_day
            ),
            key=lambda event: (event[0], event[1].id),
        )

    @property
    def activations(self) -> List[Tuple[int, Position]]:
        return list(self._activations)

    @property
    def deactivations(self) -> List[Tuple[int, Position]]:
        return list(self._deactivations)

    def __iter__(self) -> Iterator[ActiveDay]:
        active: Dict[str, Position] = {}
        snapshot: Tuple[Position, ...] = ()
        total_shares = 0
        next_activation = 0
        next_deactivation = 0

        for day in range(self.current_day, self.target_day + 1):
            changed = False

            maturing = []
            while (
                next_deactivation < len(self._deactivations)
                and self._deactivations[next_deactivation][0] == day
            ):
                position = self._deactivations[next_deactivation][1]
                next_deactivation += 1
                maturing.append(position)
                if active.pop(position.id, None) is not None:
                    total_shares -= position.shares
                    changed = True

            while (
                next_activation < len(self._activations)
                and self._activations[next_activation][0] == day
            ):
                position = self._activations[next_activation][1]
                next_activation += 1
                active[position.id] = position
                total_shares = checked_add(total_shares, position.shares, f"active shares day {day}")
                changed = True

            if changed:
                snapshot = tuple(sorted(active.values(), key=lambda p: p.id))

            yield ActiveDay(
                day=day,
                positions=snapshot,
                total_active_shares=total_shares,
                maturing=tuple(maturing),
            )

    def daily_share_totals(self) -> Dict[int, int]:
        """
        Precompute total active shares per day without building active sets.

        Returns:
            Mapping day -> total_active_shares for every day in range
        """
        return self._prefix_totals(lambda p: p.shares)

    def daily_active_counts(self) -> Dict[int, int]:
        """Number of active positions per day."""
        return self._prefix_totals(lambda p: 1)

    def _prefix_totals(self, weight) -> Dict[int, int]:
        deltas: Dict[int, int] = {}
        for day, position in self._activations:
            deltas[day] = deltas.get(day, 0) + weight(position)
            if position.maturity_day <= self.target_day:
                deltas[position.maturity_day] = deltas.get(position.maturity_day, 0) - weight(position)

        totals = {}
        running = 0
        for day in range(self.current_day, self.target_day + 1):
            running = checked_add(running, deltas.get(day, 0), f"active shares day {day}")
            totals[day] = running
        return totals
