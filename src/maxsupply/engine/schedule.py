"""Reward pool schedule - the per-day amount shared among active positions.

Key Concepts:
- base_pool(1) = initial pool; base_pool(d) = floor(base_pool(d-1) * (den - num) / den)
- The base pool decays geometrically forever (never cut to zero after a fixed day)
- penalty_pool(d) is observed externally and defaults to zero
- total_pool(d) = base_pool(d) + penalty_pool(d)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from .checked import checked_add, checked_mul, ensure_uint
from .errors import InputIntegrityError

# Contract constants: 100,000 tokens on day 1 at 18 decimals, 0.08% daily decay
DEFAULT_INITIAL_POOL = 100_000 * 10 ** 18
DEFAULT_DECAY_NUMERATOR = 8
DEFAULT_DECAY_DENOMINATOR = 10_000


@dataclass(frozen=True)
class RewardDaySchedule:
    """Reward pool for a single protocol day."""
    day: int
    base_pool: int
    penalty_pool: int = 0

    @property
    def total_pool(self) -> int:
        return checked_add(self.base_pool, self.penalty_pool, f"total pool day {self.day}")


class RewardSchedule:
    """Immutable day-indexed reward schedule.

    Lookups for days the schedule does not cover raise instead of returning
    zero, so a gap can never silently shrink a projection.
    """

    def __init__(self, entries: Iterable[RewardDaySchedule]):
        days: Dict[int, RewardDaySchedule] = {}
        for entry in entries:
            if entry.day in days:
                raise InputIntegrityError(f"Duplicate schedule entry for day {entry.day}")
            for value in (entry.base_pool, entry.penalty_pool):
                if not isinstance(value, int) or isinstance(value, bool):
                    raise InputIntegrityError(
                        f"Reward pool on day {entry.day} must be an integer, got {value!r}"
                    )
            if entry.base_pool < 0 or entry.penalty_pool < 0:
                raise InputIntegrityError(
                    f"Negative reward pool on day {entry.day}: "
                    f"base={entry.base_pool}, penalty={entry.penalty_pool}"
                )
            ensure_uint(entry.total_pool, f"total pool day {entry.day}")
            days[entry.day] = entry
        self._days = dict(sorted(days.items()))

    def __contains__(self, day: int) -> bool:
        return day in self._days

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self) -> Iterator[RewardDaySchedule]:
        return iter(self._days.values())

    @property
    def first_day(self) -> Optional[int]:
        return next(iter(self._days), None)

    @property
    def last_day(self) -> Optional[int]:
        return next(reversed(self._days), None) if self._days else None

    def get(self, day: int) -> RewardDaySchedule:
        """
        Get the schedule entry for a day.

        Raises:
            InputIntegrityError: If the schedule has no entry for the day
        """
        try:
            return self._days[day]
        except KeyError:
            raise InputIntegrityError(f"Reward schedule has no entry for day {day}") from None

    def total_pool(self, day: int) -> int:
        return self.get(day).total_pool

    def with_penalties(self, penalties: Mapping[int, int]) -> "RewardSchedule":
        """Return a copy with observed penalty pools overlaid on existing days."""
        for day in penalties:
            if day not in self._days:
                raise InputIntegrityError(f"Penalty given for unscheduled day {day}")
        return RewardSchedule(
            RewardDaySchedule(
                day=entry.day,
                base_pool=entry.base_pool,
                penalty_pool=_parse_amount(penalties.get(entry.day, entry.penalty_pool)),
            )
            for entry in self._days.values()
        )

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "RewardSchedule":
        """
        Build a schedule from cached records like
        `{"day": 5, "rewardPool": "...", "penaltiesInPool": "..."}`.

        Amounts must be integers or integer strings in the smallest unit.
        """
        entries = []
        for record in records:
            try:
                entries.append(RewardDaySchedule(
                    day=int(record["day"]),
                    base_pool=_parse_amount(record.get("rewardPool", record.get("base_pool"))),
                    penalty_pool=_parse_amount(
                        record.get("penaltiesInPool", record.get("penalty_pool", 0)) or 0
                    ),
                ))
            except (KeyError, TypeError, ValueError) as exc:
                raise InputIntegrityError(f"Invalid schedule record {dict(record)!r}: {exc}") from exc
        return cls(entries)


def _parse_amount(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise InputIntegrityError(f"not an amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InputIntegrityError(f"amount must be an integer in the smallest unit, got {value!r}")


def geometric_base_pool(
    initial_pool: int,
    day: int,
    decay_numerator: int = DEFAULT_DECAY_NUMERATOR,
    decay_denominator: int = DEFAULT_DECAY_DENOMINATOR,
    first_day: int = 1,
) -> int:
    """
    Compute the base pool for one day by iterated floor decay.

    Args:
        initial_pool: Base pool on first_day
        day: Protocol day
        decay_numerator: Daily decay rate numerator (8 for 0.08%)
        decay_denominator: Daily decay rate denominator
        first_day: Day that carries initial_pool

    Returns:
        Base pool for the day (zero before first_day)
    """
    if day < first_day:
        return 0
    keep = decay_denominator - decay_numerator
    pool = initial_pool
    for _ in range(day - first_day):
        pool = checked_mul(pool, keep, "base pool decay") // decay_denominator
    return pool


def build_reward_schedule(
    initial_pool: int = DEFAULT_INITIAL_POOL,
    first_day: int = 1,
    last_day: int = 1,
    decay_numerator: int = DEFAULT_DECAY_NUMERATOR,
    decay_denominator: int = DEFAULT_DECAY_DENOMINATOR,
    penalties: Optional[Mapping[int, int]] = None,
) -> RewardSchedule:
    """
    Build a schedule covering [first_day, last_day] with geometric base decay.

    Args:
        initial_pool: Base pool on first_day, smallest unit
        first_day: First scheduled day
        last_day: Last scheduled day (inclusive)
        decay_numerator: Daily decay rate numerator
        decay_denominator: Daily decay rate denominator
        penalties: Optional day -> penalty pool; absent days get zero

    Returns:
        RewardSchedule
    """
    if initial_pool < 0:
        raise InputIntegrityError(f"Initial pool must be non-negative, got {initial_pool}")
    if decay_denominator <= 0 or not 0 <= decay_numerator <= decay_denominator:
        raise InputIntegrityError(
            f"Invalid decay rate {decay_numerator}/{decay_denominator}"
        )
    penalties = penalties or {}
    keep = decay_denominator - decay_numerator

    entries = []
    pool = initial_pool
    for day in range(first_day, last_day + 1):
        if day > first_day:
            pool = checked_mul(pool, keep, "base pool decay") // decay_denominator
        entries.append(RewardDaySchedule(
            day=day,
            base_pool=pool,
            penalty_pool=_parse_amount(penalties.get(day, 0)),
        ))

    stray = sorted(day for day in penalties if not first_day <= day <= last_day)
    if stray:
        raise InputIntegrityError(f"Penalties given for unscheduled days {stray}")

    return RewardSchedule(entries)
