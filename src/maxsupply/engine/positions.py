"""Locked positions: the stakes and creates whose releases make up future supply.

Key Concepts:
- A stake returns its principal at maturity; a create mints a new amount
- A position is active on day d iff start_day <= d < maturity_day
- Shares are the fixed pro-rata weight in the daily reward pool
- All amounts are integers in the smallest token unit (no floats)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .checked import ensure_uint
from .errors import ArithmeticOverflowError, InputIntegrityError


class PositionKind(Enum):
    """What a position releases at maturity."""
    STAKE = "stake"
    CREATE = "create"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Position:
    """A locked commitment in the staking contract."""
    id: str
    kind: PositionKind
    amount: int  # Principal (stake) or minted amount (create), smallest unit
    shares: int  # Weight in the daily pro-rata distribution
    start_day: int  # First protocol day the position is active
    maturity_day: int  # Release day; no distribution on this day
    owner: Optional[str] = None

    def is_active(self, day: int) -> bool:
        """Half-open activity window [start_day, maturity_day)."""
        return self.start_day <= day < self.maturity_day

    def validate(self) -> "Position":
        """
        Check the position is well formed.

        Returns:
            The position itself, for chaining

        Raises:
            InputIntegrityError: On a non-string id, non-integer fields,
                negative amounts or a maturity day not after the start day
        """
        if not isinstance(self.id, str) or not self.id:
            raise InputIntegrityError(f"Position id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.kind, PositionKind):
            raise InputIntegrityError(f"Position {self.id!r}: unknown kind {self.kind!r}")

        for name in ("amount", "shares", "start_day", "maturity_day"):
            value = getattr(self, name)
            if not _is_int(value):
                raise InputIntegrityError(
                    f"Position {self.id!r}: {name} must be an integer, got {value!r}"
                )

        if self.amount < 0 or self.shares < 0:
            raise InputIntegrityError(
                f"Position {self.id!r}: negative amount or shares "
                f"(amount={self.amount}, shares={self.shares})"
            )
        try:
            ensure_uint(self.amount, "amount")
            ensure_uint(self.shares, "shares")
        except ArithmeticOverflowError as exc:
            raise InputIntegrityError(f"Position {self.id!r}: {exc}") from exc

        if self.maturity_day <= self.start_day:
            raise InputIntegrityError(
                f"Position {self.id!r}: maturity day {self.maturity_day} "
                f"is not after start day {self.start_day}"
            )
        return self


def validate_positions(positions: Iterable[Position]) -> List[Position]:
    """
    Validate every position and return them sorted by id.

    Raises:
        InputIntegrityError: On the first malformed position or a duplicate id
    """
    seen = set()
    validated = []
    for position in positions:
        position.validate()
        if position.id in seen:
            raise InputIntegrityError(f"Duplicate position id {position.id!r}")
        seen.add(position.id)
        validated.append(position)
    validated.sort(key=lambda p: p.id)
    return validated


# ============================================================================
# REGISTRY RECORDS
# ============================================================================

class _PositionRecord(BaseModel):
    """Shape of a stake/create entry as cached by the registry."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user: str = ""
    id: str = Field(validation_alias=AliasChoices("id", "stakeIndex"))
    shares: int
    start_day: int = Field(validation_alias=AliasChoices("start_day", "startDay", "protocolDay"))
    maturity_day: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("maturity_day", "maturityDay")
    )
    staking_days: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("staking_days", "stakingDays")
    )

    @field_validator("user", "id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        """Registry ids are sometimes stored as numbers."""
        return v if v is None else str(v)

    def resolve_maturity_day(self) -> int:
        if self.maturity_day is not None:
            return self.maturity_day
        if self.staking_days is not None:
            return self.start_day + self.staking_days
        raise ValueError("record has neither maturityDay nor stakingDays")


class StakeRecord(_PositionRecord):
    amount: int = Field(validation_alias=AliasChoices("amount", "principal"))


class CreateRecord(_PositionRecord):
    amount: int = Field(validation_alias=AliasChoices("amount", "torusAmount"))


def _convert(record: Mapping[str, Any], model, kind: PositionKind) -> Position:
    try:
        parsed = model.model_validate(record)
        maturity_day = parsed.resolve_maturity_day()
    except (ValidationError, ValueError) as exc:
        raise InputIntegrityError(f"Invalid {kind.value} record {dict(record)!r}: {exc}") from exc

    return Position(
        id=f"{parsed.user}-{parsed.id}-{kind.value}",
        kind=kind,
        amount=parsed.amount,
        shares=parsed.shares,
        start_day=parsed.start_day,
        maturity_day=maturity_day,
        owner=parsed.user or None,
    ).validate()


def positions_from_records(
    stake_records: Iterable[Mapping[str, Any]] = (),
    create_records: Iterable[Mapping[str, Any]] = (),
) -> List[Position]:
    """
    Convert cached registry records into validated positions.

    Amounts may be decimal strings (as stored in cached JSON) and are parsed
    as exact integers; scientific notation and fractional values are rejected.

    Args:
        stake_records: Stake entries (principal in `principal`)
        create_records: Create entries (minted amount in `torusAmount`)

    Returns:
        Positions sorted by id

    Raises:
        InputIntegrityError: On a malformed record or duplicate id
    """
    positions = [_convert(r, StakeRecord, PositionKind.STAKE) for r in stake_records]
    positions.extend(_convert(r, CreateRecord, PositionKind.CREATE) for r in create_records)
    return validate_positions(positions)
