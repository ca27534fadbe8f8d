"""Projection engine: sweep, distributor, accumulator and boundary guard."""

from .accumulator import DayRelease, MaturityReleaseAccumulator, PositionRelease
from .checked import UINT256_MAX, checked_add, checked_mul, mul_div
from .distributor import (
    DailyDistribution,
    PositionDay,
    PositionLedger,
    PositionProjection,
    accrue_position,
    distribute,
    project_position,
)
from .errors import (
    ArithmeticOverflowError,
    HorizonError,
    InputIntegrityError,
    ProjectionError,
)
from .positions import Position, PositionKind, positions_from_records, validate_positions
from .projection import (
    BoundaryGuard,
    ProjectionDay,
    ProjectionEngine,
    ProjectionResult,
    SimulationAnchor,
    project_max_supply,
)
from .schedule import (
    DEFAULT_DECAY_DENOMINATOR,
    DEFAULT_DECAY_NUMERATOR,
    DEFAULT_INITIAL_POOL,
    RewardDaySchedule,
    RewardSchedule,
    build_reward_schedule,
    geometric_base_pool,
)
from .sweep import ActiveDay, ActiveSetSweep

__all__ = [
    # Inputs
    "Position",
    "PositionKind",
    "positions_from_records",
    "validate_positions",
    "RewardDaySchedule",
    "RewardSchedule",
    "build_reward_schedule",
    "geometric_base_pool",
    "DEFAULT_INITIAL_POOL",
    "DEFAULT_DECAY_NUMERATOR",
    "DEFAULT_DECAY_DENOMINATOR",
    # Components
    "ActiveDay",
    "ActiveSetSweep",
    "DailyDistribution",
    "PositionLedger",
    "PositionDay",
    "PositionProjection",
    "distribute",
    "accrue_position",
    "project_position",
    "DayRelease",
    "PositionRelease",
    "MaturityReleaseAccumulator",
    "BoundaryGuard",
    # Orchestration
    "SimulationAnchor",
    "ProjectionDay",
    "ProjectionResult",
    "ProjectionEngine",
    "project_max_supply",
    # Arithmetic
    "UINT256_MAX",
    "checked_add",
    "checked_mul",
    "mul_div",
    # Errors
    "ProjectionError",
    "InputIntegrityError",
    "HorizonError",
    "ArithmeticOverflowError",
]
