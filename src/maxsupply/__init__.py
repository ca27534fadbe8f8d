"""Max supply projection workbench.

Projects a staking protocol's token supply day by day from a realized
anchor, releasing each stake's principal (or each create's minted amount)
plus its pro-rata share of a decaying daily reward pool at maturity.
"""

from .config import Config, load_config
from .engine import (
    ArithmeticOverflowError,
    HorizonError,
    InputIntegrityError,
    Position,
    PositionKind,
    ProjectionEngine,
    ProjectionError,
    ProjectionResult,
    RewardDaySchedule,
    RewardSchedule,
    SimulationAnchor,
    build_reward_schedule,
    positions_from_records,
    project_max_supply,
)
from .simulation import ProjectionRunner, ProjectionRunResult

__version__ = "1.0.0"

__all__ = [
    "Config",
    "load_config",
    "Position",
    "PositionKind",
    "positions_from_records",
    "RewardDaySchedule",
    "RewardSchedule",
    "build_reward_schedule",
    "SimulationAnchor",
    "ProjectionEngine",
    "ProjectionResult",
    "project_max_supply",
    "ProjectionRunner",
    "ProjectionRunResult",
    "ProjectionError",
    "InputIntegrityError",
    "HorizonError",
    "ArithmeticOverflowError",
]
