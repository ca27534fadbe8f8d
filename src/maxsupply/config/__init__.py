"""Configuration schema and loading."""

from .loader import config_from_dict, load_config
from .schema import Calendar, Config, Projection, RewardPool, Sanity

__all__ = [
    "Config",
    "RewardPool",
    "Calendar",
    "Projection",
    "Sanity",
    "load_config",
    "config_from_dict",
]
