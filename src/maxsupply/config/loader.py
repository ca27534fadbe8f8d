"""Configuration loader from YAML.

User files only need the keys they change; everything else comes from the
packaged defaults.yaml (contract constants and calendar).
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .schema import Config

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def _read_yaml(path) -> Dict[str, Any]:
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively overlay overrides onto base. Penalty maps are replaced, not merged."""
    merged = dict(base)
    for key, value in overrides.items():
        if key != 'penalties' and isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(yaml_path: str = None, overrides: Optional[Mapping[str, Any]] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        yaml_path: Path to a YAML file layered over defaults.yaml (defaults only if None)
        overrides: Nested dict applied last, e.g. {'projection': {'horizon_days': 30}}

    Returns:
        Config object

    Raises:
        ValueError: If the merged configuration fails validation
    """
    data = _read_yaml(DEFAULTS_PATH)
    if yaml_path is not None:
        data = _merge(data, _read_yaml(yaml_path))
    if overrides:
        data = _merge(data, overrides)

    return Config.from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """
    Create config from a complete dictionary (no defaults applied).

    Args:
        data: Configuration dictionary

    Returns:
        Config object
    """
    return Config.from_dict(data)
