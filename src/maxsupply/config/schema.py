"""Pydantic schema for configuration validation."""

import hashlib
import json
from datetime import date
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator, model_validator


class RewardPool(BaseModel):
    """Reward pool schedule parameters (contract constants)."""
    initial_pool: int = Field(gt=0, description="Base reward pool on first_day, smallest unit")
    first_day: int = Field(default=1, ge=1, description="Protocol day carrying initial_pool")
    decay_numerator: int = Field(default=8, ge=0, description="Daily decay rate numerator")
    decay_denominator: int = Field(default=10_000, gt=0, description="Daily decay rate denominator")
    penalties: Dict[int, int] = Field(
        default_factory=dict,
        description="Observed penalty pools by day, smallest unit (absent days are zero)"
    )

    @model_validator(mode='after')
    def validate_decay(self):
        """Decay rate must be a fraction in [0, 1]."""
        if self.decay_numerator > self.decay_denominator:
            raise ValueError(
                f"decay_numerator ({self.decay_numerator}) must not exceed "
                f"decay_denominator ({self.decay_denominator})"
            )
        return self

    @field_validator('penalties')
    @classmethod
    def validate_penalties(cls, v):
        """Penalty pools are non-negative."""
        for day, amount in v.items():
            if amount < 0:
                raise ValueError(f"Penalty pool for day {day} is negative: {amount}")
        return v

    @property
    def decay_rate(self) -> float:
        """Daily decay as a fraction (display only)."""
        return self.decay_numerator / self.decay_denominator


class Calendar(BaseModel):
    """Protocol calendar."""
    start_date: date = Field(description="Calendar date of protocol day 1")
    token_decimals: int = Field(default=18, ge=0, le=36, description="Token decimals")

    @property
    def unit(self) -> int:
        """Smallest units per whole token."""
        return 10 ** self.token_decimals


class Projection(BaseModel):
    """Projection horizon parameters."""
    horizon_days: int = Field(default=88, ge=0, description="Default days projected past the anchor")
    max_horizon_days: int = Field(default=3650, gt=0, description="Iteration cap on target - anchor")

    @model_validator(mode='after')
    def validate_horizon(self):
        """Default horizon must fit under the cap."""
        if self.horizon_days > self.max_horizon_days:
            raise ValueError(
                f"horizon_days ({self.horizon_days}) exceeds max_horizon_days ({self.max_horizon_days})"
            )
        return self


class Sanity(BaseModel):
    """Thresholds for post-run sanity checks."""
    spike_fraction: float = Field(
        default=0.25, gt=0,
        description="Flag a day whose release exceeds this fraction of the prior supply"
    )
    check_conservation: bool = Field(default=True, description="Check per-day pool conservation")


class Config(BaseModel):
    """Complete configuration for the max supply workbench."""
    reward_pool: RewardPool
    calendar: Calendar
    projection: Projection = Field(default_factory=Projection)
    sanity: Sanity = Field(default_factory=Sanity)

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump(mode='json')
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
