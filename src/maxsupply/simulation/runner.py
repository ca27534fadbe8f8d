"""Projection runner - configure and execute a max supply projection.

Key Features:
- Builds the reward schedule from config (geometric decay, observed penalties)
- Default horizon of projection.horizon_days past the anchor
- Enforces the configured iteration cap
- Runs sanity checks over the finished projection
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional

from ..config.schema import Config
from ..engine.positions import Position
from ..engine.projection import BoundaryGuard, ProjectionEngine, ProjectionResult, SimulationAnchor
from ..engine.schedule import RewardSchedule, build_reward_schedule
from ..validation.sanity_checks import ValidationWarning, validate_projection

logger = logging.getLogger(__name__)


def protocol_day_to_date(day: int, start_date: date) -> date:
    """Calendar date of a protocol day (day 1 is the start date)."""
    return start_date + timedelta(days=day - 1)


def date_to_protocol_day(when: date, start_date: date) -> int:
    """Protocol day containing a calendar date."""
    return (when - start_date).days + 1


@dataclass
class ProjectionRunResult:
    """Complete projection run result."""
    config: Config
    anchor: SimulationAnchor
    target_day: int
    projection: ProjectionResult
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationWarning]:
        return [w for w in self.warnings if w.severity == "error"]

    @property
    def final_metrics(self) -> dict:
        """Headline numbers for reporting."""
        unit = self.config.calendar.unit
        final_supply = self.projection.final_supply
        return {
            'current_day': self.anchor.current_day,
            'target_day': self.target_day,
            'current_supply': self.anchor.current_supply,
            'final_supply': final_supply,
            'supply_growth': final_supply - self.anchor.current_supply,
            'final_supply_tokens': final_supply / unit,
            'positions_released': len(self.projection.releases),
            'positions_pending': len(self.projection.pending),
            'pending_rewards': self.projection.pending_rewards,
        }


class ProjectionRunner:
    """Config-driven projection runner."""

    def __init__(self, config: Config):
        """
        Initialize projection runner.

        Args:
            config: Workbench configuration
        """
        self.config = config

    def build_schedule(
        self,
        last_day: int,
        penalties: Optional[Mapping[int, int]] = None,
    ) -> RewardSchedule:
        """
        Build the reward schedule from config through last_day.

        Args:
            last_day: Last day to schedule (inclusive)
            penalties: Observed penalties overriding the configured ones

        Returns:
            RewardSchedule from reward_pool.first_day to last_day
        """
        pool = self.config.reward_pool
        merged = dict(pool.penalties)
        if penalties:
            merged.update(penalties)
        return build_reward_schedule(
            initial_pool=pool.initial_pool,
            first_day=pool.first_day,
            last_day=max(last_day, pool.first_day),
            decay_numerator=pool.decay_numerator,
            decay_denominator=pool.decay_denominator,
            penalties={d: a for d, a in merged.items() if d <= last_day},
        )

    def run(
        self,
        positions: Iterable[Position],
        anchor: SimulationAnchor,
        target_day: Optional[int] = None,
        penalties: Optional[Mapping[int, int]] = None,
        schedule: Optional[RewardSchedule] = None,
    ) -> ProjectionRunResult:
        """
        Run the projection.

        Args:
            positions: Stake and create positions
            anchor: Realized (current_day, current_supply)
            target_day: Last projected day (defaults to anchor + horizon_days)
            penalties: Observed penalty pools by day
            schedule: Explicit schedule; built from config when omitted

        Returns:
            ProjectionRunResult with projection and sanity warnings

        Raises:
            HorizonError: If target_day is before the anchor or beyond max_horizon_days
        """
        if target_day is None:
            target_day = anchor.current_day + self.config.projection.horizon_days

        # Reject the horizon before building a schedule that long
        anchor.validate()
        BoundaryGuard(anchor.current_day).check_horizon(
            target_day, self.config.projection.max_horizon_days
        )

        if schedule is None:
            schedule = self.build_schedule(target_day, penalties)
        elif penalties:
            schedule = schedule.with_penalties(penalties)

        engine = ProjectionEngine(
            positions,
            schedule,
            max_horizon_days=self.config.projection.max_horizon_days,
        )
        projection = engine.run(anchor, target_day)

        warnings = validate_projection(self.config, projection)
        for warning in warnings:
            logger.warning("%s [%s]: %s", warning.severity, warning.category, warning.message)

        return ProjectionRunResult(
            config=self.config,
            anchor=anchor,
            target_day=target_day,
            projection=projection,
            warnings=warnings,
        )
