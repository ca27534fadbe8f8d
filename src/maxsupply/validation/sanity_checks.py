"""Sanity checks and validation for projection inputs and outputs."""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..config.schema import Config
from ..engine.projection import ProjectionResult


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "anchor", "conservation", "spike"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run sanity checks on configuration and projection results."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        pool = self.config.reward_pool
        unit = self.config.calendar.unit

        if pool.initial_pool < unit:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Initial reward pool is below one whole token",
                details=f"initial_pool={pool.initial_pool}, unit={unit}"
            ))

        if pool.decay_rate > 0.01:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message=f"Daily decay of {pool.decay_rate*100:.2f}% is unusually fast",
                details=f"{pool.decay_numerator}/{pool.decay_denominator} per day"
            ))

        if pool.decay_numerator == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Reward pool does not decay",
                details="decay_numerator is 0"
            ))

        return warnings

    def check_anchor(self, result: ProjectionResult) -> List[ValidationWarning]:
        """Projection must start exactly at the anchor supply plus that day's releases."""
        warnings = []
        if not result.days:
            warnings.append(ValidationWarning(
                severity="error",
                category="anchor",
                message="Projection is empty",
            ))
            return warnings

        first = result.days[0]
        if first.day != result.current_day:
            warnings.append(ValidationWarning(
                severity="error",
                category="anchor",
                message=f"Projection starts on day {first.day}, anchor is day {result.current_day}",
            ))

        expected = result.current_supply + first.total_released
        if first.cumulative_supply != expected:
            warnings.append(ValidationWarning(
                severity="error",
                category="anchor",
                message="Anchor continuity violated",
                details=(
                    f"cumulative={first.cumulative_supply}, anchor={result.current_supply}, "
                    f"released={first.total_released}, diff={first.cumulative_supply - expected}"
                )
            ))
        return warnings

    def check_supply_path(self, result: ProjectionResult) -> List[ValidationWarning]:
        """Supply must be non-decreasing and each day's totals must add up."""
        warnings = []
        previous = result.current_supply
        for day in result.days:
            if day.cumulative_supply < previous:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="bounds",
                    message=f"Cumulative supply decreased on day {day.day}",
                    details=f"{previous} -> {day.cumulative_supply}"
                ))
            if day.cumulative_supply != previous + day.total_released:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Cumulative supply on day {day.day} does not match releases",
                    details=f"previous={previous}, released={day.total_released}, cumulative={day.cumulative_supply}"
                ))
            if day.total_released != day.principal_released + day.rewards_released:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Release breakdown on day {day.day} does not add up",
                ))
            if day.total_released != day.released_from_stakes + day.released_from_creates:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Stake/create split on day {day.day} does not add up",
                ))
            previous = day.cumulative_supply
        return warnings

    def check_pool_conservation(self, result: ProjectionResult) -> List[ValidationWarning]:
        """Distributed rewards never exceed the pool; floor residual stays bounded."""
        warnings = []
        for day in result.days:
            if day.distributed > day.total_pool:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Day {day.day} distributed more than its pool",
                    details=f"distributed={day.distributed}, pool={day.total_pool}"
                ))
            elif day.active_positions > 0 and day.total_active_shares > 0:
                residual = day.total_pool - day.distributed
                if residual >= day.active_positions:
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="conservation",
                        message=f"Day {day.day} rounding residual larger than expected",
                        details=f"residual={residual}, active_positions={day.active_positions}"
                    ))
        return warnings

    def check_releases(self, result: ProjectionResult) -> List[ValidationWarning]:
        """Each position is released at most once."""
        warnings = []
        seen = set()
        for release in result.releases:
            if release.position_id in seen:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Position {release.position_id} released more than once",
                ))
            seen.add(release.position_id)
            if release.position_id in result.pending:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Position {release.position_id} is both released and pending",
                ))
        return warnings

    def check_spikes(self, result: ProjectionResult) -> List[ValidationWarning]:
        """
        Flag single-day releases that are large relative to the supply before them.

        These are the "hockey stick" days worth a second look; they are not
        necessarily wrong.
        """
        warnings = []
        if not result.days:
            return warnings

        released = np.array([float(d.total_released) for d in result.days])
        cumulative = np.array([float(d.cumulative_supply) for d in result.days])
        prior = np.maximum(cumulative - released, 1.0)
        ratios = released / prior

        threshold = self.config.sanity.spike_fraction
        unit = float(self.config.calendar.unit)
        for idx in np.flatnonzero(ratios > threshold):
            day = result.days[int(idx)]
            warnings.append(ValidationWarning(
                severity="warning",
                category="spike",
                message=f"Release spike on day {day.day}: +{ratios[idx]*100:.1f}% of supply",
                details=(
                    f"Released {released[idx]/unit:,.2f} tokens "
                    f"({day.positions_matured} maturities) onto {prior[idx]/unit:,.2f}"
                )
            ))
        return warnings


def validate_projection(config: Config, result: ProjectionResult) -> List[ValidationWarning]:
    """
    Validate a complete projection.

    Args:
        config: Workbench configuration
        result: Projection to check

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(config)
    warnings = []

    warnings.extend(checker.check_config_inputs())
    warnings.extend(checker.check_anchor(result))
    warnings.extend(checker.check_supply_path(result))
    if config.sanity.check_conservation:
        warnings.extend(checker.check_pool_conservation(result))
    warnings.extend(checker.check_releases(result))
    warnings.extend(checker.check_spikes(result))

    return warnings
