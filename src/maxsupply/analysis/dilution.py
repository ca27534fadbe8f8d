"""Dilution analysis - how new positions shrink existing positions' rewards.

New positions join the active set and take a pro-rata slice of every
later day's pool. Running the projection with and without them, and
comparing what the existing positions release, measures that dilution.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from ..engine.positions import Position
from ..engine.projection import ProjectionResult, SimulationAnchor, project_max_supply
from ..engine.schedule import RewardSchedule


@dataclass
class DilutionImpact:
    """Dilution of existing positions' released rewards on one day."""
    day: int
    rewards_before: int  # Cumulative rewards released to existing positions, alone
    rewards_after: int  # Same, with the new positions added
    dilution_amount: int
    dilution_percentage: float


@dataclass
class DilutionReport:
    """Before/after projections and per-day dilution."""
    before: ProjectionResult
    after: ProjectionResult
    impacts: List[DilutionImpact]
    pending_before: int  # Existing positions' unreleased rewards at the horizon
    pending_after: int

    @property
    def total_dilution(self) -> int:
        """Released plus still-pending reward lost by existing positions."""
        released = self.impacts[-1].dilution_amount if self.impacts else 0
        return released + (self.pending_before - self.pending_after)


def _cumulative_rewards_by_day(result: ProjectionResult, ids: Set[str]) -> Dict[int, int]:
    per_day: Dict[int, int] = {}
    for release in result.releases:
        if release.position_id in ids:
            per_day[release.day] = per_day.get(release.day, 0) + release.reward

    cumulative = {}
    running = 0
    for day in range(result.current_day, result.target_day + 1):
        running += per_day.get(day, 0)
        cumulative[day] = running
    return cumulative


def simulate_dilution(
    existing_positions: Iterable[Position],
    new_positions: Iterable[Position],
    schedule: RewardSchedule,
    anchor: SimulationAnchor,
    target_day: int,
    max_horizon_days: Optional[int] = None,
) -> DilutionReport:
    """
    Compare existing positions' rewards with and without new positions.

    Args:
        existing_positions: Positions already in the registry
        new_positions: Hypothetical additional positions
        schedule: Reward schedule
        anchor: Realized (current_day, current_supply)
        target_day: Last projected day
        max_horizon_days: Optional iteration cap

    Returns:
        DilutionReport
    """
    existing = list(existing_positions)
    added = list(new_positions)
    existing_ids = {p.id for p in existing}

    before = project_max_supply(existing, schedule, anchor, target_day, max_horizon_days)
    after = project_max_supply(existing + added, schedule, anchor, target_day, max_horizon_days)

    rewards_before = _cumulative_rewards_by_day(before, existing_ids)
    rewards_after = _cumulative_rewards_by_day(after, existing_ids)

    impacts = []
    for day in range(anchor.current_day, target_day + 1):
        b = rewards_before[day]
        a = rewards_after[day]
        amount = b - a
        impacts.append(DilutionImpact(
            day=day,
            rewards_before=b,
            rewards_after=a,
            dilution_amount=amount,
            dilution_percentage=(amount / b) * 100 if b > 0 else 0.0,
        ))

    return DilutionReport(
        before=before,
        after=after,
        impacts=impacts,
        pending_before=sum(v for k, v in before.pending.items() if k in existing_ids),
        pending_after=sum(v for k, v in after.pending.items() if k in existing_ids),
    )
