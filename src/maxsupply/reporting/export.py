"""Export functionality for DataFrame, CSV, and JSON."""

import json
from datetime import date
from typing import Optional

import pandas as pd

from ..engine.projection import ProjectionResult
from ..simulation.runner import ProjectionRunResult, protocol_day_to_date

AMOUNT_COLUMNS = [
    'principal_released',
    'rewards_released',
    'total_released',
    'cumulative_supply',
    'released_from_stakes',
    'released_from_creates',
    'total_active_shares',
    'total_pool',
    'distributed',
]

METRIC_AMOUNTS = {'current_supply', 'final_supply', 'supply_growth', 'pending_rewards'}


def projection_to_dataframe(result: ProjectionResult, start_date: Optional[date] = None) -> pd.DataFrame:
    """
    Convert a projection to a DataFrame, one row per day.

    Amount columns hold Python ints (object dtype) so values above the
    int64 range are kept exact.

    Args:
        result: Projection result
        start_date: Protocol day 1 date; adds a `date` column when given

    Returns:
        DataFrame indexed by position in the projection
    """
    data = result.to_records()
    if start_date is not None:
        for row in data:
            row['date'] = protocol_day_to_date(row['day'], start_date).isoformat()

    df = pd.DataFrame(data)
    for column in AMOUNT_COLUMNS:
        if column in df:
            df[column] = df[column].astype(object)
    return df


def export_csv(run: ProjectionRunResult, filepath: str):
    """Export projection results to CSV."""
    df = projection_to_dataframe(run.projection, run.config.calendar.start_date)
    df.to_csv(filepath, index=False)


def export_json(run: ProjectionRunResult, filepath: str):
    """Export projection results to JSON. Amounts are written as decimal strings."""
    start_date = run.config.calendar.start_date
    export_data = {
        'config': run.config.model_dump(mode='json'),
        'config_hash': run.config.compute_hash(),
        'anchor': {
            'current_day': run.anchor.current_day,
            'current_supply': str(run.anchor.current_supply),
        },
        'target_day': run.target_day,
        'days': [
            {
                **{k: (str(v) if k in AMOUNT_COLUMNS else v) for k, v in row.items()},
                'date': protocol_day_to_date(row['day'], start_date).isoformat(),
            }
            for row in run.projection.to_records()
        ],
        'releases': [
            {
                'position_id': r.position_id,
                'kind': r.kind.value,
                'day': r.day,
                'amount': str(r.amount),
                'reward': str(r.reward),
            }
            for r in run.projection.releases
        ],
        'pending': {k: str(v) for k, v in run.projection.pending.items()},
        'final_metrics': {
            k: (str(v) if k in METRIC_AMOUNTS else v) for k, v in run.final_metrics.items()
        },
        'warnings': [
            {'severity': w.severity, 'category': w.category, 'message': w.message, 'details': w.details}
            for w in run.warnings
        ],
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)
