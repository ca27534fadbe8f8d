"""Config-driven projection runs."""

from .runner import (
    ProjectionRunResult,
    ProjectionRunner,
    date_to_protocol_day,
    protocol_day_to_date,
)

__all__ = [
    "ProjectionRunner",
    "ProjectionRunResult",
    "protocol_day_to_date",
    "date_to_protocol_day",
]
