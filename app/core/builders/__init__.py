"""Case-level builders: synthesis, chronology analysis and date helpers.

Only the date utilities are re-exported here; models import them, so the
builder modules that depend on models are imported by full path.
"""
from app.core.builders.date_utils import (
    date_sort_key,
    days_between,
    format_date,
    parse_date,
)

__all__ = [
    "parse_date",
    "format_date",
    "date_sort_key",
    "days_between",
]
