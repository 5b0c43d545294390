"""
Utility functions for the application.
"""
from typing import Any, Dict
from datetime import date, datetime, timedelta


def as_date(value: Any) -> date:
    """Reduce a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Type {type(value)} is not a date")


def date_range(start: date, end: date):
    """Yield every calendar day from start to end, inclusive."""
    current = as_date(start)
    last = as_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
