"""Interval Model - half-open calendar date intervals"""
import re
from datetime import date, datetime

from domain.exceptions import InvalidRange

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def overlaps(a_from, a_to, b_from, b_to):
    """Return whether [a_from, a_to) and [b_from, b_to) share at least one day.

    Touching ranges (a_to == b_from) do not overlap. Written with ``&`` so the
    same predicate builds a SQL clause when given column expressions.
    """
    return (a_from < b_to) & (a_to > b_from)


def nights(check_in: date, check_out: date) -> int:
    """Number of nights in [check_in, check_out)"""
    return (check_out - check_in).days


def parse_calendar_date(value, field: str = "date") -> date:
    """Parse a YYYY-MM-DD string (or pass through a date) as a whole day"""
    if isinstance(value, datetime):
        raise InvalidRange(f"{field} must be a calendar date without a time, got {value.isoformat()}")
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidRange(f"Invalid {field} {value!r}. Please use the YYYY-MM-DD format")
