"""Mini README: Calendar date helpers shared by the ledger and the calculator.

Structure:
    * WIRE_DATE_FORMAT - ``DD/MM/YYYY`` textual format used by the API.
    * parse_date - coerce wire strings, ISO strings, dates and datetimes.
    * decode_path_date - undo the ``_`` for ``/`` escape used in URL paths.
    * format_date - render a date in the wire format.
    * days_between - whole-day difference between two dates.
    * iter_days - consecutive days from a start up to an exclusive stop.

Datetimes are truncated to their calendar date so that every comparison in
the allowance walk happens at day granularity.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator

WIRE_DATE_FORMAT = "%d/%m/%Y"


def parse_date(value: object) -> date:
    """Parse ``DD/MM/YYYY`` or ISO strings, or date/datetime instances."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.strptime(text, WIRE_DATE_FORMAT).date()
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as error:
            raise ValueError(
                f"Invalid date '{value}': expected DD/MM/YYYY or YYYY-MM-DD"
            ) from error
    raise ValueError("Dates must be provided as strings or date/datetime instances.")


def decode_path_date(value: str) -> date:
    """Decode a URL path date such as ``05_01_2024`` into a calendar date."""

    return parse_date(value.replace("_", "/"))


def format_date(value: date) -> str:
    """Render ``value`` in the ``DD/MM/YYYY`` wire format."""

    return value.strftime(WIRE_DATE_FORMAT)


def days_between(start: date, end: date) -> int:
    """Return ``end - start`` in whole days (negative when end precedes start)."""

    return (end - start).days


def iter_days(start: date, stop: date) -> Iterator[date]:
    """Yield each day from ``start`` up to but excluding ``stop``."""

    current = start
    while current < stop:
        yield current
        current += timedelta(days=1)
