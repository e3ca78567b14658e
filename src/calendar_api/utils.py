from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import List, Optional


# PUBLIC_INTERFACE
def day_key(value: str) -> str:
    """
    Return the 'YYYY-MM-DD' grouping key of a canonical date or day string.

    Both '2024-03-01' and '2024-03-01T00:00:00.000Z' map to '2024-03-01'.
    Time of day never affects the key.
    """
    return value[:10]


# PUBLIC_INTERFACE
def parse_day(value: str) -> date:
    """
    Parse the calendar day of a day key or ISO8601 instant.

    The whole string must be a valid ISO8601 date or datetime; a trailing 'Z'
    is read as UTC.

    Raises:
        ValueError: if the value is not an ISO8601 date or datetime.
    """
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s).date()


# PUBLIC_INTERFACE
def canonical_date_iso(day: date) -> str:
    """Return the canonical instant for a calendar day, e.g. '2024-03-01T00:00:00.000Z'."""
    return f"{day.isoformat()}T00:00:00.000Z"


# PUBLIC_INTERFACE
def month_start_iso(day: date) -> str:
    """Return the month anchor (first of month instant) for the month containing day."""
    return canonical_date_iso(day.replace(day=1))


def default_month_anchor() -> str:
    """Month anchor of the current month."""
    return month_start_iso(date.today())


# PUBLIC_INTERFACE
def shift_month(anchor_iso: str, months: int) -> str:
    """
    Move a month anchor by a signed number of months.

    Args:
        anchor_iso: Current anchor (any ISO instant within the month is accepted).
        months: Number of months to move; negative moves backwards.

    Returns:
        The anchor of the target month.
    """
    current = parse_day(anchor_iso)
    index = current.year * 12 + (current.month - 1) + months
    year, month0 = divmod(index, 12)
    return canonical_date_iso(date(year, month0 + 1, 1))


# PUBLIC_INTERFACE
def month_grid(anchor_iso: str) -> List[List[Optional[date]]]:
    """
    Lay out the month of anchor_iso as weeks of seven cells, Sunday first.

    Cells before the first day and after the last day of the month are None, so
    every week has exactly seven entries.
    """
    first = parse_day(anchor_iso).replace(day=1)
    _, days_in_month = calendar.monthrange(first.year, first.month)
    # date.weekday(): Monday=0 .. Sunday=6; shift so Sunday leads the week
    leading = (first.weekday() + 1) % 7

    cells: List[Optional[date]] = [None] * leading
    cells.extend(first.replace(day=d) for d in range(1, days_in_month + 1))
    while len(cells) % 7:
        cells.append(None)
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]
