from __future__ import annotations

from typing import Dict, List, Optional, TypedDict


# PUBLIC_INTERFACE
class ReminderEntity(TypedDict):
    """
    A lightweight domain model representing a calendar reminder.

    Fields:
    - id: Opaque unique identifier, stable across edits
    - text: Short display text (1..30 chars, trimmed on input via schemas)
    - color: Display color token (e.g. '#3b82f6')
    - city: Free-text city used for the weather lookup
    - date_iso: Canonical date, an ISO8601 UTC instant at midnight of the calendar day
    - time: Time of day as zero-padded 24h 'HH:MM'
    - weather: Weather category resolved at save time, or None for "no data"
    """

    id: str
    text: str
    color: str
    city: str
    date_iso: str
    time: str
    weather: Optional[str]


# Day key ('YYYY-MM-DD') -> reminders of that day ordered by time
ReminderIndex = Dict[str, List[ReminderEntity]]
