from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import ReminderEntity
from .utils import canonical_date_iso, month_start_iso, parse_day
from .weather import weather_icon

# Incoming dates can be a date, datetime, or ISO8601 string
DateInput = Union[date, datetime, str]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DEFAULT_COLOR = "#3b82f6"
DEFAULT_TIME = "09:00"
MAX_TEXT_LENGTH = 30


def _parse_calendar_day(value: Optional[DateInput]) -> date:
    """
    Internal helper to reduce date input to its calendar day.
    - datetime: its date portion
    - date: as-is
    - str: the leading 'YYYY-MM-DD' of an ISO8601 date or datetime string
    """
    if value is None:
        raise ValueError("date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_day(value)
        except ValueError as e:
            raise ValueError(
                "Invalid date format. Use ISO8601 date or datetime string (e.g., '2024-03-01' or '2024-03-01T00:00:00.000Z')."
            ) from e
    raise ValueError("Invalid type for date; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
class ReminderIn(BaseModel):
    """
    Schema for creating or fully replacing a reminder.

    The date is normalized to the canonical midnight instant of its calendar day.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "Buy milk",
                "color": "#3b82f6",
                "city": "London",
                "date": "2024-03-01",
                "time": "07:30",
            }
        }
    )

    text: str = Field(..., description="Short reminder text (1..30 characters)")
    color: str = Field(default=DEFAULT_COLOR, description="Display color token")
    city: str = Field(..., description="City used for the weather lookup")
    date: str = Field(..., description="Calendar day as ISO8601 date or datetime; stored as the day's midnight instant")
    time: str = Field(default=DEFAULT_TIME, description="Time of day as 24h 'HH:MM'")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..30 length.
        """
        s = v.strip()
        if not (1 <= len(s) <= MAX_TEXT_LENGTH):
            raise ValueError(f"text length must be between 1 and {MAX_TEXT_LENGTH} characters")
        return s

    @field_validator("city")
    @classmethod
    def validate_city(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("city is required")
        return s

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        s = v.strip()
        return s or DEFAULT_COLOR

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Optional[DateInput]) -> str:
        """
        Normalize date from str/date/datetime to the canonical instant string.
        """
        return canonical_date_iso(_parse_calendar_day(v))

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        s = v.strip()
        if not _TIME_RE.match(s):
            raise ValueError("time must be a 24h 'HH:MM' string")
        return s


# PUBLIC_INTERFACE
class ReminderOut(BaseModel):
    """
    Schema returned by the API for a reminder.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b7f2c8e6d4a4f7e9a1c3b5d7e9f1a2b",
                "text": "Buy milk",
                "color": "#3b82f6",
                "city": "London",
                "date_iso": "2024-03-01T00:00:00.000Z",
                "time": "07:30",
                "weather": "Rain",
                "weather_icon": "🌧️",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the reminder")
    text: str = Field(..., description="Reminder text")
    color: str = Field(..., description="Display color token")
    city: str = Field(..., description="City of the weather lookup")
    date_iso: str = Field(..., description="Canonical date instant")
    time: str = Field(..., description="Time of day 'HH:MM'")
    weather: Optional[str] = Field(default=None, description="Weather category, null when no data")
    weather_icon: Optional[str] = Field(default=None, description="Display glyph for the weather category")

    @classmethod
    def from_entity(cls, entity: ReminderEntity) -> "ReminderOut":
        weather = entity.get("weather")
        return cls(
            **entity,
            weather_icon=weather_icon(weather) if weather else None,
        )


# PUBLIC_INTERFACE
class DayOut(BaseModel):
    """
    A calendar day with its reminders ordered by time.
    """

    day: str = Field(..., description="Day key 'YYYY-MM-DD'")
    reminders: List[ReminderOut] = Field(default_factory=list, description="Reminders of the day ordered by time")


# PUBLIC_INTERFACE
class MonthAnchorIn(BaseModel):
    """
    Schema for moving the displayed month. Any date within the month is accepted.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"month_start": "2024-03-15"}})

    month_start: str = Field(..., description="A date in the month to display; normalized to the first of the month")

    @field_validator("month_start", mode="before")
    @classmethod
    def normalize_month_start(cls, v: Any) -> str:
        return month_start_iso(_parse_calendar_day(v))


# PUBLIC_INTERFACE
class MonthOut(BaseModel):
    """
    The displayed month: its anchor and a Sunday-first grid of weeks.

    Cells outside the month are null.
    """

    month_start: str = Field(..., description="First-of-month instant of the displayed month")
    weeks: List[List[Optional[DayOut]]] = Field(..., description="Weeks of seven cells, Sunday first")
