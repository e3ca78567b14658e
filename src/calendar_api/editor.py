from __future__ import annotations

import itertools
import logging
import uuid
from functools import lru_cache
from threading import Lock
from typing import Dict, Optional

from .models import ReminderEntity
from .repositories import ReminderRepository
from .schemas import ReminderIn
from .weather import WeatherSummary

logger = logging.getLogger(__name__)


class StaleEditError(Exception):
    """Raised when a newer save for the same reminder started while this one awaited weather."""


# PUBLIC_INTERFACE
class EditSequencer:
    """
    Hands out increasing tokens per reminder id; only the latest token may commit.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}

    def begin(self, reminder_id: str) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest[reminder_id] = token
            return token

    def is_latest(self, reminder_id: str, token: int) -> bool:
        with self._lock:
            return self._latest.get(reminder_id) == token

    def finish(self, reminder_id: str, token: int) -> None:
        with self._lock:
            if self._latest.get(reminder_id) == token:
                del self._latest[reminder_id]


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_sequencer() -> EditSequencer:
    """Return the process-wide edit sequencer."""
    return EditSequencer()


# PUBLIC_INTERFACE
class ReminderEditor:
    """
    The create/edit flow: resolve weather once, then write to the repository.

    A replace takes a sequencer token before awaiting the weather lookup. An older
    replace of the same reminder that finishes after a newer one started raises
    StaleEditError instead of overwriting it.
    """

    def __init__(self, repo: ReminderRepository, weather: WeatherSummary, sequencer: EditSequencer) -> None:
        self._repo = repo
        self._weather = weather
        self._sequencer = sequencer

    async def _build(self, reminder_id: str, payload: ReminderIn) -> ReminderEntity:
        weather = await self._weather.summarize(payload.city, payload.date, payload.time)
        if weather is None:
            logger.info(f"No weather data for reminder {reminder_id} ({payload.city}, {payload.date[:10]} {payload.time})")
        return {
            "id": reminder_id,
            "text": payload.text,
            "color": payload.color,
            "city": payload.city,
            "date_iso": payload.date,
            "time": payload.time,
            "weather": weather,
        }

    async def create(self, payload: ReminderIn) -> ReminderEntity:
        """Create a new reminder with a fresh id and its weather annotation."""
        reminder_id = uuid.uuid4().hex
        reminder = await self._build(reminder_id, payload)
        self._repo.add(reminder)
        return reminder

    async def replace(self, reminder_id: str, payload: ReminderIn) -> Optional[ReminderEntity]:
        """
        Fully replace an existing reminder, re-resolving its weather.

        Returns:
            The stored reminder, or None if no reminder has this id.

        Raises:
            StaleEditError: if a newer replace of the same reminder started meanwhile.
        """
        if self._repo.get(reminder_id) is None:
            return None

        token = self._sequencer.begin(reminder_id)
        try:
            reminder = await self._build(reminder_id, payload)
            if not self._sequencer.is_latest(reminder_id, token):
                logger.info(f"Discarding stale edit of reminder {reminder_id}")
                raise StaleEditError(reminder_id)
            if not self._repo.update(reminder):
                # Deleted while the weather lookup was in flight
                return None
            return reminder
        finally:
            self._sequencer.finish(reminder_id, token)
