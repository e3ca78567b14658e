from __future__ import annotations

import json
import logging
from functools import lru_cache
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from .models import ReminderEntity, ReminderIndex
from .storage import KeyValueStore, get_store
from .utils import day_key, default_month_anchor, parse_day

logger = logging.getLogger(__name__)

STORAGE_REMINDERS = "calendar-reminders"
STORAGE_MONTH = "calendar-month-start"

_DOCUMENT_FIELDS = ("id", "text", "color", "city", "dateISO", "time")

# Called after every committed mutation with the event name and a copy of the index
Listener = Callable[[str, ReminderIndex], None]


def _to_document(reminder: ReminderEntity) -> Dict[str, Any]:
    return {
        "id": reminder["id"],
        "text": reminder["text"],
        "color": reminder["color"],
        "city": reminder["city"],
        "dateISO": reminder["date_iso"],
        "time": reminder["time"],
        "weather": reminder.get("weather"),
    }


def _from_document(doc: Any) -> Optional[ReminderEntity]:
    if not isinstance(doc, dict):
        return None
    if not all(isinstance(doc.get(f), str) for f in _DOCUMENT_FIELDS):
        return None
    weather = doc.get("weather")
    return {
        "id": doc["id"],
        "text": doc["text"],
        "color": doc["color"],
        "city": doc["city"],
        "date_iso": doc["dateISO"],
        "time": doc["time"],
        "weather": weather if isinstance(weather, str) else None,
    }


def _sorted_by_time(reminders: List[ReminderEntity]) -> List[ReminderEntity]:
    # 'HH:MM' sorts lexicographically in chronological order; sorted() is stable
    return sorted(reminders, key=lambda r: r["time"])


def _copy_index(index: ReminderIndex) -> ReminderIndex:
    return {k: [r.copy() for r in v] for k, v in index.items()}


# PUBLIC_INTERFACE
class ReminderRepository:
    """
    Reminders grouped by calendar day, plus the displayed month anchor.

    The whole index lives in memory and is written back to the document store
    after every mutation. Invariants kept by every operation:
    - each day's list is ordered by 'HH:MM' time (stable for equal times)
    - no day key maps to an empty list
    - a reminder id is present in at most one day
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = RLock()
        self._listeners: List[Listener] = []
        self._index: ReminderIndex = self._load_index()
        self._month_anchor: str = self._load_month_anchor()

    # Loading / persistence

    def _load_index(self) -> ReminderIndex:
        raw = self._store.read(STORAGE_REMINDERS)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Corrupted JSON in '{STORAGE_REMINDERS}', starting empty: {e}")
            return {}
        if not isinstance(parsed, dict):
            logger.warning(f"Unexpected '{STORAGE_REMINDERS}' payload type {type(parsed).__name__}, starting empty")
            return {}

        # Entries are regrouped by their own date; stored day keys are not trusted
        grouped: Dict[str, List[ReminderEntity]] = {}
        seen_ids = set()
        for key, docs in parsed.items():
            if not isinstance(docs, list):
                logger.warning(f"Skipping day '{key}': expected a list of reminders")
                continue
            for doc in docs:
                reminder = _from_document(doc)
                if reminder is None:
                    logger.warning(f"Skipping invalid reminder stored under '{key}'")
                    continue
                day = day_key(reminder["date_iso"])
                try:
                    readable = parse_day(reminder["date_iso"]).isoformat() == day
                except ValueError:
                    readable = False
                if not readable:
                    logger.warning(f"Skipping reminder {reminder['id']} with unreadable date {reminder['date_iso']!r}")
                    continue
                if reminder["id"] in seen_ids:
                    logger.warning(f"Skipping duplicate reminder {reminder['id']} stored under '{key}'")
                    continue
                if day != key:
                    logger.warning(f"Reminder {reminder['id']} stored under '{key}' belongs to {day}")
                seen_ids.add(reminder["id"])
                grouped.setdefault(day, []).append(reminder)

        index: ReminderIndex = {k: _sorted_by_time(v) for k, v in grouped.items()}
        logger.info(f"Loaded {len(seen_ids)} reminders across {len(index)} days")
        return index

    def _load_month_anchor(self) -> str:
        raw = (self._store.read(STORAGE_MONTH) or "").strip().strip("\"")
        if not raw:
            return default_month_anchor()
        try:
            parse_day(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable '{STORAGE_MONTH}' value {raw!r}")
            return default_month_anchor()
        return raw

    def _save_index(self, index: ReminderIndex) -> None:
        data = {k: [_to_document(r) for r in v] for k, v in index.items()}
        self._store.write(STORAGE_REMINDERS, json.dumps(data))

    def _commit(self, index: ReminderIndex) -> ReminderIndex:
        """
        Persist the full index and swap it in. Caller must hold the lock.

        Returns:
            A copy of the committed index to hand to listeners once the lock is released.
        """
        self._save_index(index)
        self._index = index
        return _copy_index(index)

    # Observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for committed mutations.

        Returns:
            A callable that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, snapshot: ReminderIndex) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, _copy_index(snapshot))
            except Exception:
                logger.exception(f"Reminder listener failed on '{event}'")

    # Reads

    @property
    def month_anchor(self) -> str:
        with self._lock:
            return self._month_anchor

    def snapshot(self) -> ReminderIndex:
        """Return a deep copy of the whole index."""
        with self._lock:
            return _copy_index(self._index)

    def get(self, reminder_id: str) -> Optional[ReminderEntity]:
        """Return a reminder by id, or None if not found."""
        with self._lock:
            for reminders in self._index.values():
                for r in reminders:
                    if r["id"] == reminder_id:
                        return r.copy()
        return None

    def list_day(self, date_iso: str) -> List[ReminderEntity]:
        """Return the ordered reminders of a day; empty when the day has none."""
        with self._lock:
            return [r.copy() for r in self._index.get(day_key(date_iso), [])]

    def list_days(self, month: Optional[str] = None) -> ReminderIndex:
        """
        Return every day holding at least one reminder, ordered by day key.

        Args:
            month: Optional 'YYYY-MM' prefix restricting the result to one month.
        """
        with self._lock:
            return {
                k: [r.copy() for r in self._index[k]]
                for k in sorted(self._index)
                if month is None or k.startswith(f"{month}-")
            }

    # Mutations

    def add(self, reminder: ReminderEntity) -> None:
        """Insert a reminder into its day, keeping the day ordered by time."""
        with self._lock:
            key = day_key(reminder["date_iso"])
            index = dict(self._index)
            index[key] = _sorted_by_time([*index.get(key, []), reminder.copy()])
            snapshot = self._commit(index)
        self._notify("add", snapshot)
        logger.info(f"Added reminder {reminder['id']} on {key} at {reminder['time']}")

    def update(self, reminder: ReminderEntity) -> bool:
        """
        Replace a stored reminder, moving it to another day if its date changed.

        Returns:
            True if the reminder existed and was replaced; False (and no change) otherwise.
        """
        with self._lock:
            previous_key = None
            for key, reminders in self._index.items():
                if any(r["id"] == reminder["id"] for r in reminders):
                    previous_key = key
                    break
            if previous_key is None:
                logger.warning(f"Reminder {reminder['id']} not found for update")
                return False

            index = dict(self._index)
            remaining = [r for r in index[previous_key] if r["id"] != reminder["id"]]
            if remaining:
                index[previous_key] = remaining
            else:
                del index[previous_key]

            new_key = day_key(reminder["date_iso"])
            index[new_key] = _sorted_by_time([*index.get(new_key, []), reminder.copy()])
            snapshot = self._commit(index)
        self._notify("update", snapshot)
        logger.info(f"Updated reminder {reminder['id']} ({previous_key} -> {new_key})")
        return True

    def delete(self, reminder_id: str) -> bool:
        """
        Remove a reminder from whichever day holds it.

        Returns:
            True if deleted, False if no reminder had this id.
        """
        with self._lock:
            index: ReminderIndex = {}
            found = False
            for key, reminders in self._index.items():
                filtered = [r for r in reminders if r["id"] != reminder_id]
                found = found or len(filtered) != len(reminders)
                if filtered:
                    index[key] = filtered
            if not found:
                logger.debug(f"Reminder {reminder_id} not found for deletion")
                return False
            snapshot = self._commit(index)
        self._notify("delete", snapshot)
        logger.info(f"Deleted reminder: {reminder_id}")
        return True

    def clear_day(self, date_iso: str) -> None:
        """Drop every reminder of the day containing date_iso."""
        with self._lock:
            key = day_key(date_iso)
            index = {k: v for k, v in self._index.items() if k != key}
            snapshot = self._commit(index)
        self._notify("clear_day", snapshot)
        logger.info(f"Cleared day {key}")

    def set_month_anchor(self, anchor_iso: str) -> None:
        """Persist the displayed month anchor. The reminder index is untouched."""
        with self._lock:
            self._store.write(STORAGE_MONTH, anchor_iso)
            self._month_anchor = anchor_iso
            snapshot = _copy_index(self._index)
        self._notify("month_anchor", snapshot)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> ReminderRepository:
    """
    Return the process-wide repository, built on the configured document store.
    """
    return ReminderRepository(get_store())
