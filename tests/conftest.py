import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.calendar_api.editor import EditSequencer, get_sequencer  # noqa: E402
from src.calendar_api.main import app  # noqa: E402
from src.calendar_api.repositories import ReminderRepository, get_repository  # noqa: E402
from src.calendar_api.routers.reminders import get_weather_summary  # noqa: E402
from src.calendar_api.storage import InMemoryStore  # noqa: E402


class FakeWeather:
    """Stands in for WeatherSummary; returns a fixed category and records calls."""

    def __init__(self, result="Rain"):
        self.result = result
        self.calls = []

    async def summarize(self, city, date_iso, time):
        self.calls.append((city, date_iso, time))
        return self.result


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repo(store):
    return ReminderRepository(store)


@pytest.fixture
def weather():
    return FakeWeather()


@pytest.fixture
def client(repo, weather):
    sequencer = EditSequencer()
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_weather_summary] = lambda: weather
    app.dependency_overrides[get_sequencer] = lambda: sequencer
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_reminder(
    reminder_id="r1",
    text="Buy milk",
    city="London",
    date_iso="2024-03-01T00:00:00.000Z",
    time="07:30",
    color="#3b82f6",
    weather=None,
):
    return {
        "id": reminder_id,
        "text": text,
        "color": color,
        "city": city,
        "date_iso": date_iso,
        "time": time,
        "weather": weather,
    }
