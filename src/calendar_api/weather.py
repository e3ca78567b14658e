"""
Weather annotation for reminders.

A reminder's city and local date/time are resolved to one weather category in two
sequential lookups against Open-Meteo style endpoints:

1. GeocoderClient: city name -> coordinates (single best match)
2. ForecastResolver: coordinates + day + time -> hourly weather code -> category

WeatherSummary chains both and turns every failure into None ("no data"), so a
missing forecast never blocks saving a reminder.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from .settings import get_settings
from .utils import day_key

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

# WMO weather interpretation codes -> category
_CODE_CATEGORIES: Dict[int, str] = {
    0: "Clear",
    1: "Clouds",
    2: "Clouds",
    3: "Clouds",
    45: "Fog",
    48: "Fog",
    51: "Drizzle",
    53: "Drizzle",
    55: "Drizzle",
    56: "Drizzle",
    57: "Drizzle",
    61: "Rain",
    63: "Rain",
    65: "Rain",
    66: "Rain",
    67: "Rain",
    71: "Snow",
    73: "Snow",
    75: "Snow",
    77: "Snow",
    80: "Rain showers",
    81: "Rain showers",
    82: "Rain showers",
    85: "Snow showers",
    86: "Snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm",
    99: "Thunderstorm",
}

# Ordered: more specific labels are matched first
_CATEGORY_ICONS = (
    ("clear", "☀️"),
    ("cloud", "☁️"),
    ("drizzle", "🌦️"),
    ("rain showers", "🌦️"),
    ("rain", "🌧️"),
    ("snow showers", "🌨️"),
    ("snow", "🌨️"),
    ("fog", "🌫️"),
    ("thunder", "⛈️"),
)
_DEFAULT_ICON = "🌡️"


# PUBLIC_INTERFACE
def weather_category(code: Any) -> str:
    """
    Map a WMO weather code to its category label.

    Total over all inputs: unmapped codes (and a missing code) give 'Unknown'.
    Integral floats such as 61.0 map like their int value.
    """
    if isinstance(code, float) and code.is_integer():
        code = int(code)
    if isinstance(code, bool) or not isinstance(code, int):
        return UNKNOWN
    return _CODE_CATEGORIES.get(code, UNKNOWN)


# PUBLIC_INTERFACE
def weather_icon(category: Optional[str]) -> str:
    """Return a display glyph for a weather category; a thermometer when unrecognized."""
    s = (category or "").lower()
    for needle, icon in _CATEGORY_ICONS:
        if needle in s:
            return icon
    return _DEFAULT_ICON


# PUBLIC_INTERFACE
def round_to_nearest_hour(hhmm: str) -> str:
    """
    Round 'HH:MM' to the nearest full hour as 'HH:00'.

    Minutes >= 30 round up and 23 wraps to 00 (the caller's date is not advanced).
    """
    hours, _, minutes = hhmm.partition(":")
    h = int(hours)
    m = int(minutes or "0")
    if m >= 30:
        h = (h + 1) % 24
    return f"{h:02d}:00"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


# PUBLIC_INTERFACE
class GeocoderClient:
    """Resolves a free-text city name to coordinates."""

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url

    async def resolve(self, city: str) -> Optional[Coordinates]:
        """
        Return the coordinates of the single best match for city.

        Returns None when nothing matched or the lookup failed for any reason.
        """
        name = city.strip()
        if not name:
            return None
        params = {"name": name, "count": 1, "language": "en", "format": "json"}
        try:
            r = await self._client.get(self._base_url, params=params)
            r.raise_for_status()
            data = r.json()
            results = data.get("results") or []
            if not results:
                logger.info(f"No geocoding match for '{name}'")
                return None
            top = results[0]
            return Coordinates(latitude=float(top["latitude"]), longitude=float(top["longitude"]))
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Geocode failed for '{name}': {e}")
            return None


# PUBLIC_INTERFACE
class ForecastResolver:
    """
    Picks the weather category of one hour from a single-day hourly forecast.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url

    async def _fetch_hourly(self, coords: Coordinates, day: str) -> Optional[Dict[str, Any]]:
        params = {
            "latitude": coords.latitude,
            "longitude": coords.longitude,
            "hourly": "weathercode",
            "timezone": "auto",
            "start_date": day,
            "end_date": day,
        }
        try:
            r = await self._client.get(self._base_url, params=params)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Forecast fetch failed for {coords} on {day}: {e}")
            return None
        hourly = data.get("hourly") if isinstance(data, dict) else None
        return hourly if isinstance(hourly, dict) else None

    async def resolve(self, coords: Coordinates, date_iso: str, time: str) -> Optional[str]:
        """
        Return the weather category for the hour nearest to time on date_iso.

        Uses the exact 'YYYY-MM-DDTHH:00' entry when present; otherwise the entry
        closest in time (the first one scanned wins a tie). Returns None when the
        forecast has no series or cannot be fetched.
        """
        day = day_key(date_iso)
        hh = round_to_nearest_hour(time)
        target_key = f"{day}T{hh}"

        hourly = await self._fetch_hourly(coords, day)
        if hourly is None:
            return None
        times: List[str] = hourly.get("time") or []
        codes: List[Any] = hourly.get("weathercode") or []

        if target_key in times:
            idx = times.index(target_key)
            if idx < len(codes) and codes[idx] is not None:
                logger.debug(f"Exact forecast hour {target_key}: code {codes[idx]}")
                return weather_category(codes[idx])

        if times and codes:
            target = datetime.fromisoformat(f"{day}T{hh}")
            best = 0
            best_diff = None
            for i, t in enumerate(times):
                # Unreadable or timezone-aware stamps never become the nearest entry
                try:
                    diff = abs((datetime.fromisoformat(t) - target).total_seconds())
                except (TypeError, ValueError):
                    logger.debug(f"Skipping unreadable forecast time {t!r}")
                    continue
                if best_diff is None or diff < best_diff:
                    best_diff = diff
                    best = i
            code = codes[best] if best < len(codes) else None
            logger.debug(f"Nearest forecast hour to {target_key} is {times[best]}: code {code}")
            return weather_category(code)

        return None


# PUBLIC_INTERFACE
class WeatherSummary:
    """
    Geocode a city, then resolve its forecast. Never raises.
    """

    def __init__(self, geocoder: GeocoderClient, forecast: ForecastResolver) -> None:
        self._geocoder = geocoder
        self._forecast = forecast

    @classmethod
    def from_client(cls, client: httpx.AsyncClient) -> "WeatherSummary":
        """Build the pipeline on a shared HTTP client using configured endpoints."""
        settings = get_settings()
        return cls(
            GeocoderClient(client, settings.geocoding_url),
            ForecastResolver(client, settings.forecast_url),
        )

    async def summarize(self, city: str, date_iso: str, time: str) -> Optional[str]:
        """
        Return the weather category for city at date_iso/time, or None for "no data".
        """
        try:
            coords = await self._geocoder.resolve(city)
            if coords is None:
                return None
            return await self._forecast.resolve(coords, date_iso, time)
        except Exception as e:
            logger.warning(f"Weather summary failed for '{city}' on {date_iso} {time}: {e}")
            return None


# PUBLIC_INTERFACE
def build_http_client() -> httpx.AsyncClient:
    """Create the shared async HTTP client used for weather lookups."""
    return httpx.AsyncClient(timeout=get_settings().weather_timeout_seconds)
