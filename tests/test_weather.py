import asyncio

import httpx

from src.calendar_api.weather import (
    Coordinates,
    ForecastResolver,
    GeocoderClient,
    WeatherSummary,
    round_to_nearest_hour,
    weather_category,
    weather_icon,
)

GEO_URL = "https://geo.test/v1/search"
FORECAST_URL = "https://forecast.test/v1/forecast"

CATEGORIES = {
    "Clear", "Clouds", "Fog", "Drizzle", "Rain", "Snow",
    "Rain showers", "Snow showers", "Thunderstorm", "Unknown",
}


class FakeOpenMeteo:
    """MockTransport handler serving canned geocoding and forecast bodies."""

    def __init__(self, geo=None, forecast=None, geo_status=200, forecast_status=200):
        self.geo = {"results": [{"name": "London", "latitude": 51.5, "longitude": -0.12}]} if geo is None else geo
        self.forecast = {} if forecast is None else forecast
        self.geo_status = geo_status
        self.forecast_status = forecast_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "geo.test":
            return httpx.Response(self.geo_status, json=self.geo)
        return httpx.Response(self.forecast_status, json=self.forecast)


def hourly(times, codes):
    return {"hourly": {"time": times, "weathercode": codes}}


def summarize(handler, city="London", date_iso="2024-03-01T00:00:00.000Z", time="07:30"):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            summary = WeatherSummary(GeocoderClient(client, GEO_URL), ForecastResolver(client, FORECAST_URL))
            return await summary.summarize(city, date_iso, time)

    return asyncio.run(run())


class TestCategoryMapping:
    def test_known_codes(self):
        assert weather_category(0) == "Clear"
        assert [weather_category(c) for c in (1, 2, 3)] == ["Clouds"] * 3
        assert weather_category(48) == "Fog"
        assert weather_category(57) == "Drizzle"
        assert weather_category(65) == "Rain"
        assert weather_category(77) == "Snow"
        assert weather_category(81) == "Rain showers"
        assert weather_category(86) == "Snow showers"
        assert weather_category(99) == "Thunderstorm"

    def test_mapping_is_total(self):
        for code in range(-10, 300):
            assert weather_category(code) in CATEGORIES
        assert weather_category(4) == "Unknown"
        assert weather_category(None) == "Unknown"

    def test_integral_float_codes(self):
        assert weather_category(61.0) == "Rain"
        assert weather_category(0.0) == "Clear"
        assert weather_category(61.5) == "Unknown"
        assert weather_category(True) == "Unknown"
        assert weather_category("61") == "Unknown"

    def test_icons(self):
        assert weather_icon("Rain showers") == "🌦️"
        assert weather_icon("Rain") == "🌧️"
        assert weather_icon("Snow showers") == "🌨️"
        assert weather_icon("Unknown") == "🌡️"
        assert weather_icon(None) == "🌡️"


class TestRounding:
    def test_round_to_nearest_hour(self):
        assert round_to_nearest_hour("07:29") == "07:00"
        assert round_to_nearest_hour("07:30") == "08:00"
        assert round_to_nearest_hour("00:00") == "00:00"
        assert round_to_nearest_hour("23:45") == "00:00"
        assert round_to_nearest_hour("9") == "09:00"


class TestForecastSelection:
    def test_exact_hour_match(self):
        handler = FakeOpenMeteo(forecast=hourly(
            ["2024-03-01T07:00", "2024-03-01T08:00", "2024-03-01T09:00"], [0, 61, 3],
        ))
        assert summarize(handler, time="07:45") == "Rain"

    def test_request_parameters(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T08:00"], [0]))
        summarize(handler, city=" London ")

        geo_req, forecast_req = handler.requests
        assert geo_req.url.params["name"] == "London"
        assert geo_req.url.params["count"] == "1"
        assert geo_req.url.params["language"] == "en"
        assert forecast_req.url.params["latitude"] == "51.5"
        assert forecast_req.url.params["longitude"] == "-0.12"
        assert forecast_req.url.params["hourly"] == "weathercode"
        assert forecast_req.url.params["timezone"] == "auto"
        assert forecast_req.url.params["start_date"] == "2024-03-01"
        assert forecast_req.url.params["end_date"] == "2024-03-01"

    def test_nearest_hour_fallback(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T06:00", "2024-03-01T09:00"], [61, 71]))
        assert summarize(handler, time="08:10") == "Snow"

    def test_equal_distance_keeps_first_seen(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T06:00", "2024-03-01T08:00"], [61, 0]))
        assert summarize(handler, time="07:00") == "Rain"

    def test_unreadable_times_are_skipped_in_fallback(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T06:00", "garbage", None], [61, 0, 3]))
        assert summarize(handler, time="07:00") == "Rain"

    def test_aware_times_are_skipped_in_fallback(self):
        handler = FakeOpenMeteo(forecast=hourly(
            ["2024-03-01T07:00+00:00", "2024-03-01T05:00"], [0, 45],
        ))
        assert summarize(handler, time="07:00") == "Fog"

    def test_exact_hour_with_null_code_falls_back(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T07:00", "2024-03-01T08:00"], [None, 3]))
        # The nearest entry is the target hour itself, whose code is missing
        assert summarize(handler, time="07:00") == "Unknown"

    def test_empty_series_is_no_data(self):
        assert summarize(FakeOpenMeteo(forecast=hourly([], []))) is None
        assert summarize(FakeOpenMeteo(forecast={"latitude": 51.5})) is None

    def test_forecast_http_error_is_no_data(self):
        assert summarize(FakeOpenMeteo(forecast={"error": True}, forecast_status=500)) is None

    def test_resolver_directly(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T00:00"], [95]))

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                resolver = ForecastResolver(client, FORECAST_URL)
                return await resolver.resolve(Coordinates(1.0, 2.0), "2024-03-01", "23:50")

        assert asyncio.run(run()) == "Thunderstorm"


class TestGeocodingFailures:
    def test_no_match_skips_forecast(self):
        handler = FakeOpenMeteo(geo={"generationtime_ms": 0.5})
        assert summarize(handler, city="Nowhereville") is None
        assert len(handler.requests) == 1

    def test_geocoder_http_error(self):
        handler = FakeOpenMeteo(geo={"reason": "boom"}, geo_status=503)
        assert summarize(handler) is None

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert summarize(handler) is None

    def test_malformed_body(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        assert summarize(handler) is None

    def test_blank_city_makes_no_request(self):
        handler = FakeOpenMeteo()
        assert summarize(handler, city="   ") is None
        assert handler.requests == []


class TestSummaryNeverRaises:
    def test_unexpected_exception_becomes_no_data(self):
        class ExplodingGeocoder:
            async def resolve(self, city):
                raise RuntimeError("unexpected")

        summary = WeatherSummary(ExplodingGeocoder(), None)
        assert asyncio.run(summary.summarize("London", "2024-03-01", "07:30")) is None

    def test_bad_time_becomes_no_data(self):
        handler = FakeOpenMeteo(forecast=hourly(["2024-03-01T07:00"], [0]))
        assert summarize(handler, time="seven") is None
