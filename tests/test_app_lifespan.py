import logging

import httpx
from fastapi.testclient import TestClient

import src.calendar_api.main as main_module
from src.calendar_api.main import app
from src.calendar_api.repositories import get_repository

from conftest import make_reminder


def open_meteo(request: httpx.Request) -> httpx.Response:
    if request.url.host == "geo.test":
        return httpx.Response(200, json={"results": [{"latitude": 51.5, "longitude": -0.12}]})
    return httpx.Response(200, json={
        "hourly": {"time": ["2024-03-01T07:00", "2024-03-01T08:00"], "weathercode": [0, 61.0]},
    })


class TestApplicationLifespan:
    def test_shared_client_and_change_logging(self, repo, monkeypatch, caplog):
        monkeypatch.setenv("GEOCODING_URL", "https://geo.test/v1/search")
        monkeypatch.setenv("FORECAST_URL", "https://forecast.test/v1/forecast")
        clients = []

        def build_client():
            client = httpx.AsyncClient(transport=httpx.MockTransport(open_meteo))
            clients.append(client)
            return client

        monkeypatch.setattr(main_module, "build_http_client", build_client)
        monkeypatch.setattr(main_module, "get_repository", lambda: repo)
        app.dependency_overrides[get_repository] = lambda: repo
        caplog.set_level(logging.DEBUG, logger=main_module.__name__)

        try:
            with TestClient(app) as client:
                res = client.post(
                    "/api/v1/reminders/",
                    json={"text": "Buy milk", "city": "London", "date": "2024-03-01", "time": "07:30"},
                )
                assert res.status_code == 201
                assert res.json()["weather"] == "Rain"
                assert len(clients) == 1
                assert "Reminder store changed (add)" in caplog.text
        finally:
            app.dependency_overrides.clear()

        assert clients[0].is_closed
        caplog.clear()
        repo.add(make_reminder("after-shutdown"))
        assert "Reminder store changed" not in caplog.text
