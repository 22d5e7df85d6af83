"""Fixtures compartidas."""
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from data_acquisition import ApiDataSource
from models import Event

NOW = datetime(2024, 1, 2, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_event(now):
    """Evento a `hours` horas antes de now."""
    def _make(hours: float, state: bool = True) -> Event:
        return Event(timestamp=now - timedelta(hours=hours), state=state)
    return _make


@pytest.fixture
def api_payloads():
    return {
        "/registers": [
            {"device_id": 1, "timestamp": "2024-01-02T09:00:00Z", "state": True},
            {"device_id": 1, "timestamp": "2024-01-02T09:30:00.250Z", "state": False},
            {"device_id": 1, "timestamp": "2024-01-01T08:00:00+00:00", "state": True},
        ],
        "/lamp-on-time": {"totalOnTimeLast24Hours": 5400},
        "/monthly-consumption": {
            "monthlyAverageConsumption": 1.234567891,
            "monthlyCost": 0.987654321,
        },
        "/soil-moisture-data": [{"device_id": 1, "soil_moisture": 41.5}],
        "/light-sensor-data": [{"device_id": 2, "light_level": 300}],
        "/temperature-data": [{"device_id": 3, "temperature": 21.0}],
    }


@pytest.fixture
def make_source(api_payloads):
    """ApiDataSource sobre un transporte simulado.

    `overrides` permite sustituir la respuesta de una ruta por un
    httpx.Response o una excepción.
    """
    def _make(**overrides):
        routes = dict(api_payloads)
        routes.update({"/" + k.replace("_", "-"): v for k, v in overrides.items()})

        def handler(request: httpx.Request) -> httpx.Response:
            target = routes.get(request.url.path)
            if isinstance(target, Exception):
                raise target
            if isinstance(target, httpx.Response):
                return target
            if target is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, content=json.dumps(target))

        client = httpx.Client(
            base_url="http://api.test", transport=httpx.MockTransport(handler)
        )
        return ApiDataSource(base_url="http://api.test", client=client)
    return _make
