"""Tests for the weather client."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from local_feed.config import find_location
from local_feed.errors import NetworkError
from local_feed.http.fetcher import TextFetcher
from local_feed.weather.client import (
    WeatherClient,
    forecast_url,
    nearest_index_by_time,
    weather_code_text,
)

FORECAST = {
    "current": {
        "time": "2024-05-01T10:15",
        "temperature_2m": 18.4,
        "apparent_temperature": 17.9,
        "weather_code": 3,
        "wind_speed_10m": 2.1,
        "relative_humidity_2m": 55,
        "precipitation": 0.0,
    },
    "hourly": {
        "time": ["2024-05-01T09:00", "2024-05-01T10:00", "2024-05-01T11:00"],
        "precipitation_probability": [10, 20, 30],
    },
    "daily": {
        "time": [f"2024-05-0{d}" for d in range(1, 8)],
        "temperature_2m_max": [20, 21, 22, 23, 24, 25, 26],
        "temperature_2m_min": [10, 11, 12, 13, 14, 15, 16],
        "weather_code": [0, 1, 2, 3, 61, 63, 65],
    },
}

AIR_QUALITY = {"current": {"time": "2024-05-01T10:00", "pm10": 42.0, "pm2_5": 18.5}}


def _make_transport(routes: dict[str, object]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        for pattern, response in routes.items():
            if pattern in url:
                if isinstance(response, type) and issubclass(response, Exception):
                    raise response("simulated", request=request)
                return response
        return httpx.Response(404, text="Not found")

    return httpx.MockTransport(handler)


def _make_client(routes: dict[str, object]) -> WeatherClient:
    client = httpx.AsyncClient(transport=_make_transport(routes))
    return WeatherClient(TextFetcher(client=client, timeout=1.0))


class TestHelpers:
    def test_nearest_index(self) -> None:
        times = ["2024-05-01T09:00", "2024-05-01T10:00", "2024-05-01T11:00"]
        assert nearest_index_by_time(times, "2024-05-01T10:20") == 1
        assert nearest_index_by_time(times, "2024-05-01T10:45") == 2

    def test_nearest_index_undecidable(self) -> None:
        assert nearest_index_by_time([], "2024-05-01T10:00") == 0
        assert nearest_index_by_time(["2024-05-01T10:00"], None) == 0

    def test_code_text(self) -> None:
        assert weather_code_text(0) == "맑음"
        assert weather_code_text(42) == "코드 42"
        assert weather_code_text(None) == ""

    def test_forecast_url(self) -> None:
        url = forecast_url(find_location("busan"))
        assert "/v1/forecast?" in url
        assert "latitude=35.1796" in url
        assert "timezone=Asia%2FSeoul" in url


class TestSnapshot:
    def test_full_snapshot(self) -> None:
        client = _make_client(
            {
                "/v1/forecast": httpx.Response(200, json=FORECAST),
                "/v1/air-quality": httpx.Response(200, json=AIR_QUALITY),
            }
        )

        snap = asyncio.run(client.snapshot("seoul"))

        assert snap.location.id == "seoul"
        assert snap.as_of == "2024-05-01T10:15"
        assert snap.current.temp_c == 18.4
        assert snap.current.text == "흐림"
        assert snap.current.precip_prob_pct == 20
        assert snap.current.pm10 == 42.0
        assert snap.current.pm2_5 == 18.5
        assert len(snap.daily) == 5
        assert snap.daily[4].text == "약한 비"
        assert snap.to_dict()["daily"][0]["tmax"] == 20

    def test_air_quality_failure_blanks_pm(self) -> None:
        client = _make_client(
            {
                "/v1/forecast": httpx.Response(200, json=FORECAST),
                "/v1/air-quality": httpx.ConnectError,
            }
        )

        snap = asyncio.run(client.snapshot("jeju"))

        assert snap.location.id == "jeju"
        assert snap.current.temp_c == 18.4
        assert snap.current.pm10 is None
        assert snap.current.pm2_5 is None

    def test_unknown_location_uses_default(self) -> None:
        client = _make_client(
            {
                "/v1/forecast": httpx.Response(200, json=FORECAST),
                "/v1/air-quality": httpx.Response(200, json=AIR_QUALITY),
            }
        )
        snap = asyncio.run(client.snapshot("atlantis"))
        assert snap.location.id == "seoul"

    def test_forecast_failure_propagates(self) -> None:
        client = _make_client({"/v1/forecast": httpx.Response(502)})
        with pytest.raises(NetworkError):
            asyncio.run(client.snapshot("seoul"))
