"""Tests for the FastAPI REST API."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from local_feed.api.server import app
from local_feed.errors import UpstreamExhausted
from local_feed.models import (
    Category,
    CurrentConditions,
    EquityQuote,
    FeedFailure,
    FxRate,
    Location,
    NewsAggregate,
    NewsItem,
    StocksSnapshot,
    WeatherSnapshot,
)

client = TestClient(app)


def _mock_service(**methods: object) -> MagicMock:
    service = MagicMock()
    for name, value in methods.items():
        if isinstance(value, Exception):
            setattr(service, name, AsyncMock(side_effect=value))
        else:
            setattr(service, name, AsyncMock(return_value=value))
    return service


# ---------------------------------------------------------------------------
# Health and meta
# ---------------------------------------------------------------------------


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "service": "local-feed"}


def test_meta():
    resp = client.get("/api/meta")
    assert resp.status_code == 200
    data = resp.json()
    assert data["categories"][0] == {"id": "all", "label": "전체"}
    assert len(data["categories"]) == 8
    assert {"id": "seoul", "label": "서울"} in data["locations"]
    assert len(data["locations"]) == 14


# ---------------------------------------------------------------------------
# GET /api/news
# ---------------------------------------------------------------------------


def test_news_success():
    aggregate = NewsAggregate(
        category=Category("economy", "경제"),
        as_of="2024-05-01T10:00:00+00:00",
        items=(
            NewsItem(
                title="코스피 상승",
                link="https://news.example/1",
                published_ms=1714557600000,
                source="경제 속보",
                excerpt="",
            ),
        ),
        feed_count=6,
        failure_count=1,
        sample_failures=(FeedFailure("https://down.example/rss", "HTTP 503 | x"),),
    )
    service = _mock_service(news=aggregate)

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/news", params={"category": "economy"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["category"]["id"] == "economy"
    assert data["items"][0]["title"] == "코스피 상승"
    assert data["meta"]["failure_count"] == 1
    assert data["meta"]["failures"][0]["url"] == "https://down.example/rss"
    service.news.assert_awaited_once_with("economy")


def test_news_defaults_to_all():
    aggregate = NewsAggregate(category=Category("all", "전체"), as_of="now")
    service = _mock_service(news=aggregate)

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/news")

    assert resp.status_code == 200
    service.news.assert_awaited_once_with("all")


# ---------------------------------------------------------------------------
# GET /api/weather
# ---------------------------------------------------------------------------


def test_weather_success():
    snapshot = WeatherSnapshot(
        location=Location("busan", "부산", 35.1796, 129.0756),
        as_of="2024-05-01T10:00",
        current=CurrentConditions(temp_c=19.0, text="맑음"),
    )
    service = _mock_service(weather=snapshot)

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/weather", params={"loc": "busan"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["loc"] == {"id": "busan", "label": "부산"}
    assert data["current"]["temp_c"] == 19.0
    service.weather.assert_awaited_once_with("busan")


def test_weather_failure():
    service = _mock_service(weather=RuntimeError("forecast down"))

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/weather")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "forecast down"


# ---------------------------------------------------------------------------
# GET /api/stocks and /api/fx
# ---------------------------------------------------------------------------


def test_stocks_with_missing_fx():
    snapshot = StocksSnapshot(
        as_of="2024-05-01T10:00:00+00:00",
        fx=FxRate(rate=None, as_of="now", error="FX fallback failed"),
        items=(
            EquityQuote(
                code="005930",
                name="삼성전자",
                quote_url="https://finance.naver.com/item/main.naver?code=005930",
                price=72300,
                change_amount=1200,
                change_percent=1.69,
                direction="up",
            ),
        ),
    )
    service = _mock_service(stocks=snapshot)

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/stocks")

    assert resp.status_code == 200
    data = resp.json()
    assert data["fx"]["usd_krw"] is None
    assert data["items"][0]["price_krw"] == 72300
    assert data["items"][0]["direction"] == "up"


def test_fx_success():
    service = _mock_service(fx=FxRate(rate=1385.5, as_of="now", source="NAVER"))

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/fx")

    assert resp.status_code == 200
    assert resp.json()["usd_krw"] == 1385.5
    assert resp.json()["source"] == "NAVER"


def test_fx_failure():
    error = UpstreamExhausted("FX fallback failed | NAVER: x | ER-API: y")
    service = _mock_service(fx=error)

    with patch("local_feed.api.server.get_service", return_value=service):
        resp = client.get("/api/fx")

    assert resp.status_code == 500
    detail = resp.json()["detail"]
    assert "NAVER" in detail
    assert "ER-API" in detail
