"""Open-Meteo forecast and air-quality client."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence
from urllib.parse import urlencode

from local_feed import config
from local_feed.http.fetcher import TextFetcher
from local_feed.models import CurrentConditions, DailyForecast, Location, WeatherSnapshot

logger = logging.getLogger(__name__)

TIMEZONE = "Asia/Seoul"
OUTLOOK_DAYS = 5

# WMO weather interpretation codes.
WEATHER_CODE_TEXT: dict[int, str] = {
    0: "맑음",
    1: "대체로 맑음",
    2: "부분적으로 흐림",
    3: "흐림",
    45: "안개",
    48: "서리 안개",
    51: "약한 이슬비",
    53: "이슬비",
    55: "강한 이슬비",
    61: "약한 비",
    63: "비",
    65: "강한 비",
    71: "약한 눈",
    73: "눈",
    75: "강한 눈",
    80: "약한 소나기",
    81: "소나기",
    82: "강한 소나기",
    95: "뇌우",
    96: "뇌우(우박 가능)",
    99: "강한 뇌우(우박 가능)",
}


def weather_code_text(code: int | None) -> str:
    if code is None:
        return ""
    return WEATHER_CODE_TEXT.get(code, f"코드 {code}")


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def nearest_index_by_time(times: Sequence[Any] | None, target: Any) -> int:
    """Index of the timestamp closest to ``target``; 0 when undecidable."""
    if not times:
        return 0
    target_dt = _parse_time(target)
    if target_dt is None:
        return 0

    best, best_diff = 0, None
    for i, value in enumerate(times):
        dt = _parse_time(value)
        if dt is None:
            continue
        diff = abs((dt - target_dt).total_seconds())
        if best_diff is None or diff < best_diff:
            best, best_diff = i, diff
    return best


def _at(values: Any, index: int) -> Any:
    if isinstance(values, list) and 0 <= index < len(values):
        return values[index]
    return None


def forecast_url(location: Location) -> str:
    params = {
        "latitude": location.lat,
        "longitude": location.lon,
        "current": (
            "temperature_2m,apparent_temperature,weather_code,"
            "wind_speed_10m,relative_humidity_2m,precipitation"
        ),
        "hourly": "precipitation_probability",
        "daily": "temperature_2m_max,temperature_2m_min,weather_code",
        "timezone": TIMEZONE,
    }
    return f"{config.FORECAST_URL}?{urlencode(params)}"


def air_quality_url(location: Location) -> str:
    params = {
        "latitude": location.lat,
        "longitude": location.lon,
        "current": "pm10,pm2_5",
        "timezone": TIMEZONE,
    }
    return f"{config.AIR_QUALITY_URL}?{urlencode(params)}"


def build_snapshot(
    location: Location, forecast: dict, air_quality: dict | None
) -> WeatherSnapshot:
    """Assemble a snapshot from raw Open-Meteo payloads."""
    current = forecast.get("current") or {}
    daily = forecast.get("daily") or {}
    hourly = forecast.get("hourly") or {}
    aq = (air_quality or {}).get("current") or {}

    idx = nearest_index_by_time(hourly.get("time"), current.get("time"))
    code = current.get("weather_code")

    conditions = CurrentConditions(
        temp_c=current.get("temperature_2m"),
        feels_c=current.get("apparent_temperature"),
        wind_ms=current.get("wind_speed_10m"),
        humidity_pct=current.get("relative_humidity_2m"),
        precip_mm=current.get("precipitation"),
        precip_prob_pct=_at(hourly.get("precipitation_probability"), idx),
        code=code,
        text=weather_code_text(code),
        pm10=aq.get("pm10"),
        pm2_5=aq.get("pm2_5"),
        aq_as_of=aq.get("time"),
    )

    outlook: list[DailyForecast] = []
    times = daily.get("time")
    if isinstance(times, list):
        for i, day in enumerate(times[:OUTLOOK_DAYS]):
            day_code = _at(daily.get("weather_code"), i)
            outlook.append(
                DailyForecast(
                    date=day,
                    t_max=_at(daily.get("temperature_2m_max"), i),
                    t_min=_at(daily.get("temperature_2m_min"), i),
                    code=day_code,
                    text=weather_code_text(day_code),
                )
            )

    return WeatherSnapshot(
        location=location,
        as_of=current.get("time") or datetime.now().isoformat(timespec="minutes"),
        current=conditions,
        daily=tuple(outlook),
    )


class WeatherClient:
    """Fetches forecast and air quality for configured locations."""

    def __init__(self, fetcher: TextFetcher, timeout: float | None = None) -> None:
        self.fetcher = fetcher
        self.timeout = timeout

    async def _air_quality(self, location: Location) -> dict | None:
        try:
            return await self.fetcher.fetch_json(air_quality_url(location), self.timeout)
        except Exception as e:
            logger.warning("Air quality unavailable for %s: %s", location.id, e)
            return None

    async def snapshot(self, location_id: str) -> WeatherSnapshot:
        """Weather for a location id; unknown ids use the default location.

        Air-quality failures only blank the pm fields. A forecast failure
        propagates.
        """
        location = config.find_location(location_id)
        forecast = await self.fetcher.fetch_json(forecast_url(location), self.timeout)
        if not isinstance(forecast, dict):
            forecast = {}
        air_quality = await self._air_quality(location)
        if not isinstance(air_quality, dict):
            air_quality = None
        return build_snapshot(location, forecast, air_quality)
