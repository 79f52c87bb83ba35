"""Data models for the dashboard aggregation layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Direction = Literal["up", "down", "flat"]


@dataclass(frozen=True)
class Category:
    """A news category offered to the dashboard."""

    id: str
    label: str

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {"id": self.id, "label": self.label}


@dataclass(frozen=True)
class Location:
    """A named weather location."""

    id: str
    label: str
    lat: float
    lon: float

    def to_dict(self) -> dict:
        """Serialize the public part (coordinates stay server-side)."""
        return {"id": self.id, "label": self.label}


@dataclass
class FetchResult:
    """Decoded body of a successful HTTP GET."""

    url: str
    text: str
    charset: str  # Codec actually used for decoding
    status_code: int = 200


@dataclass(frozen=True)
class FeedFailure:
    """One source that could not contribute to an aggregate."""

    source_url: str
    error: str

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {"url": self.source_url, "error": self.error}


@dataclass(frozen=True)
class NewsItem:
    """A single normalized feed entry."""

    title: str
    link: str
    published_ms: int  # Epoch millis, 0 when unknown
    source: str  # "연합뉴스", feed title, ...
    excerpt: str
    image_url: str | None = None
    published_raw: str | None = None  # Date string as the feed gave it

    @property
    def dedup_key(self) -> str:
        """Link, or ``source:title`` when the entry has no link."""
        return self.link or f"{self.source}:{self.title}"

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "title": self.title,
            "link": self.link,
            "published_ms": self.published_ms,
            "published_raw": self.published_raw,
            "source": self.source,
            "excerpt": self.excerpt,
            "image": self.image_url,
        }


@dataclass(frozen=True)
class NewsAggregate:
    """Deduplicated, ranked news for one category."""

    category: Category
    as_of: str
    items: tuple[NewsItem, ...] = ()
    feed_count: int = 0
    failure_count: int = 0
    sample_failures: tuple[FeedFailure, ...] = ()

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "category": self.category.to_dict(),
            "as_of": self.as_of,
            "items": [item.to_dict() for item in self.items],
            "meta": {
                "feed_count": self.feed_count,
                "failure_count": self.failure_count,
                "failures": [f.to_dict() for f in self.sample_failures],
            },
        }


@dataclass
class EquityCandidate:
    """An equity picked from a listing page."""

    code: str  # 6-digit KRX code
    name: str
    trading_value: float | None = None  # Absent for the static fallback list

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {"code": self.code, "name": self.name, "trading_value": self.trading_value}


@dataclass(frozen=True)
class EquityQuote:
    """Latest quote for one equity. Every numeric field may be absent."""

    code: str
    quote_url: str
    name: str = ""
    price: float | None = None  # KRW
    change_amount: float | None = None  # KRW, unsigned
    change_percent: float | None = None  # Unsigned percent
    direction: Direction | None = None
    error: str | None = None  # Set when the quote page could not be fetched

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        data = {
            "code": self.code,
            "name": self.name,
            "price_krw": self.price,
            "change_krw": self.change_amount,
            "change_pct": self.change_percent,
            "direction": self.direction,
            "link": self.quote_url,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class FxRate:
    """A USD/KRW rate, or a placeholder carrying the error that replaced it."""

    rate: float | None
    as_of: str
    source: str | None = None  # "NAVER" or "ER-API"
    base: str = "USD"
    quote: str = "KRW"
    error: str | None = None

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        data = {
            "base": self.base,
            "quote": self.quote,
            "usd_krw": self.rate,
            "as_of": self.as_of,
            "source": self.source,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class StocksSnapshot:
    """Top traded equities with their quotes and the FX rate."""

    as_of: str
    fx: FxRate
    items: tuple[EquityQuote, ...] = ()

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "as_of": self.as_of,
            "fx": self.fx.to_dict(),
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class CurrentConditions:
    """Current weather plus best-effort air quality."""

    temp_c: float | None = None
    feels_c: float | None = None
    wind_ms: float | None = None
    humidity_pct: float | None = None
    precip_mm: float | None = None
    precip_prob_pct: float | None = None
    code: int | None = None
    text: str = ""
    pm10: float | None = None
    pm2_5: float | None = None
    aq_as_of: str | None = None

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "temp_c": self.temp_c,
            "feels_c": self.feels_c,
            "wind_ms": self.wind_ms,
            "humidity_pct": self.humidity_pct,
            "precip_mm": self.precip_mm,
            "precip_prob_pct": self.precip_prob_pct,
            "code": self.code,
            "text": self.text,
            "pm10": self.pm10,
            "pm2_5": self.pm2_5,
            "aq_as_of": self.aq_as_of,
        }


@dataclass(frozen=True)
class DailyForecast:
    """One day of the outlook."""

    date: str
    t_max: float | None
    t_min: float | None
    code: int | None
    text: str

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "date": self.date,
            "tmax": self.t_max,
            "tmin": self.t_min,
            "code": self.code,
            "text": self.text,
        }


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions and a short daily outlook for one location."""

    location: Location
    as_of: str
    current: CurrentConditions
    daily: tuple[DailyForecast, ...] = ()

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "loc": self.location.to_dict(),
            "as_of": self.as_of,
            "current": self.current.to_dict(),
            "daily": [d.to_dict() for d in self.daily],
        }
