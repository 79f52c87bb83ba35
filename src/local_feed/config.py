"""Static configuration and runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import quote

from local_feed.models import Category, EquityCandidate, Location

CATEGORIES: list[Category] = [
    Category("all", "전체"),
    Category("politics", "정치"),
    Category("economy", "경제"),
    Category("society", "사회"),
    Category("culture", "생활/문화"),
    Category("sports", "스포츠"),
    Category("it", "IT/과학"),
    Category("world", "세계"),
]

LOCATIONS: list[Location] = [
    Location("seoul", "서울", 37.5665, 126.9780),
    Location("busan", "부산", 35.1796, 129.0756),
    Location("daegu", "대구", 35.8714, 128.6014),
    Location("incheon", "인천", 37.4563, 126.7052),
    Location("gwangju", "광주", 35.1595, 126.8526),
    Location("daejeon", "대전", 36.3504, 127.3845),
    Location("ulsan", "울산", 35.5384, 129.3114),
    Location("sejong", "세종", 36.4800, 127.2890),
    Location("suwon", "수원", 37.2636, 127.0286),
    Location("chuncheon", "춘천", 37.8813, 127.7298),
    Location("cheongju", "청주", 36.6424, 127.4890),
    Location("jeonju", "전주", 35.8242, 127.1480),
    Location("changwon", "창원", 35.2270, 128.6811),
    Location("jeju", "제주", 33.4996, 126.5312),
]

DEFAULT_CATEGORY = "all"

_GOOGLE_BASE = "https://news.google.com/rss"
_GOOGLE_REGION = "hl=ko&gl=KR&ceid=KR:ko"


def _google_topic(topic: str) -> str:
    return f"{_GOOGLE_BASE}/headlines/section/topic/{topic}?{_GOOGLE_REGION}"


def _google_search(query: str) -> str:
    return f"{_GOOGLE_BASE}/search?q={quote(query)}&{_GOOGLE_REGION}"


# Domestic publishers change their RSS policy often (blocks, redirects to
# HTML pages), so every category lists several independent sources.
FEEDS_BY_CATEGORY: dict[str, list[str]] = {
    "all": [
        f"{_GOOGLE_BASE}?{_GOOGLE_REGION}",
        "https://www.mk.co.kr/rss/40300001/",
        "https://www.khan.co.kr/rss/rssdata/total_news.xml",
        "http://www.hani.co.kr/rss/",
        "http://rss.donga.com/total.xml",
        "http://rss.joins.com/joins_news_list.xml",
    ],
    "politics": [
        _google_search("정치"),
        "https://www.mk.co.kr/rss/30200030/",
        "https://www.khan.co.kr/rss/rssdata/politic_news.xml",
        "http://www.hani.co.kr/rss/politics/",
        "http://rss.donga.com/politics.xml",
        "http://rss.joins.com/joins_politics_list.xml",
    ],
    "economy": [
        _google_topic("BUSINESS"),
        "https://www.mk.co.kr/rss/30100041/",
        "https://www.khan.co.kr/rss/rssdata/economy_news.xml",
        "http://www.hani.co.kr/rss/economy/",
        "http://rss.donga.com/economy.xml",
        "http://rss.joins.com/joins_money_list.xml",
    ],
    "society": [
        _google_search("사회"),
        "https://www.mk.co.kr/rss/50400012/",
        "https://www.khan.co.kr/rss/rssdata/society_news.xml",
        "http://www.hani.co.kr/rss/society/",
        "http://rss.donga.com/national.xml",
        "http://rss.joins.com/joins_life_list.xml",
    ],
    "culture": [
        _google_search("생활 문화"),
        "https://www.khan.co.kr/rss/rssdata/culture_news.xml",
        "http://www.hani.co.kr/rss/culture/",
        "http://rss.donga.com/culture.xml",
        "http://rss.joins.com/joins_culture_list.xml",
    ],
    "sports": [
        _google_topic("SPORTS"),
        "http://www.hani.co.kr/rss/sports/",
        "http://rss.donga.com/sportsdonga/sports_total.xml",
    ],
    "it": [
        _google_topic("TECHNOLOGY"),
        _google_topic("SCIENCE"),
        "https://www.khan.co.kr/rss/rssdata/science_news.xml",
        "http://www.hani.co.kr/rss/science/",
        "http://rss.joins.com/joins_it_list.xml",
        "http://rss.etnews.co.kr/Section901.xml",
    ],
    "world": [
        _google_topic("WORLD"),
        "https://www.khan.co.kr/rss/rssdata/kh_world.xml",
        "http://www.hani.co.kr/rss/international/",
        "http://rss.donga.com/international.xml",
        "http://rss.joins.com/joins_world_list.xml",
    ],
}

# Trading-value ranking first, trading-volume ranking as the alternate;
# sosok=0 is KOSPI, sosok=1 is KOSDAQ.
LISTING_URLS: list[str] = [
    "https://finance.naver.com/sise/sise_amount.naver?sosok=0&page=1",
    "https://finance.naver.com/sise/sise_amount.naver?sosok=1&page=1",
    "https://finance.naver.com/sise/sise_quant.naver?sosok=0&page=1",
    "https://finance.naver.com/sise/sise_quant.naver?sosok=1&page=1",
]

FALLBACK_EQUITIES: list[EquityCandidate] = [
    EquityCandidate("005930", "삼성전자"),
    EquityCandidate("000660", "SK하이닉스"),
    EquityCandidate("373220", "LG에너지솔루션"),
    EquityCandidate("005380", "현대차"),
    EquityCandidate("035420", "NAVER"),
    EquityCandidate("035720", "카카오"),
]

QUOTE_URL = "https://finance.naver.com/item/main.naver?code={code}"
FX_PRIMARY_URL = "https://finance.naver.com/marketindex/exchangeDetail.naver?code=FX_USDKRW"
FX_SECONDARY_URL = "https://open.er-api.com/v6/latest/USD"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
AIR_QUALITY_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"

_DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) local-feed/1.0"


def find_category(category_id: str) -> Category:
    """Resolve a category id, falling back to the default category."""
    for category in CATEGORIES:
        if category.id == category_id:
            return category
    return CATEGORIES[0]


def feeds_for(category_id: str) -> list[str]:
    """Feed URLs for a category; unknown ids get the default feed set."""
    return FEEDS_BY_CATEGORY.get(category_id) or FEEDS_BY_CATEGORY[DEFAULT_CATEGORY]


def find_location(location_id: str) -> Location:
    """Resolve a location id, falling back to the first configured location."""
    for location in LOCATIONS:
        if location.id == location_id:
            return location
    return LOCATIONS[0]


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime tunables. Durations are in seconds."""

    fetch_timeout: float = 9.0
    news_ttl: float = 120.0
    weather_ttl: float = 180.0
    fx_ttl: float = 600.0
    ranking_ttl: float = 300.0
    stocks_ttl: float = 120.0
    max_news_items: int = 60
    max_failure_samples: int = 5
    stock_count: int = 6
    user_agent: str = _DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``LOCAL_FEED_*`` environment variables."""
        defaults = cls()
        return cls(
            fetch_timeout=_env_float("LOCAL_FEED_FETCH_TIMEOUT", defaults.fetch_timeout),
            news_ttl=_env_float("LOCAL_FEED_NEWS_TTL", defaults.news_ttl),
            weather_ttl=_env_float("LOCAL_FEED_WEATHER_TTL", defaults.weather_ttl),
            fx_ttl=_env_float("LOCAL_FEED_FX_TTL", defaults.fx_ttl),
            ranking_ttl=_env_float("LOCAL_FEED_RANKING_TTL", defaults.ranking_ttl),
            stocks_ttl=_env_float("LOCAL_FEED_STOCKS_TTL", defaults.stocks_ttl),
            max_news_items=_env_int("LOCAL_FEED_MAX_NEWS_ITEMS", defaults.max_news_items),
            max_failure_samples=_env_int(
                "LOCAL_FEED_MAX_FAILURE_SAMPLES", defaults.max_failure_samples
            ),
            stock_count=_env_int("LOCAL_FEED_STOCK_COUNT", defaults.stock_count),
            user_agent=os.environ.get("LOCAL_FEED_USER_AGENT", defaults.user_agent),
        )
