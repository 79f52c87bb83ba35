"""Dashboard request surface: cache in front of every resolver."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from local_feed import config
from local_feed.cache import TTLCache
from local_feed.config import Settings
from local_feed.finance.fx import FxResolver, placeholder_rate
from local_feed.finance.quote import QuoteFetcher
from local_feed.finance.ranking import EquityRanker
from local_feed.http.fetcher import TextFetcher
from local_feed.models import (
    EquityCandidate,
    FxRate,
    NewsAggregate,
    StocksSnapshot,
    WeatherSnapshot,
)
from local_feed.news.aggregator import NewsAggregator
from local_feed.weather.client import WeatherClient

logger = logging.getLogger(__name__)


class DashboardService:
    """Owns the process-lifetime cache and fetcher and serves each resource.

    Every resource is read through the cache with its own TTL; concurrent
    misses for the same key share one upstream computation.

    Attributes:
        settings: Timeouts, TTLs and caps.
        cache: The shared TTL cache.
        fetcher: The shared HTTP text fetcher.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: TextFetcher | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.fetcher = fetcher if fetcher is not None else TextFetcher(
            user_agent=self.settings.user_agent, timeout=self.settings.fetch_timeout
        )
        self.cache = cache if cache is not None else TTLCache()

        timeout = self.settings.fetch_timeout
        self.aggregator = NewsAggregator(
            self.fetcher,
            timeout=timeout,
            max_items=self.settings.max_news_items,
            max_failure_samples=self.settings.max_failure_samples,
        )
        self.weather_client = WeatherClient(self.fetcher, timeout=timeout)
        self.ranker = EquityRanker(self.fetcher, timeout=timeout)
        self.quotes = QuoteFetcher(self.fetcher, timeout=timeout)
        self.fx_resolver = FxResolver(self.fetcher, timeout=timeout)

    # -- resources -------------------------------------------------------

    async def news(self, category_id: str) -> NewsAggregate:
        """Aggregated news for a category (unknown -> default category)."""
        category = config.find_category(category_id)
        return await self.cache.get_or_compute(
            f"news:{category.id}",
            self.settings.news_ttl,
            lambda: self.aggregator.aggregate(category.id),
        )

    async def weather(self, location_id: str) -> WeatherSnapshot:
        """Weather snapshot for a location (unknown -> default location)."""
        location = config.find_location(location_id)
        return await self.cache.get_or_compute(
            f"weather:{location.id}",
            self.settings.weather_ttl,
            lambda: self.weather_client.snapshot(location.id),
        )

    async def fx(self) -> FxRate:
        """USD/KRW rate; raises UpstreamExhausted when both sources fail."""
        return await self.cache.get_or_compute(
            "fx:usdkrw",
            self.settings.fx_ttl,
            self.fx_resolver.usd_to_krw,
        )

    async def top_equities(self, limit: int | None = None) -> list[EquityCandidate]:
        """Most traded equities; never raises."""
        count = self.settings.stock_count if limit is None else limit
        return await self.cache.get_or_compute(
            f"stocks:topdeal:{count}",
            self.settings.ranking_ttl,
            lambda: self.ranker.top_traded_equities(count),
        )

    async def stocks(self) -> StocksSnapshot:
        """Top equities with quotes; an FX outage only blanks the rate."""
        return await self.cache.get_or_compute(
            "stocks:kr:topdeal",
            self.settings.stocks_ttl,
            self._build_stocks,
        )

    async def _build_stocks(self) -> StocksSnapshot:
        try:
            rate = await self.fx()
        except Exception as e:
            logger.warning("FX unavailable for stocks snapshot: %s", e)
            rate = placeholder_rate(e)

        top = await self.top_equities()
        items = await self.quotes.fetch_quotes(top)
        return StocksSnapshot(
            as_of=datetime.now(timezone.utc).isoformat(),
            fx=rate,
            items=tuple(items),
        )

    @staticmethod
    def meta() -> dict:
        """Static categories and locations for the dashboard menus."""
        return {
            "categories": [c.to_dict() for c in config.CATEGORIES],
            "locations": [loc.to_dict() for loc in config.LOCATIONS],
        }

    # -- lifecycle -------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.fetcher.aclose()

    async def __aenter__(self) -> DashboardService:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
