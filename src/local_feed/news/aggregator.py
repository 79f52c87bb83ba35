"""Fan-out news aggregation with per-source failure isolation."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from local_feed import config
from local_feed.http.fetcher import TextFetcher
from local_feed.models import FeedFailure, NewsAggregate, NewsItem
from local_feed.news.parser import parse_items

logger = logging.getLogger(__name__)

MAX_ITEMS = 60
MAX_FAILURE_SAMPLES = 5


def dedupe_items(items: Sequence[NewsItem]) -> list[NewsItem]:
    """Keep the first item per link (``source:title`` for link-less items)."""
    seen: set[str] = set()
    unique: list[NewsItem] = []
    for item in items:
        key = item.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def rank_items(items: Sequence[NewsItem], limit: int = MAX_ITEMS) -> list[NewsItem]:
    """Newest first, undated (0) items last, capped at ``limit``.

    The sort is stable, so equal timestamps keep feed order.
    """
    ordered = sorted(items, key=lambda it: max(it.published_ms, 0), reverse=True)
    return ordered[:limit]


class NewsAggregator:
    """Collects one category's feeds into a single ranked aggregate.

    Attributes:
        fetcher: Shared text fetcher.
        feeds_for: Maps a category id to its feed URLs.
        max_items: Cap on the number of items returned.
        max_failure_samples: Cap on failure descriptions kept for diagnostics.
    """

    def __init__(
        self,
        fetcher: TextFetcher,
        feeds_for: Callable[[str], list[str]] = config.feeds_for,
        timeout: float | None = None,
        max_items: int = MAX_ITEMS,
        max_failure_samples: int = MAX_FAILURE_SAMPLES,
    ) -> None:
        self.fetcher = fetcher
        self.feeds_for = feeds_for
        self.timeout = timeout
        self.max_items = max_items
        self.max_failure_samples = max_failure_samples

    async def _collect(self, url: str) -> tuple[list[NewsItem], FeedFailure | None]:
        """Fetch and parse one feed; any failure becomes a FeedFailure."""
        try:
            text = await self.fetcher.fetch_text(url, self.timeout)
            items = parse_items(text)
        except Exception as e:
            logger.warning("Feed failed: %s: %s", url, e)
            return [], FeedFailure(source_url=url, error=str(e) or e.__class__.__name__)
        return items, None

    async def aggregate(self, category_id: str) -> NewsAggregate:
        """Aggregate a category; unknown ids use the default category.

        Never raises for source failures: a category whose every feed
        fails yields an empty item list and a full failure count.
        """
        category = config.find_category(category_id)
        feeds = self.feeds_for(category.id)

        results = await asyncio.gather(*(self._collect(url) for url in feeds))

        collected: list[NewsItem] = []
        failures: list[FeedFailure] = []
        for items, failure in results:
            collected.extend(items)
            if failure is not None:
                failures.append(failure)

        ranked = rank_items(dedupe_items(collected), self.max_items)
        logger.debug(
            "Aggregated %s: %d items from %d feeds (%d failed)",
            category.id,
            len(ranked),
            len(feeds),
            len(failures),
        )

        return NewsAggregate(
            category=category,
            as_of=datetime.now(timezone.utc).isoformat(),
            items=tuple(ranked),
            feed_count=len(feeds),
            failure_count=len(failures),
            sample_failures=tuple(failures[: self.max_failure_samples]),
        )
