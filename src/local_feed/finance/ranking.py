"""Rank equities by trading value across scraped listing pages."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Sequence

from bs4 import BeautifulSoup, Tag

from local_feed import config
from local_feed.errors import ParseError
from local_feed.fallback import first_success
from local_feed.finance.numbers import parse_number
from local_feed.http.fetcher import TextFetcher
from local_feed.models import EquityCandidate, FeedFailure

logger = logging.getLogger(__name__)

TRADING_VALUE_HEADER = "거래대금"
TRADING_VALUE_FALLBACK_INDEX = 6

_CODE_RE = re.compile(r"code=(\d{6})")


def _header_cells(table: Tag) -> list[str]:
    header_rows = table.select("thead tr")
    if header_rows:
        row = header_rows[-1]
    else:
        row = next((tr for tr in table.find_all("tr") if tr.find("th")), None)
    if row is None:
        return []
    return [th.get_text(strip=True) for th in row.find_all("th")]


def trading_value_column(headers: Sequence[str]) -> int:
    """Index of the trading-value column, or the known fixed position."""
    for i, header in enumerate(headers):
        if TRADING_VALUE_HEADER in header:
            return i
    return TRADING_VALUE_FALLBACK_INDEX


def parse_listing(html: str) -> list[EquityCandidate]:
    """Extract ``(code, name, trading value)`` rows from a listing page.

    Raises:
        ParseError: The ranking table is missing or has no usable rows
            (typically a block page or an empty market).
    """
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one("table.type_2")
    if table is None:
        raise ParseError("type_2 table not found")

    column = trading_value_column(_header_cells(table))

    candidates: list[EquityCandidate] = []
    for tr in table.find_all("tr"):
        link = tr.select_one('a[href*="code="]')
        if link is None:
            continue
        match = _CODE_RE.search(link.get("href", ""))
        if not match:
            continue
        name = link.get_text(strip=True)
        if not name:
            continue

        cells = [td.get_text(strip=True) for td in tr.find_all("td")]
        value = parse_number(cells[column]) if column < len(cells) else None
        if value is None:
            continue
        candidates.append(EquityCandidate(code=match.group(1), name=name, trading_value=value))

    if not candidates:
        raise ParseError("no parsable rows (maybe blocked/empty)")
    return candidates


def merge_best(
    best: dict[str, EquityCandidate], candidates: Sequence[EquityCandidate]
) -> None:
    """Keep the highest trading value seen per code."""
    for cand in candidates:
        prev = best.get(cand.code)
        if prev is None or (cand.trading_value or 0) > (prev.trading_value or 0):
            best[cand.code] = cand


class EquityRanker:
    """Picks the most traded equities, degrading to a static list."""

    def __init__(
        self,
        fetcher: TextFetcher,
        listing_urls: Sequence[str] | None = None,
        fallback: Sequence[EquityCandidate] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.listing_urls = list(listing_urls or config.LISTING_URLS)
        self.fallback = list(fallback or config.FALLBACK_EQUITIES)
        self.timeout = timeout

    async def _scrape_page(self, url: str) -> list[EquityCandidate] | FeedFailure:
        try:
            html = await self.fetcher.fetch_text(url, self.timeout)
            return parse_listing(html)
        except Exception as e:
            logger.warning("Listing page failed: %s: %s", url, e)
            return FeedFailure(source_url=url, error=str(e))

    async def _scraped_ranking(self, limit: int) -> list[EquityCandidate]:
        pages = await asyncio.gather(*(self._scrape_page(url) for url in self.listing_urls))

        best: dict[str, EquityCandidate] = {}
        failures: list[FeedFailure] = []
        for page in pages:
            if isinstance(page, FeedFailure):
                failures.append(page)
            else:
                merge_best(best, page)

        if not best:
            sample = "; ".join(f"{f.source_url}: {f.error}" for f in failures[:4])
            raise ParseError(f"no candidates extracted ({sample})")

        ranked = sorted(best.values(), key=lambda c: c.trading_value or 0, reverse=True)
        return ranked[:limit]

    async def _static_ranking(self, limit: int) -> list[EquityCandidate]:
        return self.fallback[:limit]

    async def top_traded_equities(self, limit: int = 6) -> list[EquityCandidate]:
        """Top ``limit`` equities by trading value. Never raises.

        Every listing page is tried and per-page failures are skipped.
        When no page yields a candidate the static fallback list is used.
        """
        return await first_success(
            "ranking",
            [
                ("scraped", lambda: self._scraped_ranking(limit)),
                ("static", lambda: self._static_ranking(limit)),
            ],
        )
