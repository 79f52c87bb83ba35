"""Per-equity quote extraction with a structural pass and a text fallback."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, replace
from typing import Sequence

from bs4 import BeautifulSoup

from local_feed import config
from local_feed.fallback import fill_missing
from local_feed.finance.numbers import first_integer_token, first_percent, parse_number
from local_feed.http.fetcher import TextFetcher
from local_feed.models import Direction, EquityCandidate, EquityQuote
from local_feed.news.parser import strip_html

logger = logging.getLogger(__name__)

_DIRECTION_WORDS: dict[str, Direction] = {
    "상승": "up",
    "하락": "down",
    "보합": "flat",
}

_TEXT_PRICE_RE = re.compile(r"현재가\s*([\d,]+)")
_TEXT_CHANGE_RE = re.compile(r"전일대비\s*(상승|하락|보합)\s*([\d,]+)")
_TEXT_PERCENT_RE = re.compile(r"([\d.]+)\s*퍼센트")


@dataclass
class QuoteFields:
    """Partially resolved quote values from one extraction strategy."""

    price: float | None = None
    change_amount: float | None = None
    change_percent: float | None = None  # Unsigned
    direction: Direction | None = None

    @property
    def is_complete(self) -> bool:
        return None not in (self.price, self.change_amount, self.change_percent)


def direction_from_sign(value: float | None) -> Direction | None:
    """Direction implied by a signed change."""
    if value is None:
        return None
    if value > 0:
        return "up"
    if value < 0:
        return "down"
    return "flat"


def quote_url(code: str) -> str:
    return config.QUOTE_URL.format(code=code)


def extract_structural(html: str) -> QuoteFields:
    """Read the "current price" and "previous-day change" blocks."""
    soup = BeautifulSoup(html, "html.parser")

    today = [el.get_text(strip=True) for el in soup.select(".no_today .blind")]
    price = parse_number(first_integer_token(today))

    exday = [el.get_text(strip=True) for el in soup.select(".no_exday .blind")]

    direction: Direction | None = None
    for word, value in _DIRECTION_WORDS.items():
        if any(word in text for text in exday):
            direction = value
            break

    change: float | None = None
    for text in exday:
        if "%" in text or "퍼센트" in text:
            continue
        change = parse_number(text)
        if change is not None:
            change = abs(change)
            break

    signed_pct = first_percent(exday)
    if direction is None:
        direction = direction_from_sign(signed_pct)
    pct = abs(signed_pct) if signed_pct is not None else None

    return QuoteFields(price=price, change_amount=change, change_percent=pct, direction=direction)


def extract_from_text(html: str) -> QuoteFields:
    """Regex pass over the stripped page text, for when selectors drift."""
    text = strip_html(html)

    price_match = _TEXT_PRICE_RE.search(text)
    price = parse_number(price_match.group(1)) if price_match else None

    direction: Direction | None = None
    change: float | None = None
    change_match = _TEXT_CHANGE_RE.search(text)
    if change_match:
        direction = _DIRECTION_WORDS[change_match.group(1)]
        change = parse_number(change_match.group(2))

    pct_match = _TEXT_PERCENT_RE.search(text)
    signed_pct = parse_number(pct_match.group(1)) if pct_match else None
    if direction is None:
        direction = direction_from_sign(signed_pct)
    pct = abs(signed_pct) if signed_pct is not None else None

    return QuoteFields(price=price, change_amount=change, change_percent=pct, direction=direction)


def extract_quote_fields(html: str) -> QuoteFields:
    """Structural values first; the text pass only fills what is missing."""
    structural = extract_structural(html)
    if structural.is_complete:
        return structural
    return fill_missing(structural, extract_from_text(html))


class QuoteFetcher:
    """Scrapes per-equity quote pages."""

    def __init__(self, fetcher: TextFetcher, timeout: float | None = None) -> None:
        self.fetcher = fetcher
        self.timeout = timeout

    async def fetch_quote(self, code: str) -> EquityQuote:
        """Fetch one quote. Fetch errors propagate; missing fields do not."""
        url = quote_url(code)
        html = await self.fetcher.fetch_text(url, self.timeout)
        fields = extract_quote_fields(html)
        if not fields.is_complete:
            logger.debug("Quote for %s partially resolved: %s", code, fields)
        return EquityQuote(
            code=code,
            quote_url=url,
            price=fields.price,
            change_amount=fields.change_amount,
            change_percent=fields.change_percent,
            direction=fields.direction,
        )

    async def _quote_or_error(self, candidate: EquityCandidate) -> EquityQuote:
        try:
            quote = await self.fetch_quote(candidate.code)
        except Exception as e:
            logger.warning("Quote failed for %s: %s", candidate.code, e)
            return EquityQuote(
                code=candidate.code,
                name=candidate.name,
                quote_url=quote_url(candidate.code),
                error=str(e) or e.__class__.__name__,
            )
        return replace(quote, name=candidate.name)

    async def fetch_quotes(self, candidates: Sequence[EquityCandidate]) -> list[EquityQuote]:
        """Quotes for every candidate, in order. One failure stays local."""
        return list(await asyncio.gather(*(self._quote_or_error(c) for c in candidates)))
