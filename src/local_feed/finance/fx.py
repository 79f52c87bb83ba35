"""USD/KRW rate from a scraped primary source with an API fallback."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from local_feed import config
from local_feed.errors import ParseError
from local_feed.fallback import first_success
from local_feed.finance.numbers import first_decimal_token, parse_number
from local_feed.http.fetcher import TextFetcher
from local_feed.models import FxRate

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _valid_rate(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    rate = float(value)
    if not math.isfinite(rate) or rate <= 0:
        return None
    return rate


def parse_naver_rate(html: str) -> float:
    """First numeric token of the accessible-text rate element.

    Raises:
        ParseError: No positive number could be read.
    """
    soup = BeautifulSoup(html, "html.parser")
    blinds = [el.get_text(strip=True) for el in soup.select(".no_today .blind")]
    raw = first_decimal_token(blinds)
    if raw is None:
        block = soup.select_one(".no_today")
        raw = block.get_text(strip=True) if block is not None else ""

    rate = _valid_rate(parse_number(raw))
    if rate is None:
        raise ParseError(f"NAVER FX parse failed: {raw!r}")
    return rate


def parse_er_api_rate(payload: object) -> float:
    """Read ``rates.KRW`` from an open.er-api.com response.

    Raises:
        ParseError: Field missing, non-numeric or not positive.
    """
    rates = payload.get("rates") if isinstance(payload, dict) else None
    value = rates.get("KRW") if isinstance(rates, dict) else None
    rate = _valid_rate(value)
    if rate is None:
        raise ParseError(f"ER-API invalid KRW rate: {value!r}")
    return rate


class FxResolver:
    """Resolves the live USD/KRW rate through two independent providers."""

    def __init__(
        self,
        fetcher: TextFetcher,
        primary_url: str = config.FX_PRIMARY_URL,
        secondary_url: str = config.FX_SECONDARY_URL,
        timeout: float | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.primary_url = primary_url
        self.secondary_url = secondary_url
        self.timeout = timeout

    async def _from_naver(self) -> FxRate:
        html = await self.fetcher.fetch_text(self.primary_url, self.timeout)
        return FxRate(rate=parse_naver_rate(html), as_of=_now_iso(), source="NAVER")

    async def _from_er_api(self) -> FxRate:
        payload = await self.fetcher.fetch_json(self.secondary_url, self.timeout)
        return FxRate(rate=parse_er_api_rate(payload), as_of=_now_iso(), source="ER-API")

    async def usd_to_krw(self) -> FxRate:
        """Current USD/KRW rate.

        Raises:
            UpstreamExhausted: Both providers failed; the message names both.
        """
        return await first_success(
            "FX",
            [("NAVER", self._from_naver), ("ER-API", self._from_er_api)],
        )


def placeholder_rate(error: Exception) -> FxRate:
    """Null-rate stand-in for callers that must not fail with FX."""
    return FxRate(rate=None, as_of=_now_iso(), error=str(error) or error.__class__.__name__)
