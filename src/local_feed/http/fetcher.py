"""Async HTTP text fetcher with hard timeouts and charset-aware decoding."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

import httpx

from local_feed.errors import FetchTimeout, HttpStatusError, NetworkError, ParseError
from local_feed.http.charset import decode_body, resolve_charset
from local_feed.models import FetchResult

logger = logging.getLogger(__name__)

_DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) local-feed/1.0"
_DEFAULT_TIMEOUT = 9.0

_BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ko-KR,ko;q=0.9,en;q=0.8",
    # Naver Finance serves empty tables to requests without a referer.
    "Referer": "https://finance.naver.com/",
}


class TextFetcher:
    """GETs upstream documents and returns them as decoded text."""

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._user_agent = user_agent or os.environ.get(
            "LOCAL_FEED_USER_AGENT", _DEFAULT_USER_AGENT
        )
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    # -- requests --------------------------------------------------------

    async def _get(self, url: str, timeout: float) -> httpx.Response:
        headers = {"User-Agent": self._user_agent, **_BASE_HEADERS}
        try:
            resp = await asyncio.wait_for(
                self._client.get(url, headers=headers), timeout=timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise FetchTimeout(url, timeout) from None
        except httpx.HTTPError as e:
            raise NetworkError(f"{e.__class__.__name__}: {e} | {url}") from e

        if not resp.is_success:
            raise HttpStatusError(resp.status_code, url, resp.reason_phrase)
        return resp

    async def fetch(self, url: str, timeout: float | None = None) -> FetchResult:
        """GET ``url`` and decode the body.

        Args:
            url: Absolute URL.
            timeout: Hard deadline in seconds; defaults to the fetcher's.

        Returns:
            FetchResult with the decoded text and the charset used.

        Raises:
            FetchTimeout: The deadline passed; the request is cancelled.
            HttpStatusError: Upstream answered with a non-2xx status.
            NetworkError: Any other transport failure.
        """
        deadline = self._timeout if timeout is None else timeout
        resp = await self._get(url, deadline)
        body = resp.content
        charset = resolve_charset(resp.headers.get("content-type"), body)
        text, used = decode_body(body, charset)
        logger.debug("Fetched %s (%d bytes, charset=%s)", url, len(body), used)
        return FetchResult(url=url, text=text, charset=used, status_code=resp.status_code)

    async def fetch_text(self, url: str, timeout: float | None = None) -> str:
        """GET ``url`` and return only the decoded text."""
        result = await self.fetch(url, timeout)
        return result.text

    async def fetch_json(self, url: str, timeout: float | None = None) -> Any:
        """GET ``url`` and parse the decoded body as JSON."""
        text = await self.fetch_text(url, timeout)
        try:
            return json.loads(text)
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {url}: {e}") from e

    # -- lifecycle -------------------------------------------------------

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> TextFetcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
