"""Exception hierarchy for upstream fetching and extraction."""

from __future__ import annotations


class LocalFeedError(Exception):
    """Base error for all local-feed failures."""

    pass


class NetworkError(LocalFeedError):
    """Transport-level failure talking to an upstream source."""

    pass


class FetchTimeout(NetworkError):
    """The request did not complete within its deadline."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s | {url}")
        self.url = url
        self.timeout = timeout


class HttpStatusError(NetworkError):
    """Upstream answered with a non-2xx status code."""

    def __init__(self, status_code: int, url: str, reason: str = "") -> None:
        detail = f"HTTP {status_code}"
        if reason:
            detail = f"{detail} {reason}"
        super().__init__(f"{detail} | {url}")
        self.status_code = status_code
        self.url = url


class ShapeError(LocalFeedError):
    """Payload is not in the expected format (e.g. HTML instead of a feed)."""

    pass


class ParseError(LocalFeedError):
    """Structural or text extraction failed."""

    pass


class UpstreamExhausted(LocalFeedError):
    """Every fallback tier for a resource failed."""

    def __init__(self, message: str, attempts: list[tuple[str, Exception]] | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts or []
