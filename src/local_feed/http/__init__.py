"""HTTP fetching and charset handling."""

from local_feed.http.charset import decode_body, normalize_charset, resolve_charset
from local_feed.http.fetcher import TextFetcher

__all__ = ["TextFetcher", "decode_body", "normalize_charset", "resolve_charset"]
