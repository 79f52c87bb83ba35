"""Charset resolution and total decoding for fetched bodies."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"
KOREAN_CHARSET = "cp949"  # Superset of euc-kr; covers ks_c_5601 extensions
SNIFF_BYTES = 4096

_ALIASES: dict[str, str] = {
    "euc-kr": KOREAN_CHARSET,
    "euckr": KOREAN_CHARSET,
    "euc_kr": KOREAN_CHARSET,
    "ks_c_5601-1987": KOREAN_CHARSET,
    "ks_c_5601": KOREAN_CHARSET,
    "cp949": KOREAN_CHARSET,
    "ms949": KOREAN_CHARSET,
    "uhc": KOREAN_CHARSET,
    "utf8": DEFAULT_CHARSET,
    "utf-8": DEFAULT_CHARSET,
}

_HEADER_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)
_META_CHARSET_RE = re.compile(r"charset=[\"']?([a-z0-9\-_]+)", re.IGNORECASE)
_XML_ENCODING_RE = re.compile(
    r"<\?xml[^>]*encoding=[\"']([a-z0-9\-_]+)[\"']", re.IGNORECASE
)


def normalize_charset(charset: str | None) -> str | None:
    """Map a charset token to the codec name used for decoding.

    All legacy Korean aliases collapse to one codec; ``utf8`` becomes
    ``utf-8``. Other tokens are lower-cased and passed through.
    """
    if not charset:
        return None
    token = charset.strip().strip("\"'").lower()
    if not token:
        return None
    return _ALIASES.get(token, token)


def charset_from_content_type(content_type: str | None) -> str | None:
    """Extract the ``charset=`` parameter of a Content-Type header."""
    if not content_type:
        return None
    match = _HEADER_CHARSET_RE.search(content_type)
    if not match:
        return None
    return match.group(1).strip() or None


def sniff_charset(body: bytes) -> str | None:
    """Look for a charset hint in the head of the raw document.

    The first ``SNIFF_BYTES`` bytes are read as latin-1 so that any
    byte sequence can be scanned. HTML ``charset=`` hints win over an
    XML declaration's ``encoding=``.
    """
    head = body[:SNIFF_BYTES].decode("latin-1").lower()
    match = _META_CHARSET_RE.search(head)
    if match:
        return match.group(1)
    match = _XML_ENCODING_RE.search(head)
    if match:
        return match.group(1)
    return None


def resolve_charset(content_type: str | None, body: bytes) -> str:
    """Header charset, then sniffed hint, then UTF-8; always normalized."""
    return (
        normalize_charset(charset_from_content_type(content_type))
        or normalize_charset(sniff_charset(body))
        or DEFAULT_CHARSET
    )


def decode_body(body: bytes, charset: str) -> tuple[str, str]:
    """Decode ``body``; never raises.

    Invalid byte sequences are replaced. A codec that is unknown or cannot
    decode with replacement falls back to UTF-8.

    Returns:
        Tuple of (text, charset actually used)
    """
    try:
        return body.decode(charset, errors="replace"), charset
    except (LookupError, UnicodeError):
        # Unknown names, non-text codecs ("base64") and codecs that reject
        # replacement ("idna") all land here.
        logger.debug("Unusable charset %r, decoding as %s", charset, DEFAULT_CHARSET)
        return body.decode(DEFAULT_CHARSET, errors="replace"), DEFAULT_CHARSET
