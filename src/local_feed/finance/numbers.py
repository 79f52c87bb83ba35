"""Number extraction helpers for scraped Korean financial pages."""

from __future__ import annotations

import math
import re
from typing import Iterable

_NON_NUMERIC_RE = re.compile(r"[^\d.\-]")
_INTEGER_TOKEN_RE = re.compile(r"([0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)")
_DECIMAL_TOKEN_RE = re.compile(r"([0-9]{1,3}(?:,[0-9]{3})+(?:\.[0-9]+)?|[0-9]+(?:\.[0-9]+)?)")
_PERCENT_RE = re.compile(r"([+-]?\d+(?:\.\d+)?)\s*%")
_PERCENT_WORD_RE = re.compile(r"([+-]?\d+(?:\.\d+)?)\s*퍼센트")


def parse_number(text: str | None) -> float | None:
    """Parse ``"1,234"`` / ``"+3.5"`` style text; None when nothing numeric remains."""
    if not text:
        return None
    cleaned = _NON_NUMERIC_RE.sub("", str(text))
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def first_integer_token(texts: Iterable[str]) -> str | None:
    """First comma-grouped or plain integer token across ``texts``."""
    for text in texts:
        match = _INTEGER_TOKEN_RE.search(str(text))
        if match:
            return match.group(1)
    return None


def first_decimal_token(texts: Iterable[str]) -> str | None:
    """Like first_integer_token but keeps a fractional part (FX rates)."""
    for text in texts:
        match = _DECIMAL_TOKEN_RE.search(str(text))
        if match:
            return match.group(1)
    return None


def first_percent(texts: Iterable[str]) -> float | None:
    """First signed ``N%`` token, else the first ``N퍼센트`` token."""
    texts = [str(t) for t in texts]
    for pattern in (_PERCENT_RE, _PERCENT_WORD_RE):
        for text in texts:
            match = pattern.search(text)
            if match:
                return float(match.group(1))
    return None
