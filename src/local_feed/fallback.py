"""Small "try, else try next" combinators for fallback chains."""

from __future__ import annotations

import dataclasses
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from local_feed.errors import UpstreamExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

Tier = tuple[str, Callable[[], Awaitable[T]]]


async def first_success(resource: str, tiers: Sequence[Tier[T]]) -> T:
    """Run ``tiers`` left to right and return the first result.

    Args:
        resource: Human-readable resource name for the error message.
        tiers: ``(name, coroutine function)`` pairs; a tier fails by raising.

    Returns:
        The value of the first tier that did not raise.

    Raises:
        UpstreamExhausted: Every tier raised. The message names each tier
            and its error.
    """
    attempts: list[tuple[str, Exception]] = []
    for name, attempt in tiers:
        try:
            return await attempt()
        except Exception as e:
            logger.warning("%s: tier %s failed: %s", resource, name, e)
            attempts.append((name, e))

    detail = " | ".join(f"{name}: {e}" for name, e in attempts)
    raise UpstreamExhausted(f"{resource} fallback failed | {detail}", attempts)


def first_present(*values: T | None) -> T | None:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def fill_missing(primary: T, *fallbacks: T) -> T:
    """Fill the None fields of a dataclass from later ones, left to right.

    Fields already set on ``primary`` are never overwritten.
    """
    updates = {}
    for f in dataclasses.fields(primary):  # type: ignore[arg-type]
        current = getattr(primary, f.name)
        if current is not None:
            continue
        value = first_present(*(getattr(fb, f.name) for fb in fallbacks))
        if value is not None:
            updates[f.name] = value
    if not updates:
        return primary
    return dataclasses.replace(primary, **updates)  # type: ignore[type-var]
