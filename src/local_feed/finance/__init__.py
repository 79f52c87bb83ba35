"""Equity ranking, quotes and FX resolution."""

from local_feed.finance.fx import FxResolver, placeholder_rate
from local_feed.finance.quote import QuoteFetcher
from local_feed.finance.ranking import EquityRanker

__all__ = ["EquityRanker", "FxResolver", "QuoteFetcher", "placeholder_rate"]
