"""News feed parsing and aggregation."""

from local_feed.news.aggregator import NewsAggregator
from local_feed.news.parser import PayloadShape, classify_payload, parse_items

__all__ = ["NewsAggregator", "PayloadShape", "classify_payload", "parse_items"]
