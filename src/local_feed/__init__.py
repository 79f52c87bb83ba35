"""local-feed - resilient news, market and weather aggregation for a dashboard."""

from local_feed.cache import TTLCache
from local_feed.config import Settings
from local_feed.service import DashboardService

__all__ = ["DashboardService", "Settings", "TTLCache"]
