"""Weather and air-quality snapshots."""

from local_feed.weather.client import WeatherClient

__all__ = ["WeatherClient"]
