"""FastAPI server for the dashboard aggregation layer."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from local_feed.config import Settings
from local_feed.service import DashboardService

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Local Feed API",
    description="Aggregated news, weather, stock and FX data for the dashboard",
    version="0.1.0",
)

# Global service instance so the cache outlives single requests
_service: DashboardService | None = None


def get_service() -> DashboardService:
    """Get or create the global service instance."""
    global _service
    if _service is None:
        _service = DashboardService(Settings.from_env())
    return _service


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str


class MenuEntry(BaseModel):
    """One selectable category or location."""

    id: str
    label: str


class MetaResponse(BaseModel):
    """Response model for static dashboard configuration."""

    categories: list[MenuEntry] = Field(..., description="News categories")
    locations: list[MenuEntry] = Field(..., description="Weather locations")


def _fail(resource: str, error: Exception) -> HTTPException:
    logger.error("%s request failed: %s", resource, error)
    return HTTPException(status_code=500, detail=str(error) or error.__class__.__name__)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", service="local-feed")


@app.get("/api/meta", response_model=MetaResponse)
def get_meta() -> MetaResponse:
    """Categories and locations; static, never cached."""
    return MetaResponse(**get_service().meta())


@app.get("/api/news")
async def get_news(category: str = "all") -> dict[str, Any]:
    """Aggregated news for a category. Source failures only show in ``meta``."""
    try:
        result = await get_service().news(category)
    except Exception as e:
        raise _fail("news", e)
    return result.to_dict()


@app.get("/api/weather")
async def get_weather(loc: str = "seoul") -> dict[str, Any]:
    """Weather snapshot for a location id."""
    try:
        result = await get_service().weather(loc)
    except Exception as e:
        raise _fail("weather", e)
    return result.to_dict()


@app.get("/api/stocks")
async def get_stocks() -> dict[str, Any]:
    """Top traded equities with quotes and the USD/KRW rate."""
    try:
        result = await get_service().stocks()
    except Exception as e:
        raise _fail("stocks", e)
    return result.to_dict()


@app.get("/api/fx")
async def get_fx() -> dict[str, Any]:
    """USD/KRW rate; 500 when both FX providers are down."""
    try:
        result = await get_service().fx()
    except Exception as e:
        raise _fail("fx", e)
    return result.to_dict()
