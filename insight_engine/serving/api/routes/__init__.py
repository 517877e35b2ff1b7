"""
API Routes Module
"""
from .health import router as health_router
from .analytics import router as analytics_router
from .insights import router as insights_router
from .query import router as query_router

__all__ = [
    "health_router",
    "analytics_router",
    "insights_router",
    "query_router",
]
