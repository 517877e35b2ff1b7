"""
FastAPI Production Application

Main entry point for the Inventory Insights API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import httpx
import structlog

from insight_engine.analytics.engine import EngineContext, InsightEngine
from insight_engine.analytics.llm import create_llm_client
from insight_engine.config import get_settings
from insight_engine.database.connection import close_database, get_session_factory, init_database
from insight_engine.database.store import InsightRepository, SqlAlchemyBusinessStore
from insight_engine.serving.api.middleware import RequestLoggingMiddleware
from insight_engine.serving.api.routes import (
    analytics_router,
    health_router,
    insights_router,
    query_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    from insight_engine.config.logging import configure_logging

    settings = get_settings()
    configure_logging(settings=settings)
    logger.info("Starting Inventory Insights API", environment=settings.app_env)

    # A failed connection check leaves the engine in place; snapshot reads
    # then degrade to empty collections until the database returns.
    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning(f"Database init failed: {e}")

    http_client = httpx.AsyncClient()
    try:
        session_factory = get_session_factory()
    except RuntimeError as e:
        logger.error("No database session factory available", error=str(e))
        session_factory = None

    if session_factory is not None:
        context = EngineContext(
            settings=settings,
            store=SqlAlchemyBusinessStore(session_factory),
            insights=InsightRepository(session_factory),
            llm=create_llm_client(settings.llm, http_client),
        )
        app.state.engine = InsightEngine(context)
        app.state.session_factory = session_factory

    if not settings.llm.is_configured:
        logger.info("No language-model credential configured; questions use rule-based answers")

    yield

    logger.info("Shutting down...")
    await http_client.aclose()
    await close_database()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Inventory Insights API",
        description="Forecasts, anomalies, recommendations and question answering for inventory and sales data",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware, caller_header=settings.security.caller_header)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(insights_router, prefix="/api/v1/insights", tags=["Insights"])
    app.include_router(query_router, prefix="/api/v1/query", tags=["Query"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Inventory Insights API",
            "version": settings.version,
            "environment": settings.app_env,
            "llm_enabled": settings.llm.is_configured,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_settings().api_host, port=get_settings().api_port)
