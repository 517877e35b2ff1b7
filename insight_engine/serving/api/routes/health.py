"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime
from typing import Dict, Any

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from insight_engine.config import get_settings
from insight_engine.database.connection import check_database_health

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


async def _database_check(request: Request) -> Dict[str, Any]:
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        return {"status": "unhealthy", "error": "database not initialized"}
    return await check_database_health(factory)


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Database connectivity
    - Language-model configuration (unconfigured only degrades answers to rules)
    """
    settings = get_settings()
    checks = {}
    overall_status = "healthy"

    checks["database"] = await _database_check(request)
    if checks["database"].get("status") != "healthy":
        overall_status = "degraded"

    checks["llm"] = {
        "status": "configured" if settings.llm.is_configured else "rules_only",
        "model": settings.llm.model,
    }

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(request: Request, response: Response) -> Dict[str, str]:
    """Returns 200 if the database answers, 503 otherwise."""
    db_health = await _database_check(request)
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}
