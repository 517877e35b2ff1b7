"""
API Dependencies

Caller identity and engine lookup for route handlers.
"""

from fastapi import HTTPException, Request

from insight_engine.analytics.engine import InsightEngine
from insight_engine.config import get_settings


def get_caller_id(request: Request) -> str:
    """
    Caller identity supplied by the authentication layer.

    Raises:
        HTTPException: 401 when the identity header is missing or blank
    """
    header = get_settings().security.caller_header
    caller_id = (request.headers.get(header) or "").strip()
    if not caller_id:
        raise HTTPException(status_code=401, detail=f"Missing {header} header")
    return caller_id


def get_engine(request: Request) -> InsightEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Insight engine not initialized")
    return engine
