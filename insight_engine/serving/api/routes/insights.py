"""
Insight Endpoints

Generate, list and acknowledge persisted insights. Generation always
appends a new batch; existing insights only change their read flag.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
import structlog

from insight_engine.analytics.engine import InsightEngine
from insight_engine.analytics.exceptions import InsightNotFoundError
from insight_engine.database.models import InsightType
from insight_engine.serving.api.deps import get_caller_id, get_engine

router = APIRouter()
logger = structlog.get_logger(__name__)


class InsightOut(BaseModel):
    """Persisted insight"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    insight_type: InsightType
    title: str
    description: str
    confidence_score: Optional[float]
    data: Optional[Dict[str, Any]]
    is_read: bool
    created_at: Optional[datetime]


@router.post("/generate", response_model=List[InsightOut], status_code=201)
async def generate_insights(
    caller_id: str = Depends(get_caller_id),
    engine: InsightEngine = Depends(get_engine),
) -> List[InsightOut]:
    """Run an analytics pass and append its insights."""
    rows = await engine.generate_insights(caller_id)
    return [InsightOut.model_validate(row) for row in rows]


@router.get("", response_model=List[InsightOut])
async def list_insights(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    caller_id: str = Depends(get_caller_id),
    engine: InsightEngine = Depends(get_engine),
) -> List[InsightOut]:
    """Caller's insights, newest first."""
    rows = await engine.list_insights(caller_id, unread_only=unread_only, limit=limit)
    return [InsightOut.model_validate(row) for row in rows]


@router.post("/{insight_id}/read", response_model=InsightOut)
async def mark_insight_read(
    insight_id: uuid.UUID,
    caller_id: str = Depends(get_caller_id),
    engine: InsightEngine = Depends(get_engine),
) -> InsightOut:
    """Mark one of the caller's insights as read."""
    try:
        row = await engine.mark_insight_read(caller_id, insight_id)
    except InsightNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return InsightOut.model_validate(row)
