"""
Query Endpoint

Free-text business questions answered by the language model or, on any
failure, by the rule-based library.
"""

from fastapi import APIRouter, Depends, HTTPException
import structlog

from insight_engine.analytics.engine import InsightEngine
from insight_engine.analytics.exceptions import EmptyQueryError
from insight_engine.analytics.schemas import AIResponse, QueryRequest
from insight_engine.serving.api.deps import get_caller_id, get_engine

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("", response_model=AIResponse)
async def ask_question(
    payload: QueryRequest,
    caller_id: str = Depends(get_caller_id),
    engine: InsightEngine = Depends(get_engine),
) -> AIResponse:
    """
    Answer a question about the caller's business data.

    Blank questions are rejected with 400 before any data is read.
    """
    try:
        return await engine.ask(caller_id, payload.question)
    except EmptyQueryError as e:
        logger.info("Rejected empty question", caller_id=caller_id)
        raise HTTPException(status_code=400, detail=str(e))
