"""
Analytics API Endpoints

Business digest and full analytics report for dashboards.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
import structlog

from insight_engine.analytics.engine import InsightEngine
from insight_engine.serving.api.deps import get_caller_id, get_engine

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/summary")
async def get_summary(
    caller_id: str = Depends(get_caller_id),
    engine: InsightEngine = Depends(get_engine),
) -> Dict[str, Any]:
    """Inventory totals, trailing sales window, top products and category breakdown."""
    summary = await engine.summary(caller_id)
    return summary.to_dict()


@router.get("/report")
async def get_report(
    caller_id: str = Depends(get_caller_id),
    engine: InsightEngine = Depends(get_engine),
) -> Dict[str, Any]:
    """
    Forecasts, anomalies, recommendations, trend series and optimization score.

    Rebuilt from a fresh snapshot on every request.
    """
    report = await engine.report(caller_id)
    logger.debug("Report served", caller_id=caller_id, score=report.optimization_score)
    return report.to_dict()
