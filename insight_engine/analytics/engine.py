"""
Insight Engine

Entry points used by the API: digest, analytics report, question answering
and insight generation. Collaborators arrive through an explicit
``EngineContext`` so each request works from its own snapshot.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Sequence
import uuid

import structlog

from insight_engine.analytics.aggregator import BusinessContextAggregator, BusinessStore
from insight_engine.analytics.answers import RuleBasedAnalyzer
from insight_engine.analytics.exceptions import EmptyQueryError
from insight_engine.analytics.forecasting import AnalyticsReport, ForecastEngine, InsightRecord
from insight_engine.analytics.llm import LLMClient
from insight_engine.analytics.router import QueryRouter
from insight_engine.analytics.schemas import AIResponse
from insight_engine.analytics.summary import BusinessSummary, SummaryBuilder
from insight_engine.config.settings import Settings

logger = structlog.get_logger(__name__)


class InsightStore(Protocol):
    """Append-only insight persistence"""

    async def add_insights(self, caller_id: str, records: Sequence[InsightRecord], created_at: Optional[datetime] = None) -> list:
        ...

    async def list_insights(self, caller_id: str, unread_only: bool = False, limit: int = 50) -> list:
        ...

    async def mark_read(self, caller_id: str, insight_id: uuid.UUID):
        ...


@dataclass
class EngineContext:
    """Configuration and collaborators threaded into every engine operation"""
    settings: Settings
    store: BusinessStore
    insights: Optional[InsightStore] = None
    llm: Optional[LLMClient] = None


class InsightEngine:
    """
    Request-scoped analytics over caller snapshots.

    Example:
        engine = InsightEngine(context)
        response = await engine.ask("user-123", "What are my best sellers?")
    """

    def __init__(self, context: EngineContext):
        self.context = context
        analytics = context.settings.analytics

        self.aggregator = BusinessContextAggregator(context.store, analytics)
        self.summary_builder = SummaryBuilder(
            trailing_window=analytics.trailing_window,
            top_products=analytics.top_products,
        )
        self.forecaster = ForecastEngine(analytics)
        self.router = QueryRouter(
            summary_builder=self.summary_builder,
            rules=RuleBasedAnalyzer(trailing_window=analytics.trailing_window),
            llm=context.llm,
        )

    async def summary(self, caller_id: str) -> BusinessSummary:
        snapshot = await self.aggregator.fetch(caller_id)
        return self.summary_builder.build(snapshot)

    async def report(self, caller_id: str, now: Optional[datetime] = None) -> AnalyticsReport:
        now = now or datetime.utcnow()
        snapshot = await self.aggregator.fetch(caller_id, now=now)
        return self.forecaster.analyze(snapshot, now=now)

    async def ask(self, caller_id: str, question: str) -> AIResponse:
        """
        Answer a free-text question for the caller.

        Raises:
            EmptyQueryError: If the question is blank; nothing is fetched
        """
        question = (question or "").strip()
        if not question:
            raise EmptyQueryError("Question must not be empty")

        snapshot = await self.aggregator.fetch(
            caller_id,
            movement_limit=self.context.settings.analytics.query_movement_limit,
        )
        return await self.router.answer(question, snapshot)

    async def generate_insights(self, caller_id: str, now: Optional[datetime] = None) -> list:
        """Run one analytics pass and append its insights for the caller"""
        if self.context.insights is None:
            raise RuntimeError("No insight store configured")

        now = now or datetime.utcnow()
        snapshot = await self.aggregator.fetch(caller_id, now=now)
        records = self.forecaster.build_insights(snapshot, now=now)

        stored = await self.context.insights.add_insights(caller_id, records, created_at=now)
        logger.info("Insights generated", caller_id=caller_id, count=len(stored))
        return stored

    async def list_insights(self, caller_id: str, unread_only: bool = False, limit: int = 50) -> List:
        if self.context.insights is None:
            raise RuntimeError("No insight store configured")
        return await self.context.insights.list_insights(caller_id, unread_only=unread_only, limit=limit)

    async def mark_insight_read(self, caller_id: str, insight_id: uuid.UUID):
        if self.context.insights is None:
            raise RuntimeError("No insight store configured")
        return await self.context.insights.mark_read(caller_id, insight_id)
