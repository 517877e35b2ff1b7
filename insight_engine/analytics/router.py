"""
Query Router

Answers a question about a snapshot, trying the language model first and
falling back to the rule-based library on any failure. Never raises.
"""

from typing import Optional

import structlog

from insight_engine.analytics.answers import RuleBasedAnalyzer
from insight_engine.analytics.exceptions import LLMError, LLMNotConfiguredError
from insight_engine.analytics.llm import LLMClient
from insight_engine.analytics.schemas import AIResponse
from insight_engine.analytics.snapshot import BusinessSnapshot
from insight_engine.analytics.summary import SummaryBuilder

logger = structlog.get_logger(__name__)


class QueryRouter:
    """
    LLM-first, rules-guaranteed question answering.

    Both paths receive the same digest from the ``SummaryBuilder``.
    """

    def __init__(
        self,
        summary_builder: SummaryBuilder,
        rules: RuleBasedAnalyzer,
        llm: Optional[LLMClient] = None,
    ):
        self.summary_builder = summary_builder
        self.rules = rules
        self.llm = llm

    async def answer(self, question: str, snapshot: BusinessSnapshot) -> AIResponse:
        summary = self.summary_builder.build(snapshot)

        if self.llm is not None and self.llm.is_configured:
            try:
                response = await self.llm.analyze(summary.render(), question)
                logger.info("Question answered by language model", caller_id=snapshot.caller_id)
                return response
            except LLMNotConfiguredError:
                pass
            except LLMError as e:
                logger.warning(
                    "Language-model analysis failed, using rule-based fallback",
                    caller_id=snapshot.caller_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            except Exception as e:
                logger.error(
                    "Unexpected language-model failure, using rule-based fallback",
                    caller_id=snapshot.caller_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        response = self.rules.answer(question, snapshot, summary)
        logger.info("Question answered by rules", caller_id=snapshot.caller_id, confidence=response.confidence)
        return response
