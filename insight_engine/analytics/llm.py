"""
Language-Model Adapter

Calls an OpenAI-compatible chat completions endpoint and parses the
completion content as the answer JSON document. Every failure is raised
as an ``LLMError`` subclass so the query router can fall back.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from insight_engine.analytics.exceptions import (
    LLMNotConfiguredError,
    LLMResponseError,
    LLMUnavailableError,
)
from insight_engine.analytics.schemas import AIResponse, LLMAnalysis
from insight_engine.config.settings import LLMSettings

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = "You are an expert business analyst. Always respond with valid JSON format only."

PROMPT_TEMPLATE = """You are an expert business analyst specializing in inventory management and retail analytics. Analyze the following business data and user query.

BUSINESS DATA SUMMARY:
{summary}

USER QUERY: "{question}"

Please provide a comprehensive analysis with:
1. A clear, actionable answer to the user's question
2. 2-3 key insights based on the data
3. 2-3 specific recommendations for improvement
4. Relevant data points that support your analysis
5. A confidence score (0-100) for your analysis

Respond in JSON format:
{{
  "answer": "Direct answer to the user's question",
  "insights": ["insight1", "insight2", "insight3"],
  "recommendations": ["recommendation1", "recommendation2"],
  "data": [{{"label": "Metric Name", "value": "metric_value"}}],
  "confidence": 85,
  "sources": ["data source used for analysis"]
}}

Be specific, actionable, and focus on business impact. Use actual numbers from the provided data.
"""


def build_prompt(summary_text: str, question: str) -> str:
    return PROMPT_TEMPLATE.format(summary=summary_text, question=question)


def build_messages(summary_text: str, question: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(summary_text, question)},
    ]


def parse_completion(body: Any) -> AIResponse:
    """
    Extract and validate the answer document from a completion body.

    Raises:
        LLMResponseError: If any part of the body is missing or malformed
    """
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise LLMResponseError(f"Completion body has no message content: {e}") from e

    if not isinstance(content, str):
        raise LLMResponseError("Completion content is not a string")

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Completion content is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise LLMResponseError("Completion content is not a JSON object")

    try:
        return LLMAnalysis.model_validate(document).to_response()
    except ValidationError as e:
        raise LLMResponseError(f"Completion content does not match the answer schema: {e}") from e


class LLMClient:
    """
    Chat completions client.

    The ``httpx.AsyncClient`` is owned by the caller so the application can
    share one connection pool and tests can inject a mock transport.

    Example:
        async with httpx.AsyncClient() as http:
            client = LLMClient(settings.llm, http)
            response = await client.analyze(summary.render(), "How are sales?")
    """

    def __init__(self, settings: LLMSettings, http_client: httpx.AsyncClient):
        self.settings = settings
        self._http = http_client

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _payload(self, summary_text: str, question: str) -> Dict[str, Any]:
        return {
            "model": self.settings.model,
            "messages": build_messages(summary_text, question),
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
            "response_format": {"type": "json_object"},
        }

    async def analyze(self, summary_text: str, question: str) -> AIResponse:
        """
        Ask the model for an analysis of the summary.

        Raises:
            LLMNotConfiguredError: No credential configured; no request is sent
            LLMUnavailableError: Transport error, timeout or non-2xx status
            LLMResponseError: Body or content is not the expected JSON
        """
        if not self.is_configured:
            raise LLMNotConfiguredError("No language-model credential configured")

        headers = {
            "Authorization": f"Bearer {self.settings.api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(
                self.settings.base_url,
                json=self._payload(summary_text, question),
                headers=headers,
                timeout=self.settings.timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise LLMUnavailableError(f"Language-model request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise LLMUnavailableError(
                f"Language-model endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise LLMResponseError(f"Completion body is not valid JSON: {e}") from e

        result = parse_completion(body)
        logger.debug("Language-model analysis parsed", model=self.settings.model, confidence=result.confidence)
        return result


def create_llm_client(settings: LLMSettings, http_client: Optional[httpx.AsyncClient]) -> Optional[LLMClient]:
    """Build a client when an HTTP client is available; the credential is checked per call"""
    if http_client is None:
        return None
    return LLMClient(settings, http_client)
