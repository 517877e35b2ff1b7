"""
Answer Schemas

The response contract shared by the language-model and rule-based answer
paths. Callers render either path identically.
"""

from typing import Any, List, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_LLM_CONFIDENCE = 75.0


class DataPoint(BaseModel):
    """Labelled figure supporting an answer"""
    label: str
    value: Union[str, float, int]


class AIResponse(BaseModel):
    """Unified answer to a business question"""
    answer: str
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    data: List[DataPoint] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=100)
    sources: List[str] = Field(default_factory=list)
    answered_by: Literal["llm", "rules"] = "rules"


class LLMAnalysis(BaseModel):
    """
    JSON document expected in the completion content.

    Missing optional fields fall back to defaults; a missing or blank
    ``answer`` keeps the default sentence. A confidence of zero or below
    counts as missing.
    """
    answer: str = "I'll analyze your business data to provide insights."
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    data: List[DataPoint] = Field(default_factory=list)
    confidence: float = DEFAULT_LLM_CONFIDENCE
    sources: List[str] = Field(default_factory=lambda: ["business_data"])

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, values: Any) -> Any:
        if isinstance(values, dict):
            return {key: value for key, value in values.items() if value is not None}
        return values

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        if v <= 0:
            return DEFAULT_LLM_CONFIDENCE
        return min(100.0, v)

    @field_validator("answer")
    @classmethod
    def default_blank_answer(cls, v: str) -> str:
        return v if v.strip() else "I'll analyze your business data to provide insights."

    def to_response(self) -> AIResponse:
        return AIResponse(
            answer=self.answer,
            insights=self.insights,
            recommendations=self.recommendations,
            data=self.data,
            confidence=self.confidence,
            sources=self.sources or ["business_data"],
            answered_by="llm",
        )


class QueryRequest(BaseModel):
    """Caller-facing question payload"""
    question: str = Field(max_length=2000)
