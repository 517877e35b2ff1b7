"""
Analytics Module
"""
from .snapshot import BusinessSnapshot
from .summary import BusinessSummary, SummaryBuilder
from .forecasting import AnalyticsReport, ForecastEngine
from .answers import RuleBasedAnalyzer
from .router import QueryRouter
from .schemas import AIResponse

__all__ = [
    "BusinessSnapshot",
    "BusinessSummary",
    "SummaryBuilder",
    "AnalyticsReport",
    "ForecastEngine",
    "RuleBasedAnalyzer",
    "QueryRouter",
    "AIResponse",
]
