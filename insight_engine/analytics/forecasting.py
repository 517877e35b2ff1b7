"""
Forecast & Anomaly Engine

Heuristic analytics over a business snapshot.
Implements:
- Revenue and sales-count forecasts (flat growth projection)
- Critical stock and sales velocity anomaly detection
- High-value and seasonal recommendations
- Optimization score
- Daily revenue trend and monthly revenue series
- Conversion of the above into insight records for persistence

The projections are deterministic for a given snapshot and ``now``; the
only randomness is the optional, seedable trend jitter.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional
import math

import numpy as np
import structlog

from insight_engine.analytics.snapshot import BusinessSnapshot, SaleRecord
from insight_engine.analytics.summary import (
    ProductPerformance,
    format_currency,
    low_stock_items,
    top_products_by_revenue,
)
from insight_engine.config.settings import AnalyticsSettings
from insight_engine.database.models import InsightType

logger = structlog.get_logger(__name__)

# Sales shift insight compares two windows of this many sales
SHIFT_WINDOW = 10
SHIFT_MIN_SALES = 5
SHIFT_THRESHOLD = 0.2

MONTHLY_PERIODS = 6
ESTIMATED_PROFIT_RATE = 0.3


class AnomalySeverity(str, Enum):
    """Severity levels for anomalies"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves away from zero for positives"""
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def _revenue(sales: List[SaleRecord]) -> float:
    return sum(sale.total_amount for sale in sales)


@dataclass
class Forecast:
    revenue: int
    sales: int
    confidence: int


@dataclass
class Anomaly:
    """Single detected anomaly"""
    title: str
    description: str
    severity: AnomalySeverity
    confidence: float
    detected_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_critical(self) -> bool:
        return self.severity == AnomalySeverity.HIGH


@dataclass
class Recommendation:
    title: str
    description: str
    category: str
    impact: str
    confidence: float
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TrendPoint:
    period: str
    date: date
    actual: float
    predicted: int


@dataclass
class MonthlyRevenue:
    month: str
    revenue: float
    profit: int


@dataclass
class InsightRecord:
    """Insight ready to be appended to the insight store"""
    insight_type: InsightType
    title: str
    description: str
    confidence_score: float
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["insight_type"] = self.insight_type.value
        return payload


@dataclass
class AnalyticsReport:
    """Complete analytics run for one snapshot"""
    caller_id: str
    generated_at: datetime
    forecast: Forecast
    optimization_score: int
    anomalies: List[Anomaly] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    revenue_trend: List[TrendPoint] = field(default_factory=list)
    monthly_revenue: List[MonthlyRevenue] = field(default_factory=list)
    product_performance: List[ProductPerformance] = field(default_factory=list)

    @property
    def has_critical_anomalies(self) -> bool:
        return any(a.is_critical for a in self.anomalies)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        for anomaly in payload["anomalies"]:
            anomaly["severity"] = anomaly["severity"].value
        return payload


class ForecastEngine:
    """
    Heuristic forecast and anomaly engine.

    Detection rules:
    - Critical stock: items at or below a non-zero minimum threshold
    - Velocity decline: trailing window has < 70% of the prior window's sales

    Example:
        engine = ForecastEngine(settings.analytics)
        report = engine.analyze(snapshot, now=datetime.utcnow())
        insights = engine.build_insights(snapshot, now=datetime.utcnow())
    """

    def __init__(self, settings: Optional[AnalyticsSettings] = None):
        self.settings = settings or AnalyticsSettings()

    # -------------------------------------------------------------------------
    # Forecast
    # -------------------------------------------------------------------------

    def forecast(self, snapshot: BusinessSnapshot) -> Forecast:
        """Project next period's revenue and sales count from the trailing window"""
        window = self.settings.trailing_window
        recent = snapshot.sales_window(0, window)

        avg_daily_revenue = _revenue(recent) / window
        return Forecast(
            revenue=round_half_up(avg_daily_revenue * window * self.settings.revenue_growth),
            sales=round_half_up(len(recent) * self.settings.sales_growth),
            confidence=self.settings.forecast_confidence,
        )

    # -------------------------------------------------------------------------
    # Anomalies
    # -------------------------------------------------------------------------

    def _detect_critical_stock(self, snapshot: BusinessSnapshot, now: datetime) -> List[Anomaly]:
        critical = low_stock_items(snapshot)
        if not critical:
            return []

        example = critical[0]
        return [Anomaly(
            title="Critical Stock Levels Detected",
            description=(
                f"{len(critical)} items are at or below minimum stock levels, risking stockouts. "
                f'Items like "{example.name}" need immediate restocking.'
            ),
            severity=AnomalySeverity.HIGH,
            confidence=0.95,
            detected_at=now,
            data={"low_stock_items": [item.id for item in critical]},
        )]

    def _detect_velocity_decline(self, snapshot: BusinessSnapshot, now: datetime) -> List[Anomaly]:
        window = self.settings.trailing_window
        recent_count = len(snapshot.sales_window(0, window))
        previous_count = len(snapshot.sales_window(1, window))

        # No prior window means no baseline to decline from
        if previous_count == 0:
            return []

        if recent_count >= previous_count * self.settings.velocity_decline_ratio:
            return []

        decline = (previous_count - recent_count) / previous_count * 100
        return [Anomaly(
            title="Sales Velocity Decline",
            description=(
                f"Sales frequency has decreased by {decline:.0f}% compared to the previous period."
            ),
            severity=AnomalySeverity.MEDIUM,
            confidence=0.80,
            detected_at=now,
            data={"recent_sales": recent_count, "previous_sales": previous_count},
        )]

    def detect_anomalies(self, snapshot: BusinessSnapshot, now: datetime) -> List[Anomaly]:
        """Run every anomaly rule; each may contribute zero or one anomaly"""
        anomalies = self._detect_critical_stock(snapshot, now)
        anomalies.extend(self._detect_velocity_decline(snapshot, now))

        if any(a.is_critical for a in anomalies):
            logger.warning(
                "Critical anomalies detected",
                caller_id=snapshot.caller_id,
                total_anomalies=len(anomalies),
            )
        return anomalies

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def _high_value_recommendation(self, snapshot: BusinessSnapshot) -> List[Recommendation]:
        high_value = sorted(
            (item for item in snapshot.inventory if item.unit_price > self.settings.high_value_threshold),
            key=lambda item: item.stock_value,
            reverse=True,
        )[:self.settings.high_value_limit]

        if not high_value:
            return []

        return [Recommendation(
            title="Focus on high-value inventory management",
            description=(
                f'Your top-value items like "{high_value[0].name}" represent significant capital. '
                "Consider implementing tighter stock controls."
            ),
            category="Inventory",
            impact="High",
            confidence=0.75,
            data={
                "high_value_items": [item.id for item in high_value],
                "capital": sum(item.stock_value for item in high_value),
            },
        )]

    def _seasonal_recommendation(self, now: datetime) -> List[Recommendation]:
        if now.month not in self.settings.seasonal_months:
            return []

        return [Recommendation(
            title="Prepare for seasonal demand increase",
            description=(
                "Historical patterns suggest inventory demand typically increases by 30-40% "
                "during the holiday season. Consider increasing stock levels."
            ),
            category="Forecasting",
            impact="Medium",
            confidence=0.7,
            data={"season": "holiday", "expected_increase": 0.35},
        )]

    def recommend(self, snapshot: BusinessSnapshot, now: datetime) -> List[Recommendation]:
        return self._high_value_recommendation(snapshot) + self._seasonal_recommendation(now)

    # -------------------------------------------------------------------------
    # Scores and series
    # -------------------------------------------------------------------------

    def optimization_score(self, snapshot: BusinessSnapshot) -> int:
        """Mean of stock health and sales efficiency, both in [0, 100]"""
        inventory = snapshot.inventory
        stock_term = (
            sum(1 for item in inventory if item.is_above_minimum) / len(inventory) * 100
            if inventory else 0.0
        )

        window = self.settings.trailing_window
        recent_count = len(snapshot.sales_window(0, window))
        sales_efficiency = min(100.0, recent_count / window * 10) if recent_count else 0.0

        score = round_half_up((clamp(stock_term) + clamp(sales_efficiency)) / 2)
        return int(clamp(score))

    def _predict(self, actual: float, recent: bool, rng: np.random.Generator) -> int:
        if recent and self.settings.trend_jitter_enabled and self.settings.trend_jitter > 0:
            spread = self.settings.trend_jitter
            actual = actual * (1 + rng.uniform(-spread, spread))
        return round_half_up(actual)

    def revenue_trend(self, snapshot: BusinessSnapshot, now: datetime) -> List[TrendPoint]:
        """Daily revenue for the trailing days ending today, oldest first"""
        daily: Dict[date, float] = {}
        for sale in snapshot.sales:
            day = sale.created_at.date()
            daily[day] = daily.get(day, 0.0) + sale.total_amount

        today = now.date()
        days = self.settings.trend_days
        # Fresh generator per call so a seeded engine repeats the same series
        rng = np.random.default_rng(self.settings.trend_jitter_seed)
        points = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            actual = daily.get(day, 0.0)
            points.append(TrendPoint(
                period=f"{day:%b} {day.day}",
                date=day,
                actual=actual,
                predicted=self._predict(actual, offset < self.settings.trend_prediction_days, rng),
            ))
        return points

    def monthly_revenue(self, snapshot: BusinessSnapshot, now: datetime) -> List[MonthlyRevenue]:
        """Revenue per calendar month for the last six months, oldest first"""
        totals: Dict[tuple, float] = {}
        for sale in snapshot.sales:
            key = (sale.created_at.year, sale.created_at.month)
            totals[key] = totals.get(key, 0.0) + sale.total_amount

        series = []
        for back in range(MONTHLY_PERIODS - 1, -1, -1):
            year, month = divmod(now.year * 12 + now.month - 1 - back, 12)
            month += 1
            revenue = totals.get((year, month), 0.0)
            series.append(MonthlyRevenue(
                month=date(year, month, 1).strftime("%b"),
                revenue=revenue,
                profit=round_half_up(revenue * ESTIMATED_PROFIT_RATE),
            ))
        return series

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def analyze(self, snapshot: BusinessSnapshot, now: Optional[datetime] = None) -> AnalyticsReport:
        """
        Run the full analytics pass for a snapshot.

        Args:
            snapshot: Caller's business snapshot
            now: Reference time for calendar rules and trend windows

        Returns:
            AnalyticsReport with forecasts, anomalies, recommendations and series
        """
        now = now or datetime.utcnow()

        report = AnalyticsReport(
            caller_id=snapshot.caller_id,
            generated_at=now,
            forecast=self.forecast(snapshot),
            optimization_score=self.optimization_score(snapshot),
            anomalies=self.detect_anomalies(snapshot, now),
            recommendations=self.recommend(snapshot, now),
            revenue_trend=self.revenue_trend(snapshot, now),
            monthly_revenue=self.monthly_revenue(snapshot, now),
            product_performance=top_products_by_revenue(snapshot, self.settings.top_products),
        )

        logger.info(
            "Analytics report generated",
            caller_id=snapshot.caller_id,
            anomalies=len(report.anomalies),
            recommendations=len(report.recommendations),
            optimization_score=report.optimization_score,
        )
        return report

    def _sales_shift_insight(self, snapshot: BusinessSnapshot) -> List[InsightRecord]:
        if len(snapshot.sales) < SHIFT_MIN_SALES:
            return []

        recent_total = _revenue(snapshot.sales_window(0, SHIFT_WINDOW))
        older_total = _revenue(snapshot.sales_window(1, SHIFT_WINDOW))
        if older_total <= 0:
            return []

        data = {"recent_total": recent_total, "previous_total": older_total}
        if recent_total > older_total * (1 + SHIFT_THRESHOLD):
            change = round_half_up((recent_total - older_total) / older_total * 100)
            return [InsightRecord(
                insight_type=InsightType.TREND,
                title="Sales are trending upward",
                description=f"Your recent sales have increased by {change}% compared to the previous period.",
                confidence_score=0.85,
                data=data,
            )]
        if recent_total < older_total * (1 - SHIFT_THRESHOLD):
            change = round_half_up((older_total - recent_total) / older_total * 100)
            return [InsightRecord(
                insight_type=InsightType.ANOMALY,
                title="Sales have declined recently",
                description=(
                    f"Your recent sales have decreased by {change}%. "
                    "Consider reviewing your inventory or marketing strategy."
                ),
                confidence_score=0.8,
                data=data,
            )]
        return []

    def build_insights(self, snapshot: BusinessSnapshot, now: Optional[datetime] = None) -> List[InsightRecord]:
        """Translate one analytics pass into insight records, anomalies first"""
        now = now or datetime.utcnow()
        insights: List[InsightRecord] = []

        for anomaly in self.detect_anomalies(snapshot, now):
            insights.append(InsightRecord(
                insight_type=InsightType.ANOMALY,
                title=anomaly.title,
                description=anomaly.description,
                confidence_score=anomaly.confidence,
                data={"severity": anomaly.severity.value, **anomaly.data},
            ))

        insights.extend(self._sales_shift_insight(snapshot))

        if snapshot.sales_window(0, self.settings.trailing_window):
            forecast = self.forecast(snapshot)
            insights.append(InsightRecord(
                insight_type=InsightType.FORECAST,
                title="Revenue forecast for the next period",
                description=(
                    f"Projected revenue of {format_currency(forecast.revenue)} "
                    f"across roughly {forecast.sales} sales."
                ),
                confidence_score=forecast.confidence / 100,
                data=asdict(forecast),
            ))

        for recommendation in self.recommend(snapshot, now):
            insights.append(InsightRecord(
                insight_type=InsightType.RECOMMENDATION,
                title=recommendation.title,
                description=recommendation.description,
                confidence_score=recommendation.confidence,
                data=recommendation.data,
            ))

        return insights
