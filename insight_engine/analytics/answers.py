"""
Rule-Based Answer Library

Keyword-routed handlers that answer business questions from the snapshot
and its digest without any network call. Handlers are pure: they read the
snapshot and summary and return an ``AIResponse``.

Routing order (first substring match wins):
profit/margin → trend/forecast → best-seller → inventory/stock →
revenue/sales → default
"""

from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from insight_engine.analytics.schemas import AIResponse, DataPoint
from insight_engine.analytics.snapshot import BusinessSnapshot
from insight_engine.analytics.summary import (
    BusinessSummary,
    format_currency,
    top_products_by_quantity,
)

logger = structlog.get_logger(__name__)

# Cost estimate when an item has no recorded cost price
ESTIMATED_COST_RATE = 0.6

Handler = Callable[[BusinessSnapshot, BusinessSummary, int], AIResponse]


def _format_percent(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.1f}%"


def profit_answer(snapshot: BusinessSnapshot, summary: BusinessSummary, window: int) -> AIResponse:
    revenue = sum(sale.total_amount for sale in snapshot.sales)
    estimated_cost = sum(
        item.current_stock * (
            item.cost_price if item.cost_price is not None else item.unit_price * ESTIMATED_COST_RATE
        )
        for item in snapshot.inventory
    )
    profit = revenue - estimated_cost
    margin = profit / revenue * 100 if revenue > 0 else None

    if margin is None:
        answer = (
            "There is no recorded revenue yet, so a profit margin cannot be estimated. "
            f"Current inventory represents an estimated cost of {format_currency(estimated_cost)}."
        )
    else:
        answer = (
            f"Based on your sales data, revenue is {format_currency(revenue)} with an estimated "
            f"profit of {format_currency(profit)}, a margin of {_format_percent(margin)}."
        )

    return AIResponse(
        answer=answer,
        insights=[
            "Profit analysis requires cost data for accuracy",
            "Items without a cost price are costed at 60% of their sale price",
            "Inventory value represents capital investment",
        ],
        recommendations=[
            "Track cost of goods sold for accurate profit calculations",
            "Monitor profit margins per product category",
            "Optimize inventory levels to improve cash flow",
        ],
        data=[
            DataPoint(label="Total Revenue", value=format_currency(revenue)),
            DataPoint(label="Estimated Profit", value=format_currency(profit)),
            DataPoint(label="Profit Margin", value=_format_percent(margin)),
        ],
        confidence=70,
        sources=["sales_data", "inventory_data"],
    )


def trend_answer(snapshot: BusinessSnapshot, summary: BusinessSummary, window: int) -> AIResponse:
    recent_revenue = sum(sale.total_amount for sale in snapshot.sales_window(0, window))
    previous_revenue = sum(sale.total_amount for sale in snapshot.sales_window(1, window))

    if previous_revenue <= 0:
        growth = None
        answer = (
            f"Recent revenue over the last {window} sales is {format_currency(recent_revenue)}. "
            "There is no prior data to compare against yet."
        )
        insights = [
            "No prior period data is available for comparison",
            "Trend analysis becomes meaningful once more sales history accumulates",
        ]
        first_recommendation = "Keep recording sales to enable period-over-period comparison"
    else:
        growth = (recent_revenue - previous_revenue) / previous_revenue * 100
        answer = (
            f"Sales trends show a {growth:.1f}% change compared to the previous period. "
            f"Recent revenue over the last {window} sales: {format_currency(recent_revenue)}."
        )
        insights = [
            f"{'Positive' if growth > 0 else 'Negative'} revenue trend detected",
            "Sales velocity impacts cash flow and growth potential",
            "Trend analysis helps predict future performance",
        ]
        first_recommendation = (
            "Capitalize on positive momentum with increased marketing"
            if growth > 0 else "Investigate causes of revenue decline"
        )

    return AIResponse(
        answer=answer,
        insights=insights,
        recommendations=[
            first_recommendation,
            "Analyze seasonal patterns for better forecasting",
            "Monitor key performance indicators regularly",
        ],
        data=[
            DataPoint(label="Growth Rate", value=_format_percent(growth)),
            DataPoint(label="Recent Revenue", value=format_currency(recent_revenue)),
            DataPoint(label="Previous Revenue", value=format_currency(previous_revenue)),
        ],
        confidence=80,
        sources=["sales_trends", "revenue_analysis"],
    )


def best_seller_answer(snapshot: BusinessSnapshot, summary: BusinessSummary, window: int) -> AIResponse:
    ranked = top_products_by_quantity(snapshot, limit=1)
    if not ranked:
        return AIResponse(
            answer="No sales have been recorded yet, so there is no best-selling product.",
            recommendations=["Record sales with line items to track product performance"],
            confidence=75,
            sources=["sales_data"],
        )

    top = ranked[0]
    return AIResponse(
        answer=(
            f'Your best-selling product is "{top.name}" with {top.quantity} units sold, '
            f"generating {format_currency(top.revenue)} in revenue."
        ),
        insights=[f"{top.name} leads unit sales across recorded transactions"],
        recommendations=[f"Keep {top.name} well stocked to avoid lost sales"],
        data=[
            DataPoint(label="Product", value=top.name),
            DataPoint(label="Units Sold", value=str(top.quantity)),
            DataPoint(label="Revenue", value=format_currency(top.revenue)),
        ],
        confidence=75,
        sources=["sales_data", "inventory_data"],
    )


def inventory_answer(snapshot: BusinessSnapshot, summary: BusinessSummary, window: int) -> AIResponse:
    recommendations = []
    if summary.low_stock_count:
        recommendations.append("Restock items at or below their minimum stock level")

    return AIResponse(
        answer=(
            f"You have {summary.inventory_count} items in inventory with a total value of "
            f"{format_currency(summary.total_inventory_value)}. "
            f"{summary.low_stock_count} items are currently low on stock."
        ),
        recommendations=recommendations,
        data=[
            DataPoint(label="Total Items", value=str(summary.inventory_count)),
            DataPoint(label="Low Stock Items", value=str(summary.low_stock_count)),
            DataPoint(label="Total Value", value=format_currency(summary.total_inventory_value)),
        ],
        confidence=90,
        sources=["inventory_data"],
    )


def revenue_answer(snapshot: BusinessSnapshot, summary: BusinessSummary, window: int) -> AIResponse:
    return AIResponse(
        answer=(
            f"In the last {summary.recent_sales_count} transactions, you've generated "
            f"{format_currency(summary.recent_revenue)} in revenue with an average sale value of "
            f"{format_currency(summary.average_order_value)}."
        ),
        data=[
            DataPoint(label="Total Revenue", value=format_currency(summary.recent_revenue)),
            DataPoint(label="Number of Sales", value=str(summary.recent_sales_count)),
            DataPoint(label="Average Sale", value=format_currency(summary.average_order_value)),
        ],
        confidence=85,
        sources=["sales_data"],
    )


def default_answer(snapshot: BusinessSnapshot, summary: BusinessSummary, window: int) -> AIResponse:
    return AIResponse(
        answer=(
            "I can help you analyze your business data. Try asking about profits, trends, "
            "best-selling products, inventory status, or recent sales performance."
        ),
        recommendations=[
            "Try queries like 'analyze my profit margins' or 'show me sales trends'",
        ],
        confidence=50,
        sources=["general_business_data"],
    )


ROUTES: List[Tuple[str, Sequence[str], Handler]] = [
    ("profit", ("profit", "margin"), profit_answer),
    ("trend", ("trend", "forecast"), trend_answer),
    ("best_seller", ("best sell", "best-sell", "bestsell", "top product", "top-product", "top selling"), best_seller_answer),
    ("inventory", ("inventory", "stock"), inventory_answer),
    ("revenue", ("revenue", "sales"), revenue_answer),
]


def match_handler(question: str) -> Tuple[str, Handler]:
    """Return the name and handler of the first route whose keyword appears in the question"""
    text = question.lower()
    for name, keywords, handler in ROUTES:
        if any(keyword in text for keyword in keywords):
            return name, handler
    return "default", default_answer


class RuleBasedAnalyzer:
    """
    Deterministic question answering over a snapshot.

    Example:
        analyzer = RuleBasedAnalyzer(trailing_window=30)
        response = analyzer.answer("What is my profit margin?", snapshot, summary)
    """

    def __init__(self, trailing_window: int = 30):
        self.trailing_window = trailing_window

    def answer(self, question: str, snapshot: BusinessSnapshot, summary: BusinessSummary) -> AIResponse:
        name, handler = match_handler(question)
        logger.debug("Rule-based handler selected", handler=name, caller_id=snapshot.caller_id)
        return handler(snapshot, summary, self.trailing_window)
