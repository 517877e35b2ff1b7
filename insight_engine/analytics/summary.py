"""
Summary Builder

Reduces a business snapshot into the digest shared by LLM prompt
construction and the rule-based answers, so both paths see the same facts:
- Inventory totals and low-stock count
- Trailing sales window revenue, order count and average order value
- Top products by revenue (and by quantity for best-seller questions)
- Category item count and value breakdown
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import polars as pl
import structlog

from insight_engine.analytics.snapshot import BusinessSnapshot, SaleRecord

logger = structlog.get_logger(__name__)

UNCATEGORIZED = "Uncategorized"

LINE_ITEM_SCHEMA = {
    "inventory_item_id": pl.Utf8,
    "quantity": pl.Int64,
    "revenue": pl.Float64,
}

CATEGORY_SCHEMA = {
    "category": pl.Utf8,
    "value": pl.Float64,
}


def format_currency(value: float) -> str:
    """Render an amount as ``$1,234.50``"""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


@dataclass
class ProductPerformance:
    """Aggregated line items for one inventory item"""
    item_id: Optional[str]
    name: str
    quantity: int
    revenue: float


@dataclass
class CategoryBreakdown:
    name: str
    items: int
    value: float


@dataclass
class BusinessSummary:
    """Digest of a business snapshot"""
    inventory_count: int
    total_inventory_value: float
    low_stock_count: int
    category_count: int
    movement_count: int
    recent_sales_count: int
    recent_revenue: float
    average_order_value: float
    top_products: List[ProductPerformance] = field(default_factory=list)
    category_breakdown: List[CategoryBreakdown] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def render(self) -> str:
        """Plain-text digest embedded in language-model prompts"""
        lines = [
            "INVENTORY OVERVIEW:",
            f"- Total Items: {self.inventory_count}",
            f"- Total Inventory Value: {format_currency(self.total_inventory_value)}",
            f"- Low Stock Items: {self.low_stock_count}",
            f"- Categories: {self.category_count}",
            "",
            f"SALES PERFORMANCE (Last {self.recent_sales_count} transactions):",
            f"- Total Revenue: {format_currency(self.recent_revenue)}",
            f"- Number of Sales: {self.recent_sales_count}",
            f"- Average Order Value: {format_currency(self.average_order_value)}",
            "",
            "TOP PERFORMING PRODUCTS:",
        ]
        if self.top_products:
            lines.extend(
                f"- {p.name}: {p.quantity} units, {format_currency(p.revenue)}"
                for p in self.top_products
            )
        else:
            lines.append("- No sales recorded")

        lines.extend(["", "CATEGORY BREAKDOWN:"])
        if self.category_breakdown:
            lines.extend(
                f"- {c.name}: {c.items} items, {format_currency(c.value)} value"
                for c in self.category_breakdown
            )
        else:
            lines.append("- No inventory recorded")

        lines.extend(["", f"RECENT STOCK MOVEMENTS: {self.movement_count} movements tracked"])
        return "\n".join(lines)


def _product_name(item_id: Optional[str], names: Dict[str, str]) -> str:
    if item_id is None:
        return "Unknown product"
    return names.get(item_id) or f"Product {item_id}"


def _line_items_frame(sales: List[SaleRecord]) -> pl.DataFrame:
    """One row per line item, in snapshot order"""
    item_ids: List[Optional[str]] = []
    quantities: List[int] = []
    revenues: List[float] = []

    for sale in sales:
        for item in sale.items:
            item_ids.append(item.inventory_item_id)
            quantities.append(item.quantity)
            revenues.append(item.quantity * item.unit_price)

    return pl.DataFrame(
        {"inventory_item_id": item_ids, "quantity": quantities, "revenue": revenues},
        schema=LINE_ITEM_SCHEMA,
    )


def _rank_products(
    snapshot: BusinessSnapshot,
    by: str,
    limit: Optional[int],
) -> List[ProductPerformance]:
    frame = _line_items_frame(snapshot.sales)
    if frame.is_empty():
        return []

    # Stable sort keeps first-seen order among equal totals
    ranked = (
        frame.group_by("inventory_item_id", maintain_order=True)
        .agg(pl.col("quantity").sum(), pl.col("revenue").sum())
        .sort(by, descending=True, maintain_order=True)
    )
    if limit is not None:
        ranked = ranked.head(limit)

    names = snapshot.item_names()
    return [
        ProductPerformance(
            item_id=row["inventory_item_id"],
            name=_product_name(row["inventory_item_id"], names),
            quantity=int(row["quantity"]),
            revenue=float(row["revenue"]),
        )
        for row in ranked.iter_rows(named=True)
    ]


def top_products_by_revenue(snapshot: BusinessSnapshot, limit: Optional[int] = 5) -> List[ProductPerformance]:
    """Rank items by Σ quantity × captured unit price across all snapshot sales"""
    return _rank_products(snapshot, "revenue", limit)


def top_products_by_quantity(snapshot: BusinessSnapshot, limit: Optional[int] = 5) -> List[ProductPerformance]:
    """Rank items by units sold across all snapshot sales"""
    return _rank_products(snapshot, "quantity", limit)


def category_breakdown(snapshot: BusinessSnapshot) -> List[CategoryBreakdown]:
    """Item count and stock value per category, in first-seen order"""
    if not snapshot.inventory:
        return []

    names = snapshot.category_names()
    frame = pl.DataFrame(
        {
            "category": [
                names.get(item.category_id, UNCATEGORIZED) if item.category_id else UNCATEGORIZED
                for item in snapshot.inventory
            ],
            "value": [item.stock_value for item in snapshot.inventory],
        },
        schema=CATEGORY_SCHEMA,
    )

    grouped = frame.group_by("category", maintain_order=True).agg(
        pl.len().alias("items"),
        pl.col("value").sum(),
    )

    return [
        CategoryBreakdown(name=row["category"], items=int(row["items"]), value=float(row["value"]))
        for row in grouped.iter_rows(named=True)
    ]


def low_stock_items(snapshot: BusinessSnapshot):
    return [item for item in snapshot.inventory if item.is_low_stock]


class SummaryBuilder:
    """
    Builds the digest for a snapshot.

    Example:
        builder = SummaryBuilder(trailing_window=30, top_products=5)
        summary = builder.build(snapshot)
        prompt_context = summary.render()
    """

    def __init__(self, trailing_window: int = 30, top_products: int = 5):
        self.trailing_window = trailing_window
        self.top_products = top_products

    def build(self, snapshot: BusinessSnapshot) -> BusinessSummary:
        recent_sales = snapshot.sales_window(0, self.trailing_window)
        recent_revenue = sum(sale.total_amount for sale in recent_sales)
        average_order_value = recent_revenue / len(recent_sales) if recent_sales else 0.0

        summary = BusinessSummary(
            inventory_count=len(snapshot.inventory),
            total_inventory_value=sum(item.stock_value for item in snapshot.inventory),
            low_stock_count=len(low_stock_items(snapshot)),
            category_count=len(snapshot.categories),
            movement_count=len(snapshot.stock_movements),
            recent_sales_count=len(recent_sales),
            recent_revenue=recent_revenue,
            average_order_value=average_order_value,
            top_products=top_products_by_revenue(snapshot, self.top_products),
            category_breakdown=category_breakdown(snapshot),
        )

        logger.debug(
            "Summary built",
            caller_id=snapshot.caller_id,
            inventory_count=summary.inventory_count,
            recent_sales=summary.recent_sales_count,
        )
        return summary
