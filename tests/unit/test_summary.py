"""
Unit Tests - Summary Builder
"""
from datetime import timedelta

import pytest

from insight_engine.analytics.summary import (
    SummaryBuilder,
    category_breakdown,
    format_currency,
    top_products_by_quantity,
    top_products_by_revenue,
)


class TestSummaryBuilder:
    """Tests for SummaryBuilder"""

    def test_inventory_totals(self, sample_snapshot):
        """Test inventory count, value and low-stock count"""
        summary = SummaryBuilder().build(sample_snapshot)

        assert summary.inventory_count == 4
        assert summary.total_inventory_value == pytest.approx(1776.0)
        assert summary.category_count == 2
        assert summary.movement_count == 2

    def test_low_stock_ignores_zero_threshold(self, make_item, make_snapshot):
        """Items with min_stock_level 0 are never low stock"""
        snapshot = make_snapshot(inventory=[
            make_item(current_stock=0, min_stock_level=0),
            make_item(current_stock=5, min_stock_level=5),
            make_item(current_stock=6, min_stock_level=5),
            make_item(current_stock=1, min_stock_level=3),
        ])

        summary = SummaryBuilder().build(snapshot)

        assert summary.low_stock_count == 2

    def test_trailing_window(self, daily_sales, make_snapshot):
        """Only the 30 most recent sales count toward recent revenue"""
        snapshot = make_snapshot(sales=daily_sales(30, amount=50.0) + daily_sales(10, amount=500.0, start_offset=30))

        summary = SummaryBuilder(trailing_window=30).build(snapshot)

        assert summary.recent_sales_count == 30
        assert summary.recent_revenue == pytest.approx(1500.0)
        assert summary.average_order_value == pytest.approx(50.0)

    def test_empty_snapshot(self, make_snapshot):
        """Empty snapshot yields zeros instead of division errors"""
        summary = SummaryBuilder().build(make_snapshot())

        assert summary.inventory_count == 0
        assert summary.recent_sales_count == 0
        assert summary.average_order_value == 0.0
        assert summary.top_products == []
        assert summary.category_breakdown == []

    def test_render_contains_digest(self, sample_snapshot):
        """Rendered digest carries the figures used in prompts"""
        text = SummaryBuilder().build(sample_snapshot).render()

        assert "Total Items: 4" in text
        assert "Low Stock Items: 1" in text
        assert "Cordless Drill: 1 units, $150.00" in text
        assert "Uncategorized: 1 items, $16.00 value" in text
        assert "RECENT STOCK MOVEMENTS: 2 movements tracked" in text


class TestProductRanking:
    """Tests for top product rankings"""

    def test_top_products_by_revenue(self, sample_snapshot):
        """Revenue ranking sums quantity x captured price per item"""
        ranked = top_products_by_revenue(sample_snapshot)

        assert [p.name for p in ranked] == ["Cordless Drill", "Hammer", "Garden Hose", "Work Gloves"]
        assert ranked[1].revenue == pytest.approx(120.0)
        assert ranked[1].quantity == 6

    def test_top_products_by_quantity(self, sample_snapshot):
        """Quantity ranking differs from revenue ranking"""
        ranked = top_products_by_quantity(sample_snapshot)

        assert [p.name for p in ranked] == ["Hammer", "Work Gloves", "Garden Hose", "Cordless Drill"]

    def test_ties_keep_first_seen_order(self, make_sale, make_snapshot, now):
        """Equal revenue keeps discovery order"""
        snapshot = make_snapshot(sales=[
            make_sale(created_at=now, lines=[("b", 1, 50.0)]),
            make_sale(created_at=now - timedelta(days=1), lines=[("a", 2, 25.0), ("c", 1, 50.0)]),
        ])

        ranked = top_products_by_revenue(snapshot)

        assert [p.item_id for p in ranked] == ["b", "a", "c"]

    def test_limit_and_unknown_items(self, make_sale, make_snapshot, now):
        """Top-5 cut-off and fallback names for items missing from inventory"""
        lines = [(f"sku-{i}", 1, float(10 * i)) for i in range(1, 8)]
        snapshot = make_snapshot(sales=[make_sale(created_at=now, lines=lines)])

        ranked = top_products_by_revenue(snapshot, limit=5)

        assert len(ranked) == 5
        assert ranked[0].name == "Product sku-7"

    def test_historical_price_is_used(self, make_item, make_sale, make_snapshot, now):
        """Line item price wins over the item's current price"""
        item = make_item("Lamp", unit_price=99.0, item_id="lamp")
        snapshot = make_snapshot(
            inventory=[item],
            sales=[make_sale(created_at=now, lines=[("lamp", 2, 40.0)])],
        )

        assert top_products_by_revenue(snapshot)[0].revenue == pytest.approx(80.0)


class TestCategoryBreakdown:
    """Tests for category breakdown"""

    def test_breakdown_with_uncategorized(self, sample_snapshot):
        breakdown = category_breakdown(sample_snapshot)

        assert [(c.name, c.items) for c in breakdown] == [("Tools", 2), ("Garden", 1), ("Uncategorized", 1)]
        assert breakdown[0].value == pytest.approx(1400.0)

    def test_unknown_category_folds_into_uncategorized(self, make_item, make_snapshot):
        snapshot = make_snapshot(inventory=[make_item(category_id="deleted-category", current_stock=1, unit_price=5.0)])

        breakdown = category_breakdown(snapshot)

        assert breakdown[0].name == "Uncategorized"


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-20) == "-$20.00"
