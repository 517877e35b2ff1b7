"""
Integration Tests - SQLAlchemy Store & Insight Repository
"""
import uuid

import pytest

from insight_engine.analytics.aggregator import BusinessContextAggregator
from insight_engine.analytics.exceptions import InsightNotFoundError
from insight_engine.analytics.forecasting import ForecastEngine, InsightRecord
from insight_engine.database.models import InsightType
from insight_engine.database.store import InsightRepository, SqlAlchemyBusinessStore

CALLER = "user-1"
OTHER_CALLER = "user-2"


@pytest.fixture
def store(seeded):
    return SqlAlchemyBusinessStore(seeded.factory)


@pytest.fixture
def repository(session_factory):
    return InsightRepository(session_factory)


class TestBusinessStore:
    """Tests for caller-scoped reads"""

    async def test_inventory_is_caller_scoped(self, store, seeded):
        items = await store.fetch_inventory(CALLER, limit=100)

        assert [item.name for item in items] == ["Hammer", "Cordless Drill"]
        drill = items[1]
        assert drill.id == seeded.drill_id
        assert drill.unit_price == pytest.approx(150.0)
        assert drill.cost_price == pytest.approx(90.0)
        assert drill.category_id == seeded.category_id
        assert drill.is_low_stock
        assert items[0].cost_price is None

    async def test_inventory_limit_keeps_newest(self, store, seeded):
        items = await store.fetch_inventory(CALLER, limit=1)

        assert [item.id for item in items] == [seeded.hammer_id]

    async def test_sales_most_recent_first_with_items(self, store, seeded):
        sales = await store.fetch_sales(CALLER, limit=100)

        assert [sale.total_amount for sale in sales] == [pytest.approx(250.0), pytest.approx(18.5), pytest.approx(140.0)]
        assert sales[2].status == "cancelled"
        first = sales[0]
        assert [item.inventory_item_id for item in first.items] == [seeded.hammer_id, seeded.drill_id]
        assert first.items[0].unit_price == pytest.approx(20.0)
        assert all(sale.is_consistent for sale in sales)

    async def test_captured_price_survives(self, store):
        sales = await store.fetch_sales(CALLER, limit=100)

        assert sales[1].items[0].unit_price == pytest.approx(18.5)

    async def test_stock_movements(self, store):
        movements = await store.fetch_stock_movements(CALLER, limit=200)

        assert [m.movement_type for m in movements] == ["out", "in"]
        assert movements[0].reason == "sale"

    async def test_categories(self, store):
        categories = await store.fetch_categories(CALLER)

        assert [c.name for c in categories] == ["Tools"]

    async def test_unknown_caller_reads_nothing(self, store):
        assert await store.fetch_inventory("nobody", limit=100) == []
        assert await store.fetch_sales("nobody", limit=100) == []

    async def test_aggregated_snapshot(self, store, seeded, analytics_settings, now):
        snapshot = await BusinessContextAggregator(store, analytics_settings).fetch(CALLER, now=now)

        assert len(snapshot.inventory) == 2
        assert len(snapshot.sales) == 3
        assert "Secret Item" not in snapshot.item_names().values()

        report = ForecastEngine(analytics_settings).analyze(snapshot, now)
        assert report.anomalies[0].data["low_stock_items"] == [seeded.drill_id]
        assert report.product_performance[0].name == "Cordless Drill"


class TestInsightRepository:
    """Tests for append-only insight persistence"""

    def _records(self):
        return [
            InsightRecord(
                insight_type=InsightType.ANOMALY,
                title="Critical Stock Levels Detected",
                description="1 items are at or below minimum stock levels.",
                confidence_score=0.95,
                data={"severity": "high"},
            ),
            InsightRecord(
                insight_type=InsightType.FORECAST,
                title="Revenue forecast for the next period",
                description="Projected revenue of $470.00.",
                confidence_score=0.85,
                data={"revenue": 470, "sales": 3, "confidence": 85},
            ),
        ]

    async def test_add_and_list(self, repository, now):
        stored = await repository.add_insights(CALLER, self._records(), created_at=now)

        assert len(stored) == 2
        assert all(row.id is not None for row in stored)

        listed = await repository.list_insights(CALLER)
        assert {row.title for row in listed} == {r.title for r in self._records()}
        assert all(row.is_read is False for row in listed)
        assert listed[0].data is not None

    async def test_generation_appends(self, repository, now):
        await repository.add_insights(CALLER, self._records(), created_at=now)
        await repository.add_insights(CALLER, self._records(), created_at=now)

        assert len(await repository.list_insights(CALLER)) == 4

    async def test_empty_batch(self, repository):
        assert await repository.add_insights(CALLER, []) == []

    async def test_mark_read_and_unread_filter(self, repository, now):
        stored = await repository.add_insights(CALLER, self._records(), created_at=now)

        updated = await repository.mark_read(CALLER, stored[0].id)

        assert updated.is_read is True
        unread = await repository.list_insights(CALLER, unread_only=True)
        assert [row.id for row in unread] == [stored[1].id]

    async def test_mark_read_other_caller(self, repository, now):
        stored = await repository.add_insights(CALLER, self._records(), created_at=now)

        with pytest.raises(InsightNotFoundError):
            await repository.mark_read(OTHER_CALLER, stored[0].id)

    async def test_mark_read_unknown_id(self, repository):
        with pytest.raises(InsightNotFoundError):
            await repository.mark_read(CALLER, uuid.uuid4())

    async def test_list_is_caller_scoped(self, repository, now):
        await repository.add_insights(CALLER, self._records(), created_at=now)

        assert await repository.list_insights(OTHER_CALLER) == []
