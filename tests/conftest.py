"""
Test Suite Configuration
"""
from datetime import datetime, timedelta
from typing import List, Optional
import itertools

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from insight_engine.analytics.snapshot import (
    BusinessSnapshot,
    CategoryRecord,
    InventoryRecord,
    SaleItemRecord,
    SaleRecord,
    StockMovementRecord,
)
from insight_engine.config.settings import AnalyticsSettings, LLMSettings, Settings
from insight_engine.database.connection import create_session_factory
from insight_engine.database.models import Base

# March: outside the seasonal months
REFERENCE_NOW = datetime(2026, 3, 15, 12, 0, 0)

_ids = itertools.count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


@pytest.fixture
def now() -> datetime:
    return REFERENCE_NOW


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    return AnalyticsSettings()


@pytest.fixture
def test_settings(analytics_settings) -> Settings:
    """Settings with the language model disabled"""
    return Settings(
        APP_ENV="testing",
        llm=LLMSettings(api_key=None),
        analytics=analytics_settings,
    )


@pytest.fixture
def make_item():
    """Build an InventoryRecord with sensible defaults"""
    def _make_item(
        name: str = "Widget",
        current_stock: int = 10,
        min_stock_level: int = 0,
        unit_price: float = 10.0,
        cost_price: Optional[float] = None,
        category_id: Optional[str] = None,
        item_id: Optional[str] = None,
    ) -> InventoryRecord:
        return InventoryRecord(
            id=item_id or _next_id("item"),
            name=name,
            current_stock=current_stock,
            min_stock_level=min_stock_level,
            unit_price=unit_price,
            cost_price=cost_price,
            category_id=category_id,
        )
    return _make_item


@pytest.fixture
def make_sale():
    """
    Build a SaleRecord whose total matches its line items.

    ``lines`` is a list of ``(inventory_item_id, quantity, unit_price)``.
    Without lines, ``amount`` becomes a single anonymous line.
    """
    def _make_sale(
        created_at: datetime = REFERENCE_NOW,
        lines: Optional[List[tuple]] = None,
        amount: float = 100.0,
    ) -> SaleRecord:
        sale_id = _next_id("sale")
        if lines is None:
            lines = [(None, 1, amount)]
        items = [
            SaleItemRecord(
                id=_next_id("line"),
                sale_id=sale_id,
                inventory_item_id=item_id,
                quantity=quantity,
                unit_price=unit_price,
            )
            for item_id, quantity, unit_price in lines
        ]
        return SaleRecord(
            id=sale_id,
            total_amount=sum(item.total_price for item in items),
            created_at=created_at,
            items=items,
        )
    return _make_sale


@pytest.fixture
def make_snapshot(now):
    """Build a BusinessSnapshot; sales must already be most recent first"""
    def _make_snapshot(
        inventory=None,
        sales=None,
        stock_movements=None,
        categories=None,
        caller_id: str = "user-1",
    ) -> BusinessSnapshot:
        return BusinessSnapshot(
            caller_id=caller_id,
            captured_at=now,
            inventory=list(inventory or []),
            sales=list(sales or []),
            stock_movements=list(stock_movements or []),
            categories=list(categories or []),
        )
    return _make_snapshot


@pytest.fixture
def daily_sales(make_sale, now):
    """``count`` sales of ``amount``, one per day going back from ``now``"""
    def _daily_sales(count: int, amount: float = 100.0, start_offset: int = 0) -> List[SaleRecord]:
        return [
            make_sale(created_at=now - timedelta(days=start_offset + i), amount=amount)
            for i in range(count)
        ]
    return _daily_sales


@pytest.fixture
def sample_snapshot(make_item, make_sale, make_snapshot, now) -> BusinessSnapshot:
    """Small shop: three items in two categories plus one uncategorized item"""
    tools = CategoryRecord(id="cat-tools", name="Tools")
    garden = CategoryRecord(id="cat-garden", name="Garden")

    drill = make_item("Cordless Drill", current_stock=4, min_stock_level=5, unit_price=150.0, category_id="cat-tools", item_id="drill")
    hammer = make_item("Hammer", current_stock=40, min_stock_level=10, unit_price=20.0, category_id="cat-tools", item_id="hammer")
    hose = make_item("Garden Hose", current_stock=12, min_stock_level=0, unit_price=30.0, category_id="cat-garden", item_id="hose")
    gloves = make_item("Work Gloves", current_stock=2, min_stock_level=0, unit_price=8.0, item_id="gloves")

    sales = [
        make_sale(created_at=now - timedelta(hours=1), lines=[("hammer", 5, 20.0), ("gloves", 3, 8.0)]),
        make_sale(created_at=now - timedelta(days=1), lines=[("drill", 1, 150.0)]),
        make_sale(created_at=now - timedelta(days=2), lines=[("hose", 2, 30.0), ("hammer", 1, 20.0)]),
    ]

    movements = [
        StockMovementRecord(id="mv-1", movement_type="out", quantity=5, created_at=now, inventory_item_id="hammer"),
        StockMovementRecord(id="mv-2", movement_type="in", quantity=20, created_at=now - timedelta(days=3), inventory_item_id="hammer"),
    ]

    return make_snapshot(
        inventory=[drill, hammer, hose, gloves],
        sales=sales,
        stock_movements=movements,
        categories=[tools, garden],
    )


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent reads share one database"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()
