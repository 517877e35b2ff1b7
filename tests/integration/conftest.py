"""
Integration fixtures: a seeded SQLite database shared by store and API tests
"""
from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from insight_engine.database.connection import session_scope
from insight_engine.database.models import (
    Category,
    InventoryItem,
    MovementType,
    Sale,
    SaleItem,
    SaleStatus,
    StockMovement,
)

CALLER = "user-1"
OTHER_CALLER = "user-2"


def _sale(user_id, created_at, lines, status=SaleStatus.COMPLETED):
    items = [
        SaleItem(
            inventory_item_id=item.id,
            position=position,
            quantity=quantity,
            unit_price=Decimal(price),
            total_price=Decimal(price) * quantity,
        )
        for position, (item, quantity, price) in enumerate(lines)
    ]
    return Sale(
        user_id=user_id,
        created_at=created_at,
        status=status,
        total_amount=sum((line.total_price for line in items), Decimal("0")),
        payment_method="card",
        items=items,
    )


@pytest.fixture
async def seeded(session_factory, now):
    """
    Two callers. ``user-1`` owns a small hardware shop; ``user-2`` owns
    a single item and sale that must never leak into ``user-1`` reads.
    """
    tools = Category(user_id=CALLER, name="Tools")
    drill = InventoryItem(
        user_id=CALLER, category=tools, name="Cordless Drill", sku="DR-1",
        current_stock=4, min_stock_level=5, unit_price=Decimal("150.00"), cost_price=Decimal("90.00"),
        created_at=now - timedelta(days=10),
    )
    hammer = InventoryItem(
        user_id=CALLER, category=tools, name="Hammer", sku="HM-1",
        current_stock=40, min_stock_level=10, unit_price=Decimal("20.00"),
        created_at=now - timedelta(days=9),
    )
    other_item = InventoryItem(
        user_id=OTHER_CALLER, name="Secret Item", current_stock=1, min_stock_level=0,
        unit_price=Decimal("999.00"),
    )

    async with session_scope(session_factory) as session:
        session.add_all([tools, drill, hammer, other_item])
        await session.flush()

        session.add_all([
            _sale(CALLER, now - timedelta(hours=1), [(hammer, 5, "20.00"), (drill, 1, "150.00")]),
            _sale(CALLER, now - timedelta(days=2), [(hammer, 1, "18.50")]),
            _sale(CALLER, now - timedelta(days=5), [(drill, 1, "140.00")], status=SaleStatus.CANCELLED),
            _sale(OTHER_CALLER, now, [(other_item, 1, "999.00")]),
            StockMovement(
                user_id=CALLER, inventory_item_id=hammer.id, movement_type=MovementType.OUT,
                quantity=5, reason="sale", created_at=now - timedelta(hours=1),
            ),
            StockMovement(
                user_id=CALLER, inventory_item_id=hammer.id, movement_type=MovementType.IN,
                quantity=20, reason="restock", created_at=now - timedelta(days=3),
            ),
            StockMovement(
                user_id=OTHER_CALLER, inventory_item_id=other_item.id, movement_type=MovementType.IN,
                quantity=1, created_at=now,
            ),
        ])

    return SimpleNamespace(
        factory=session_factory,
        drill_id=str(drill.id),
        hammer_id=str(hammer.id),
        category_id=str(tools.id),
    )
