"""
Store Queries

Caller-scoped reads that feed business snapshots, and the append-only
insight repository. Reads return snapshot records, never ORM rows.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence
import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from insight_engine.analytics.exceptions import InsightNotFoundError
from insight_engine.analytics.forecasting import InsightRecord
from insight_engine.analytics.snapshot import (
    CategoryRecord,
    InventoryRecord,
    SaleItemRecord,
    SaleRecord,
    StockMovementRecord,
)
from insight_engine.database.connection import session_scope
from insight_engine.database.models import (
    AIInsight,
    Category,
    InventoryItem,
    Sale,
    StockMovement,
)

logger = structlog.get_logger(__name__)


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _id(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def _enum_value(value) -> str:
    return getattr(value, "value", value)


class SqlAlchemyBusinessStore:
    """
    Business record reads over an async session factory.

    Each read opens its own session so the aggregator can run them
    concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def fetch_inventory(self, caller_id: str, limit: int) -> List[InventoryRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(InventoryItem)
                .where(InventoryItem.user_id == caller_id)
                .order_by(InventoryItem.created_at.desc())
                .limit(limit)
            )
            return [
                InventoryRecord(
                    id=str(row.id),
                    name=row.name,
                    sku=row.sku,
                    category_id=_id(row.category_id),
                    current_stock=row.current_stock or 0,
                    min_stock_level=row.min_stock_level or 0,
                    unit_price=float(row.unit_price),
                    cost_price=_money(row.cost_price),
                    updated_at=row.updated_at,
                )
                for row in result.scalars().all()
            ]

    async def fetch_sales(self, caller_id: str, limit: int) -> List[SaleRecord]:
        """Sales with their line items, most recent first"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Sale)
                .where(Sale.user_id == caller_id)
                .options(selectinload(Sale.items))
                .order_by(Sale.created_at.desc())
                .limit(limit)
            )
            return [
                SaleRecord(
                    id=str(sale.id),
                    total_amount=float(sale.total_amount or 0),
                    created_at=sale.created_at,
                    status=_enum_value(sale.status),
                    payment_method=sale.payment_method,
                    customer_name=sale.customer_name,
                    customer_email=sale.customer_email,
                    notes=sale.notes,
                    items=[
                        SaleItemRecord(
                            id=str(item.id),
                            sale_id=str(sale.id),
                            inventory_item_id=_id(item.inventory_item_id),
                            quantity=item.quantity,
                            unit_price=float(item.unit_price),
                        )
                        for item in sale.items
                    ],
                )
                for sale in result.scalars().all()
            ]

    async def fetch_stock_movements(self, caller_id: str, limit: int) -> List[StockMovementRecord]:
        """Stock ledger entries, most recent first"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(StockMovement)
                .where(StockMovement.user_id == caller_id)
                .order_by(StockMovement.created_at.desc())
                .limit(limit)
            )
            return [
                StockMovementRecord(
                    id=str(row.id),
                    inventory_item_id=_id(row.inventory_item_id),
                    movement_type=_enum_value(row.movement_type),
                    quantity=row.quantity,
                    reason=row.reason,
                    created_at=row.created_at,
                )
                for row in result.scalars().all()
            ]

    async def fetch_categories(self, caller_id: str) -> List[CategoryRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Category).where(Category.user_id == caller_id).order_by(Category.name)
            )
            return [
                CategoryRecord(id=str(row.id), name=row.name, description=row.description)
                for row in result.scalars().all()
            ]


class InsightRepository:
    """
    Append-only insight persistence.

    Rows are only ever inserted; ``mark_read`` is the single update.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add_insights(
        self,
        caller_id: str,
        records: Sequence[InsightRecord],
        created_at: Optional[datetime] = None,
    ) -> List[AIInsight]:
        if not records:
            return []

        created_at = created_at or datetime.utcnow()
        rows = [
            AIInsight(
                user_id=caller_id,
                insight_type=record.insight_type,
                title=record.title,
                description=record.description,
                confidence_score=record.confidence_score,
                data=record.data,
                is_read=False,
                created_at=created_at,
            )
            for record in records
        ]

        async with session_scope(self._session_factory) as session:
            session.add_all(rows)

        logger.info("Insights stored", caller_id=caller_id, count=len(rows))
        return rows

    async def list_insights(
        self,
        caller_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[AIInsight]:
        query = select(AIInsight).where(AIInsight.user_id == caller_id)
        if unread_only:
            query = query.where(AIInsight.is_read.is_(False))
        query = query.order_by(AIInsight.created_at.desc()).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def mark_read(self, caller_id: str, insight_id: uuid.UUID) -> AIInsight:
        """
        Set ``is_read`` on one of the caller's insights.

        Raises:
            InsightNotFoundError: If the id is unknown or owned by another caller
        """
        async with session_scope(self._session_factory) as session:
            result = await session.execute(
                select(AIInsight).where(
                    AIInsight.id == insight_id,
                    AIInsight.user_id == caller_id,
                )
            )
            insight = result.scalar_one_or_none()
            if insight is None:
                raise InsightNotFoundError(f"Insight {insight_id} not found")
            insight.is_read = True

        return insight
