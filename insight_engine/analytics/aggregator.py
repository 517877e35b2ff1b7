"""
Business Context Aggregator

Fetches a caller's inventory, sales, stock movements and categories
concurrently and bundles them into a ``BusinessSnapshot``. A failed read
degrades to an empty collection; it never aborts the snapshot.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, List, Optional, Protocol

import structlog

from insight_engine.analytics.snapshot import (
    BusinessSnapshot,
    CategoryRecord,
    InventoryRecord,
    SaleRecord,
    StockMovementRecord,
)
from insight_engine.config.settings import AnalyticsSettings

logger = structlog.get_logger(__name__)


class BusinessStore(Protocol):
    """Caller-scoped read interface of the persistence layer"""

    async def fetch_inventory(self, caller_id: str, limit: int) -> List[InventoryRecord]:
        ...

    async def fetch_sales(self, caller_id: str, limit: int) -> List[SaleRecord]:
        ...

    async def fetch_stock_movements(self, caller_id: str, limit: int) -> List[StockMovementRecord]:
        ...

    async def fetch_categories(self, caller_id: str) -> List[CategoryRecord]:
        ...


class BusinessContextAggregator:
    """
    Builds snapshots from a ``BusinessStore``.

    Example:
        aggregator = BusinessContextAggregator(store, settings.analytics)
        snapshot = await aggregator.fetch("user-123")
    """

    def __init__(self, store: BusinessStore, settings: Optional[AnalyticsSettings] = None):
        self.store = store
        self.settings = settings or AnalyticsSettings()

    async def fetch(
        self,
        caller_id: str,
        movement_limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BusinessSnapshot:
        """
        Read all entity types for the caller and wait for every read.

        Args:
            caller_id: Identity every read is scoped by
            movement_limit: Override the stock movement row limit
            now: Capture time recorded on the snapshot
        """
        reads: List[Awaitable[Any]] = [
            self.store.fetch_inventory(caller_id, self.settings.inventory_limit),
            self.store.fetch_sales(caller_id, self.settings.sales_limit),
            self.store.fetch_stock_movements(caller_id, movement_limit or self.settings.movement_limit),
            self.store.fetch_categories(caller_id),
        ]
        results = await asyncio.gather(*reads, return_exceptions=True)

        inventory, sales, movements, categories = (
            self._or_empty(name, result, caller_id)
            for name, result in zip(("inventory", "sales", "stock_movements", "categories"), results)
        )

        snapshot = BusinessSnapshot(
            caller_id=caller_id,
            captured_at=now or datetime.utcnow(),
            inventory=inventory,
            sales=sales,
            stock_movements=movements,
            categories=categories,
        )

        inconsistent = [sale.id for sale in sales if sale.items and not sale.is_consistent]
        if inconsistent:
            logger.warning(
                "Sales with totals that do not match their line items",
                caller_id=caller_id,
                count=len(inconsistent),
                sale_ids=inconsistent[:5],
            )

        logger.debug(
            "Snapshot aggregated",
            caller_id=caller_id,
            inventory=len(inventory),
            sales=len(sales),
            stock_movements=len(movements),
            categories=len(categories),
        )
        return snapshot

    @staticmethod
    def _or_empty(name: str, result: Any, caller_id: str) -> list:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.warning(
                "Snapshot read failed, continuing with empty collection",
                entity=name,
                caller_id=caller_id,
                error=str(result),
                error_type=type(result).__name__,
            )
            return []
        return list(result or [])
