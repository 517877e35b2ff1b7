"""
Business Snapshot

Plain in-memory records for one caller's inventory, sales, stock movements
and categories at one point in time. Analytics and question answering
work only on these records, never on ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class CategoryRecord:
    id: str
    name: str
    description: Optional[str] = None


@dataclass
class InventoryRecord:
    """Current state of a stocked item"""
    id: str
    name: str
    current_stock: int
    min_stock_level: int
    unit_price: float
    cost_price: Optional[float] = None
    sku: Optional[str] = None
    category_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_low_stock(self) -> bool:
        """At or below threshold; a zero threshold never counts"""
        return self.min_stock_level > 0 and self.current_stock <= self.min_stock_level

    @property
    def is_above_minimum(self) -> bool:
        return self.current_stock > self.min_stock_level

    @property
    def stock_value(self) -> float:
        return self.current_stock * self.unit_price


@dataclass
class SaleItemRecord:
    """Line item with the price captured at sale time"""
    id: str
    sale_id: str
    inventory_item_id: Optional[str]
    quantity: int
    unit_price: float

    @property
    def total_price(self) -> float:
        return self.quantity * self.unit_price


@dataclass
class SaleRecord:
    id: str
    total_amount: float
    created_at: datetime
    status: str = "completed"
    payment_method: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    items: List[SaleItemRecord] = field(default_factory=list)

    @property
    def items_total(self) -> float:
        return sum(item.total_price for item in self.items)

    @property
    def is_consistent(self) -> bool:
        """``total_amount`` matches the sum of line items to the cent"""
        return round(self.total_amount, 2) == round(self.items_total, 2)


@dataclass
class StockMovementRecord:
    id: str
    movement_type: str
    quantity: int
    created_at: datetime
    inventory_item_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class BusinessSnapshot:
    """
    Point-in-time bundle of one caller's records.

    ``sales`` and ``stock_movements`` are ordered most recent first.
    """
    caller_id: str
    captured_at: datetime
    inventory: List[InventoryRecord] = field(default_factory=list)
    sales: List[SaleRecord] = field(default_factory=list)
    stock_movements: List[StockMovementRecord] = field(default_factory=list)
    categories: List[CategoryRecord] = field(default_factory=list)

    def sales_window(self, index: int, size: int) -> List[SaleRecord]:
        """
        Return the ``index``-th window of ``size`` sales by recency.

        Window 0 is the trailing window, window 1 the prior one.
        """
        start = index * size
        return self.sales[start:start + size]

    def item_names(self) -> Dict[str, str]:
        return {item.id: item.name for item in self.inventory}

    def category_names(self) -> Dict[str, str]:
        return {category.id: category.name for category in self.categories}

    @property
    def is_empty(self) -> bool:
        return not (self.inventory or self.sales or self.stock_movements or self.categories)
