"""
Database Models

Tables read by the analytics engine and the append-only insight table it
writes. Every row is owned by a caller (``user_id``) and every query is
scoped by it.

Transactional Tables:
- inventory_items: Stock on hand, thresholds and pricing
- sales / sale_items: Completed, pending and cancelled sales with captured prices
- stock_movements: Append-only stock ledger
- categories: Item grouping

Derived Tables:
- ai_insights: Forecasts, anomalies, recommendations and trends
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class SaleStatus(str, Enum):
    """Sale status enumeration"""
    COMPLETED = "completed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class MovementType(str, Enum):
    """Stock movement direction"""
    IN = "in"
    OUT = "out"


class InsightType(str, Enum):
    """Kinds of insight produced by the analytics engine"""
    FORECAST = "forecast"
    ANOMALY = "anomaly"
    RECOMMENDATION = "recommendation"
    TREND = "trend"


# =============================================================================
# TRANSACTIONAL TABLES
# =============================================================================

class Category(Base):
    """Item category owned by a caller"""
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    items: Mapped[List["InventoryItem"]] = relationship(back_populates="category")

    __table_args__ = (
        Index("ix_categories_user", "user_id"),
    )


class InventoryItem(Base):
    """
    Inventory Item Table

    Current stock and pricing. ``min_stock_level`` of 0 means the item has
    no reorder threshold.
    """
    __tablename__ = "inventory_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="SET NULL")
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(50))
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Stock
    current_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_stock_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Pricing
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cost_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    # Audit
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    category: Mapped[Optional["Category"]] = relationship(back_populates="items")

    __table_args__ = (
        Index("ix_inventory_items_user", "user_id"),
        Index("ix_inventory_items_category", "category_id"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.min_stock_level > 0 and self.current_stock <= self.min_stock_level


class Sale(Base):
    """
    Sale Table

    ``total_amount`` equals the sum of its line items' ``total_price``.
    """
    __tablename__ = "sales"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    customer_name: Mapped[Optional[str]] = mapped_column(String(200))
    customer_email: Mapped[Optional[str]] = mapped_column(String(200))

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50))
    status: Mapped[SaleStatus] = mapped_column(
        SQLEnum(SaleStatus, values_callable=lambda e: [m.value for m in e]),
        default=SaleStatus.COMPLETED,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    items: Mapped[List["SaleItem"]] = relationship(
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.position",
    )

    __table_args__ = (
        Index("ix_sales_user_created", "user_id", "created_at"),
    )


class SaleItem(Base):
    """
    Sale Line Item

    ``unit_price`` is captured at sale time and never recomputed from the
    item's current price.
    """
    __tablename__ = "sale_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False
    )
    inventory_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("inventory_items.id", ondelete="SET NULL")
    )
    position: Mapped[int] = mapped_column(Integer, default=0)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    sale: Mapped["Sale"] = relationship(back_populates="items")

    __table_args__ = (
        Index("ix_sale_items_sale", "sale_id"),
        Index("ix_sale_items_item", "inventory_item_id"),
    )


class StockMovement(Base):
    """Append-only stock ledger entry"""
    __tablename__ = "stock_movements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    inventory_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("inventory_items.id", ondelete="SET NULL")
    )
    movement_type: Mapped[MovementType] = mapped_column(
        SQLEnum(MovementType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_stock_movements_user_created", "user_id", "created_at"),
    )


# =============================================================================
# DERIVED TABLES
# =============================================================================

class AIInsight(Base):
    """
    Insight Table

    Append-only. Only ``is_read`` changes after insert.
    """
    __tablename__ = "ai_insights"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    insight_type: Mapped[InsightType] = mapped_column(
        SQLEnum(InsightType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[Optional[float]] = mapped_column(Float)
    data: Mapped[Optional[dict]] = mapped_column(JSON)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_ai_insights_user_created", "user_id", "created_at"),
        Index("ix_ai_insights_unread", "user_id", "is_read"),
    )
