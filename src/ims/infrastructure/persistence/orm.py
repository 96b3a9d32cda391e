"""SQLAlchemy table definitions for the three inventory tables.

``inventory_records`` is one mutable row per product, ``stock_movements``
is insert-only, and ``stock_reservations`` only ever has its status
columns (and expiry) updated.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    """Base class for all inventory tables."""


class UtcDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, also on backends (SQLite) that drop the zone."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class InventoryRecordRow(Base):
    __tablename__ = "inventory_records"
    __table_args__ = (
        CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved_non_negative"),
        CheckConstraint("backorder_limit >= 0", name="ck_inventory_backorder_limit_non_negative"),
    )

    product_id = Column(String(64), primary_key=True)
    quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)

    low_stock_threshold = Column(Integer, nullable=False)
    reorder_point = Column(Integer, nullable=False)
    reorder_quantity = Column(Integer, nullable=False)
    max_stock_level = Column(Integer, nullable=True)

    track_inventory = Column(Boolean, nullable=False, default=True)
    is_discontinued = Column(Boolean, nullable=False, default=False)
    allow_backorder = Column(Boolean, nullable=False, default=False)
    backorder_limit = Column(Integer, nullable=False, default=0)

    currency = Column(String(3), nullable=False, default="NGN")
    average_cost = Column(Numeric(14, 2), nullable=False, default=0)
    last_cost = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=0)  # optimistic lock

    last_movement_at = Column(UtcDateTime, nullable=True)
    last_restocked_at = Column(UtcDateTime, nullable=True)
    last_sold_at = Column(UtcDateTime, nullable=True)
    created_at = Column(UtcDateTime, nullable=False)
    updated_at = Column(UtcDateTime, nullable=False)


class StockMovementRow(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movement_quantity_positive"),
        Index("ix_stock_movements_product_created", "product_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(64), nullable=False, index=True)
    direction = Column(String(12), nullable=False)
    quantity = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)

    reason = Column(Text, nullable=False, default="")
    reason_code = Column(String(20), nullable=True)
    reference_type = Column(String(20), nullable=True)
    reference_id = Column(String(64), nullable=True)
    unit_cost = Column(Numeric(14, 2), nullable=True)

    created_by = Column(String(64), nullable=True)
    created_at = Column(UtcDateTime, nullable=False)


class StockReservationRow(Base):
    __tablename__ = "stock_reservations"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_reservation_quantity_positive"),
        CheckConstraint(
            "(order_id IS NULL) <> (cart_id IS NULL)",
            name="ck_reservation_single_owner",
        ),
        Index("ix_stock_reservations_open", "is_released", "expires_at"),
    )

    id = Column(String(32), primary_key=True)
    product_id = Column(String(64), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    order_id = Column(String(64), nullable=True, index=True)
    cart_id = Column(String(64), nullable=True, index=True)
    reason = Column(Text, nullable=False, default="")

    expires_at = Column(UtcDateTime, nullable=False)
    created_at = Column(UtcDateTime, nullable=False)
    is_released = Column(Boolean, nullable=False, default=False)
    released_at = Column(UtcDateTime, nullable=True)
    release_reason = Column(String(255), nullable=True)
