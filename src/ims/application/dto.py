"""Data Transfer Objects — plain containers that cross layer boundaries.

Requests come in from cart, order and admin callers; reports go back out.
None of these carry transport-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from ims.domain.exceptions import ValidationError
from ims.domain.model.movement import StockMovement


class AdjustmentType(Enum):
    SET = "set"
    INCREASE = "increase"
    DECREASE = "decrease"

    @staticmethod
    def parse(value: AdjustmentType | str) -> AdjustmentType:
        if isinstance(value, AdjustmentType):
            return value
        try:
            return AdjustmentType(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Invalid adjustment type: {value!r}") from exc


@dataclass(frozen=True)
class BulkAdjustmentItem:
    """Input: one line of a bulk stock update."""

    product_id: str
    quantity: int
    adjustment_type: AdjustmentType | str = AdjustmentType.SET
    reason: str | None = None
    unit_cost: Decimal | None = None


@dataclass
class BulkAdjustmentReport:
    """Output: partial-success summary of a bulk update."""

    successful: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReservationItem:
    """Input: one product/quantity pair of a bulk reservation."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class ReservationOutcome:
    product_id: str
    success: bool
    message: str
    reservation_id: str | None = None


@dataclass
class BulkReservationReport:
    reservations: list[ReservationOutcome] = field(default_factory=list)
    total_reserved: int = 0
    failed_items: int = 0

    @property
    def success(self) -> bool:
        return self.failed_items == 0


@dataclass(frozen=True)
class ProductReservationStats:
    product_id: str
    reserved_quantity: int
    reservation_count: int


@dataclass(frozen=True)
class ReservationStats:
    total_active_reservations: int
    total_reserved_quantity: int
    expiring_soon: int
    by_product: list[ProductReservationStats]


@dataclass(frozen=True)
class MovementSummary:
    product_id: str
    total_movements: int
    total_inbound: int
    total_outbound: int
    net_change: int
    recent_movements: list[StockMovement]


@dataclass(frozen=True)
class ReorderSuggestion:
    product_id: str
    available_quantity: int
    reorder_point: int
    suggested_quantity: int
