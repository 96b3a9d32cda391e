"""InventoryRecord aggregate — one mutable summary row per product.

Tracks physical stock on hand, how much of it is held by live
reservations, the thresholds that drive alerts and reorders, and the
cost basis.  ``status`` is always derived, never set by callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ims.domain.exceptions import (
    InsufficientStockError,
    NegativeStockError,
    ValidationError,
)
from ims.domain.model.movement import MovementCause, MovementReason, StockMovement
from ims.domain.model.status import InventoryStatus
from ims.domain.model.value_objects import Money
from ims.domain.service.availability import Availability, calculate_availability

DEFAULT_LOW_STOCK_THRESHOLD = 10
DEFAULT_REORDER_POINT = 5
DEFAULT_REORDER_QUANTITY = 50

# Settings an admin may change without a ledger entry.
CONFIGURABLE_FIELDS = frozenset({
    "low_stock_threshold",
    "reorder_point",
    "reorder_quantity",
    "max_stock_level",
    "track_inventory",
    "is_discontinued",
    "allow_backorder",
    "backorder_limit",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class InventoryRecord:
    """Aggregate root for stock tracking.

    Invariants:
    - ``0 <= reserved_quantity <= quantity`` (quantity may only dip below
      zero when backorders are enabled for the product, and then nothing
      may be reserved)
    - ``available_quantity == quantity - reserved_quantity``
    """

    product_id: str
    quantity: int = 0
    reserved_quantity: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    reorder_point: int = DEFAULT_REORDER_POINT
    reorder_quantity: int = DEFAULT_REORDER_QUANTITY
    max_stock_level: int | None = None
    track_inventory: bool = True
    is_discontinued: bool = False
    allow_backorder: bool = False
    backorder_limit: int = 0
    average_cost: Money = field(default_factory=Money.zero)
    last_cost: Money = field(default_factory=Money.zero)
    status: InventoryStatus = InventoryStatus.ACTIVE
    version: int = 0
    last_movement_at: datetime | None = None
    last_restocked_at: datetime | None = None
    last_sold_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Derived values -------------------------------------------------------

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    @property
    def stock_floor(self) -> int:
        """Lowest physical quantity this product may reach."""
        if self.allow_backorder:
            return -self.backorder_limit
        return 0

    def availability(self) -> Availability:
        return calculate_availability(
            self.quantity,
            self.reserved_quantity,
            self.low_stock_threshold,
            self.reorder_point,
            self.max_stock_level,
            track_inventory=self.track_inventory,
            is_discontinued=self.is_discontinued,
        )

    def refresh_status(self) -> InventoryStatus:
        self.status = self.availability().status
        return self.status

    def check_invariants(self) -> None:
        """Reject inconsistent states before they are persisted."""
        if self.reserved_quantity < 0:
            raise ValidationError(
                f"Reserved quantity of product '{self.product_id}' cannot be negative"
            )
        if self.quantity < self.stock_floor:
            raise ValidationError(
                f"Product '{self.product_id}' has {self.quantity} on hand, below its "
                f"backorder floor of {self.stock_floor}; restock it or allow a backorder "
                f"limit of at least {-self.quantity}"
            )
        if self.reserved_quantity > max(self.quantity, 0):
            raise InsufficientStockError(
                self.product_id, self.reserved_quantity, max(self.quantity, 0)
            )

    # --- Physical stock -------------------------------------------------------

    def apply_delta(self, delta: int, cause: MovementCause, now: datetime) -> StockMovement:
        """Change physical quantity by ``delta`` and return the ledger entry.

        Raises NegativeStockError when the result would fall below the
        stock floor and InsufficientStockError when it would fall below
        what is already reserved.
        """
        new_quantity = self.quantity + delta
        if new_quantity < self.stock_floor:
            raise NegativeStockError(self.product_id, self.quantity, delta)
        if self.reserved_quantity > max(new_quantity, 0):
            raise InsufficientStockError(
                self.product_id, -delta, self.available_quantity
            )

        movement = StockMovement.record(
            product_id=self.product_id,
            previous_quantity=self.quantity,
            delta=delta,
            cause=cause,
            created_at=now,
        )

        if delta > 0 and cause.unit_cost is not None:
            incoming = Money(cause.unit_cost, self.average_cost.currency)
            self.average_cost = Money.weighted_average(
                self.quantity, self.average_cost, delta, incoming
            )
            self.last_cost = incoming
        if delta > 0 and cause.reason_code != MovementReason.RETURN:
            self.last_restocked_at = now
        if cause.reason_code == MovementReason.SALE:
            self.last_sold_at = now

        self.quantity = new_quantity
        self.last_movement_at = now
        self.updated_at = now
        return movement

    # --- Reservations ---------------------------------------------------------

    def reserve(self, quantity: int) -> None:
        """Hold ``quantity`` units without touching physical stock."""
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if quantity > self.available_quantity:
            raise InsufficientStockError(
                self.product_id, quantity, max(self.available_quantity, 0)
            )
        self.reserved_quantity += quantity

    def release_reserved(self, quantity: int) -> None:
        """Give back a hold previously placed with ``reserve``."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot release {quantity} of product '{self.product_id}' "
                f"(only {self.reserved_quantity} currently reserved)"
            )
        self.reserved_quantity -= quantity

    # --- Settings -------------------------------------------------------------

    def configure(self, now: datetime, **settings: object) -> None:
        unknown = set(settings) - CONFIGURABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown inventory setting(s): {', '.join(sorted(unknown))}"
            )
        for name in ("low_stock_threshold", "reorder_point", "reorder_quantity", "backorder_limit"):
            value = settings.get(name)
            if value is not None and value < 0:
                raise ValidationError(f"{name} cannot be negative")
        max_level = settings.get("max_stock_level")
        if max_level is not None and max_level <= 0:
            raise ValidationError("max_stock_level must be positive")

        for name, value in settings.items():
            setattr(self, name, value)
        self.updated_at = now
