"""StockMovement — one immutable entry in the stock ledger.

Direction (IN / OUT / ADJUSTMENT) is kept separate from the human-facing
reason so that a restock and a customer return are both plain ``IN``
movements that differ only by reason.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from ims.domain.exceptions import ValidationError


class MovementDirection(Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


class MovementReason(Enum):
    INITIAL_STOCK = "INITIAL_STOCK"
    RESTOCK = "RESTOCK"
    PURCHASE = "PURCHASE"
    RETURN = "RETURN"
    TRANSFER_IN = "TRANSFER_IN"
    SALE = "SALE"
    DAMAGE = "DAMAGE"
    THEFT = "THEFT"
    EXPIRED = "EXPIRED"
    TRANSFER_OUT = "TRANSFER_OUT"
    CORRECTION = "CORRECTION"
    STOCK_COUNT = "STOCK_COUNT"
    OVERRIDE = "OVERRIDE"

    @property
    def direction(self) -> MovementDirection:
        return _REASON_DIRECTIONS[self]


_REASON_DIRECTIONS = {
    MovementReason.INITIAL_STOCK: MovementDirection.IN,
    MovementReason.RESTOCK: MovementDirection.IN,
    MovementReason.PURCHASE: MovementDirection.IN,
    MovementReason.RETURN: MovementDirection.IN,
    MovementReason.TRANSFER_IN: MovementDirection.IN,
    MovementReason.SALE: MovementDirection.OUT,
    MovementReason.DAMAGE: MovementDirection.OUT,
    MovementReason.THEFT: MovementDirection.OUT,
    MovementReason.EXPIRED: MovementDirection.OUT,
    MovementReason.TRANSFER_OUT: MovementDirection.OUT,
    MovementReason.CORRECTION: MovementDirection.ADJUSTMENT,
    MovementReason.STOCK_COUNT: MovementDirection.ADJUSTMENT,
    MovementReason.OVERRIDE: MovementDirection.ADJUSTMENT,
}


class ReferenceType(Enum):
    ORDER = "order"
    CART = "cart"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    PURCHASE = "purchase"


@dataclass(frozen=True)
class MovementCause:
    """Why a quantity change happened and who/what triggered it."""

    reason: str = ""
    reason_code: MovementReason | None = None
    reference_type: ReferenceType | None = None
    reference_id: str | None = None
    unit_cost: Decimal | None = None
    created_by: str | None = None

    def direction_for(self, delta: int) -> MovementDirection:
        """Pick the ledger direction for a signed delta.

        ADJUSTMENT-natured reason codes keep their tag; everything else is
        classified by the sign of the change.  A reason code whose natural
        direction contradicts the sign is rejected.
        """
        if delta == 0:
            raise ValidationError("A stock movement must change the quantity")
        by_sign = MovementDirection.IN if delta > 0 else MovementDirection.OUT
        if self.reason_code is None:
            return by_sign
        natural = self.reason_code.direction
        if natural == MovementDirection.ADJUSTMENT:
            return natural
        if natural != by_sign:
            raise ValidationError(
                f"Reason {self.reason_code.value} is an {natural.value} movement "
                f"but the change is {delta:+d}"
            )
        return natural


@dataclass(frozen=True)
class StockMovement:
    """Append-only record of one quantity change.

    ``quantity`` is always positive; the effect is carried by
    ``direction`` (and, for ADJUSTMENT, by previous/new quantities).
    Corrections are new movements, never edits of old ones.
    """

    product_id: str
    direction: MovementDirection
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: str = ""
    reason_code: MovementReason | None = None
    reference_type: ReferenceType | None = None
    reference_id: str | None = None
    unit_cost: Decimal | None = None
    created_by: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError("Movement quantity must be positive")
        if self.direction == MovementDirection.IN:
            consistent = self.new_quantity == self.previous_quantity + self.quantity
        elif self.direction == MovementDirection.OUT:
            consistent = self.new_quantity == self.previous_quantity - self.quantity
        else:
            consistent = abs(self.new_quantity - self.previous_quantity) == self.quantity
        if not consistent:
            raise ValidationError(
                f"Inconsistent {self.direction.value} movement: "
                f"{self.previous_quantity} -> {self.new_quantity} by {self.quantity}"
            )

    @property
    def signed_quantity(self) -> int:
        return self.new_quantity - self.previous_quantity

    @property
    def is_inbound(self) -> bool:
        return self.signed_quantity > 0

    @staticmethod
    def record(
        product_id: str,
        previous_quantity: int,
        delta: int,
        cause: MovementCause,
        created_at: datetime,
    ) -> StockMovement:
        """Build the movement describing ``previous_quantity + delta``."""
        return StockMovement(
            product_id=product_id,
            direction=cause.direction_for(delta),
            quantity=abs(delta),
            previous_quantity=previous_quantity,
            new_quantity=previous_quantity + delta,
            reason=cause.reason,
            reason_code=cause.reason_code,
            reference_type=cause.reference_type,
            reference_id=cause.reference_id,
            unit_cost=cause.unit_cost,
            created_by=cause.created_by,
            created_at=created_at,
        )
