"""StockReservation — a time-bound hold on available stock.

A reservation is owned by exactly one cart or one order.  It moves
REQUESTED -> ACTIVE -> RELEASED | EXPIRED and never comes back to ACTIVE;
a fresh reservation has to be created instead.  REQUESTED covers the
availability check under the product lock; it is never stored, so
``state()`` only reports the three later states.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from ims.domain.exceptions import ValidationError

DEFAULT_TTL_MINUTES = 15
EXPIRED_REASON = "expired"


class ReservationState(Enum):
    # Before StockReservation.create succeeds; never persisted.
    REQUESTED = "REQUESTED"
    ACTIVE = "ACTIVE"
    RELEASED = "RELEASED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class ReservationOwner:
    """The cart or order a reservation belongs to (never both)."""

    order_id: str | None = None
    cart_id: str | None = None

    def __post_init__(self) -> None:
        if bool(self.order_id) == bool(self.cart_id):
            raise ValidationError(
                "A reservation must be owned by exactly one order or one cart"
            )

    @staticmethod
    def order(order_id: str) -> ReservationOwner:
        return ReservationOwner(order_id=order_id)

    @staticmethod
    def cart(cart_id: str) -> ReservationOwner:
        return ReservationOwner(cart_id=cart_id)

    def __str__(self) -> str:
        if self.order_id:
            return f"order:{self.order_id}"
        return f"cart:{self.cart_id}"


@dataclass
class StockReservation:
    id: str
    product_id: str
    quantity: int
    owner: ReservationOwner
    expires_at: datetime
    reason: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_released: bool = False
    released_at: datetime | None = None
    release_reason: str | None = None

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        reservation_id: str,
        product_id: str,
        quantity: int,
        owner: ReservationOwner,
        now: datetime,
        ttl_minutes: int = DEFAULT_TTL_MINUTES,
        reason: str = "",
    ) -> StockReservation:
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if ttl_minutes <= 0:
            raise ValidationError("Reservation TTL must be positive")
        return StockReservation(
            id=reservation_id,
            product_id=product_id,
            quantity=quantity,
            owner=owner,
            expires_at=now + timedelta(minutes=ttl_minutes),
            reason=reason,
            created_at=now,
        )

    # --- State ----------------------------------------------------------------

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        return not self.is_released and not self.is_expired(now)

    def state(self, now: datetime) -> ReservationState:
        if self.is_released:
            if self.release_reason == EXPIRED_REASON:
                return ReservationState.EXPIRED
            return ReservationState.RELEASED
        if self.is_expired(now):
            return ReservationState.EXPIRED
        return ReservationState.ACTIVE

    # --- Transitions ----------------------------------------------------------

    def release(self, now: datetime, reason: str) -> int:
        """Mark released and return the quantity freed.

        Releasing twice is a no-op that frees nothing.
        """
        if self.is_released:
            return 0
        self.is_released = True
        self.released_at = now
        self.release_reason = reason or "released"
        return self.quantity

    def expire(self, now: datetime) -> int:
        """Reap a reservation whose TTL has passed (no-op otherwise)."""
        if self.is_released or not self.is_expired(now):
            return 0
        return self.release(now, EXPIRED_REASON)

    def extend(self, minutes: int, now: datetime) -> None:
        if minutes <= 0:
            raise ValidationError("Extension must be a positive number of minutes")
        current = self.state(now)
        if current != ReservationState.ACTIVE:
            raise ValidationError(
                f"Cannot extend reservation {self.id}: it is {current.value}"
            )
        self.expires_at = now + timedelta(minutes=minutes)
