"""Abstract repository for StockReservation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ims.domain.model.reservation import ReservationOwner, StockReservation


class ReservationRepository(ABC):

    @abstractmethod
    def add(self, reservation: StockReservation) -> None:
        """Persist a new reservation."""

    @abstractmethod
    def get(self, reservation_id: str) -> StockReservation | None:
        """Return a reservation by id, or None."""

    @abstractmethod
    def save(self, reservation: StockReservation) -> None:
        """Persist status changes (release / expiry / extension)."""

    @abstractmethod
    def list_unreleased(self, product_id: str) -> list[StockReservation]:
        """Every reservation of the product not yet released, oldest first."""

    @abstractmethod
    def list_active(self, product_id: str | None, now: datetime) -> list[StockReservation]:
        """Unreleased, unexpired reservations, newest first (all products when None)."""

    @abstractmethod
    def list_for_owner(self, owner: ReservationOwner) -> list[StockReservation]:
        """Every reservation held by a cart or order."""

    @abstractmethod
    def list_expired(self, now: datetime, limit: int | None = None) -> list[StockReservation]:
        """Unreleased reservations whose ``expires_at`` is before ``now``."""
