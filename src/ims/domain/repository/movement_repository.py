"""Abstract repository for the append-only stock ledger.

There is deliberately no update or delete: corrections are new movements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ims.domain.model.movement import StockMovement


class MovementRepository(ABC):

    @abstractmethod
    def append(self, movement: StockMovement) -> int:
        """Insert a movement and return its id."""

    @abstractmethod
    def list_for_product(self, product_id: str, limit: int) -> list[StockMovement]:
        """Most recent movements first."""

    @abstractmethod
    def list_all_for_product(self, product_id: str) -> list[StockMovement]:
        """Every movement for the product in creation order (oldest first)."""

    @abstractmethod
    def list_between(
        self,
        start: datetime,
        end: datetime,
        product_id: str | None = None,
    ) -> list[StockMovement]:
        """Movements with ``start <= created_at < end``, oldest first."""
