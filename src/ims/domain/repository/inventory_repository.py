"""Abstract repository for the InventoryRecord aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.inventory import InventoryRecord


class InventoryRepository(ABC):

    @abstractmethod
    def get(self, product_id: str) -> InventoryRecord | None:
        """Return the inventory record for a product, or None. Never blocks writers."""

    @abstractmethod
    def get_for_update(self, product_id: str) -> InventoryRecord | None:
        """Return the record and hold the product's write lock until the unit of work ends."""

    @abstractmethod
    def list_all(self) -> list[InventoryRecord]:
        """Return every inventory record."""

    @abstractmethod
    def add(self, record: InventoryRecord) -> None:
        """Persist a brand-new record."""

    @abstractmethod
    def save(self, record: InventoryRecord) -> None:
        """Persist changes to an existing record.

        Implementations compare ``record.version`` with the stored version,
        raise ConcurrentModificationError on mismatch and bump the version
        on success.
        """
