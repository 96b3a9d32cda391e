"""Unit of Work: the transaction boundary handed to every component.

One unit of work wraps exactly one storage transaction.  Everything done
through its repositories is committed together or not at all, so a
ledger entry can never exist without the matching record update.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from ims.domain.repository.inventory_repository import InventoryRepository
from ims.domain.repository.movement_repository import MovementRepository
from ims.domain.repository.reservation_repository import ReservationRepository


class UnitOfWork(ABC):

    inventory: InventoryRepository
    movements: MovementRepository
    reservations: ReservationRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, *exc_info: object) -> None:
        # Rolling back after a successful commit is a no-op.
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change in this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted change and release held locks."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
