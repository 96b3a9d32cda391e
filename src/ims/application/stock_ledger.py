"""Append to and query the stock movement history.

Writes always happen inside the caller's unit of work so that they roll
back together with the inventory record update.  Reads open their own
short unit of work and never take the product write lock.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from ims.application.dto import MovementSummary
from ims.domain.model.movement import StockMovement
from ims.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class StockLedger:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --- Writes ---------------------------------------------------------------

    def append(self, uow: UnitOfWork, movement: StockMovement) -> int:
        movement_id = uow.movements.append(movement)
        logger.debug(
            "Ledger %s %s x%d for product %s (%d -> %d)",
            movement_id,
            movement.direction.value,
            movement.quantity,
            movement.product_id,
            movement.previous_quantity,
            movement.new_quantity,
        )
        return movement_id

    # --- Queries --------------------------------------------------------------

    def history(self, product_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[StockMovement]:
        with self._uow_factory() as uow:
            return uow.movements.list_for_product(product_id, limit)

    def movements_in_range(
        self,
        start: datetime,
        end: datetime,
        product_id: str | None = None,
    ) -> list[StockMovement]:
        with self._uow_factory() as uow:
            return uow.movements.list_between(start, end, product_id)

    def summary(self, product_id: str, days: int = 30) -> MovementSummary:
        end = self._clock()
        start = end - timedelta(days=days)
        movements = self.movements_in_range(start, end + timedelta(microseconds=1), product_id)
        inbound = sum(m.quantity for m in movements if m.is_inbound)
        outbound = sum(m.quantity for m in movements if not m.is_inbound)
        return MovementSummary(
            product_id=product_id,
            total_movements=len(movements),
            total_inbound=inbound,
            total_outbound=outbound,
            net_change=inbound - outbound,
            recent_movements=list(reversed(movements))[:10],
        )

    # --- Audit ----------------------------------------------------------------

    def replay(self, product_id: str) -> int:
        """Rebuild the physical quantity from an initial 0 using every movement."""
        with self._uow_factory() as uow:
            movements = uow.movements.list_all_for_product(product_id)
        return sum(m.signed_quantity for m in movements)

    def verify(self, product_id: str) -> bool:
        """True when replaying the ledger reproduces the recorded quantity."""
        with self._uow_factory() as uow:
            record = uow.inventory.get(product_id)
            movements = uow.movements.list_all_for_product(product_id)
        expected = record.quantity if record is not None else 0
        replayed = sum(m.signed_quantity for m in movements)
        if replayed != expected:
            logger.warning(
                "Ledger drift for product %s: replay gives %d, record holds %d",
                product_id, replayed, expected,
            )
        return replayed == expected
