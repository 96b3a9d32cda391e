"""Inventory Record Store, the single serialization point per product.

Every quantity or reservation change goes through ``mutate()``, which
runs the same sequence for all callers:

  1. open a unit of work and lock the product's record
  2. run the caller's operation against the fresh record
  3. recompute status and check invariants (reject, never repair)
  4. save with an optimistic version check and commit
  5. hand the committed status transition to the Alerting Gate

A lost optimistic race is retried from step 1 with a fresh read, up to
``max_retries`` attempts.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, TypeVar

from ims.application.stock_ledger import StockLedger
from ims.domain.exceptions import (
    ConcurrentModificationError,
    ProductNotFound,
    ValidationError,
)
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import (
    MovementCause,
    MovementReason,
    ReferenceType,
)
from ims.domain.repository.product_catalog import ProductCatalog
from ims.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from ims.domain.service.alerting import AlertingGate

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[UnitOfWork, InventoryRecord, datetime], T]

DEFAULT_MAX_RETRIES = 3


class InventoryRecordStore:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        catalog: ProductCatalog,
        ledger: StockLedger,
        alerting: AlertingGate,
        clock: Callable[[], datetime] | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._uow_factory = uow_factory
        self._catalog = catalog
        self._ledger = ledger
        self._alerting = alerting
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._max_retries = max_retries

    @property
    def ledger(self) -> StockLedger:
        return self._ledger

    def now(self) -> datetime:
        return self._clock()

    # --- Queries --------------------------------------------------------------

    def get(self, product_id: str) -> InventoryRecord:
        with self._uow_factory() as uow:
            record = uow.inventory.get(product_id)
        if record is None:
            raise ProductNotFound(product_id)
        return record

    def list_all(self) -> list[InventoryRecord]:
        with self._uow_factory() as uow:
            return uow.inventory.list_all()

    def ensure_active_product(self, product_id: str) -> None:
        if not self._catalog.is_active_product(product_id):
            raise ProductNotFound(
                product_id, f"Product '{product_id}' not found or inactive in catalog"
            )

    # --- Creation -------------------------------------------------------------

    def create(
        self,
        product_id: str,
        quantity: int = 0,
        *,
        unit_cost: Decimal | None = None,
        created_by: str | None = None,
        **settings: object,
    ) -> InventoryRecord:
        """Create the inventory record for a catalog product.

        Opening stock is written to the ledger as an INITIAL_STOCK movement
        so that replaying the ledger from zero reproduces the quantity.
        """
        self.ensure_active_product(product_id)
        if quantity < 0:
            raise ValidationError("Initial quantity cannot be negative")

        with self._uow_factory() as uow:
            if uow.inventory.get(product_id) is not None:
                raise ValidationError(f"Inventory record for product '{product_id}' already exists")

            now = self._clock()
            record = InventoryRecord(product_id=product_id, created_at=now, updated_at=now)
            record.configure(now, **{k: v for k, v in settings.items() if v is not None})
            movement = None
            if quantity > 0:
                movement = record.apply_delta(
                    quantity,
                    MovementCause(
                        reason="Initial stock",
                        reason_code=MovementReason.INITIAL_STOCK,
                        reference_type=ReferenceType.ADJUSTMENT,
                        unit_cost=unit_cost,
                        created_by=created_by,
                    ),
                    now,
                )
            record.refresh_status()
            record.check_invariants()
            uow.inventory.add(record)
            if movement is not None:
                self._ledger.append(uow, movement)
            uow.commit()

        logger.info("Created inventory record for product %s with %d units", product_id, quantity)
        self._alerting.observe(None, record)
        return record

    # --- Mutations ------------------------------------------------------------

    def mutate(self, product_id: str, operation: Operation[T]) -> tuple[T, InventoryRecord]:
        """Run ``operation`` under the product's lock and commit atomically.

        ``operation`` receives the unit of work, the locked record and the
        transaction timestamp.  It may be called more than once when an
        optimistic race is lost, so it must only act through the unit of
        work it is given.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                with self._uow_factory() as uow:
                    record = uow.inventory.get_for_update(product_id)
                    if record is None:
                        raise ProductNotFound(product_id)
                    previous_status = record.status
                    snapshot = replace(record)
                    now = self._clock()

                    result = operation(uow, record, now)

                    record.refresh_status()
                    record.check_invariants()
                    if record != snapshot:
                        record.updated_at = now
                        uow.inventory.save(record)
                    uow.commit()
            except ConcurrentModificationError:
                if attempt >= self._max_retries:
                    logger.error(
                        "Giving up on product %s after %d conflicting attempts",
                        product_id, attempt,
                    )
                    raise ConcurrentModificationError(product_id, attempt)
                logger.warning(
                    "Concurrent update of product %s, retrying (attempt %d of %d)",
                    product_id, attempt + 1, self._max_retries,
                )
                continue

            self._alerting.observe(previous_status, record)
            return result, record

    def apply_delta(
        self,
        product_id: str,
        signed_quantity: int,
        cause: MovementCause,
    ) -> InventoryRecord:
        """Change physical stock by ``signed_quantity`` and record the movement."""
        if signed_quantity == 0:
            raise ValidationError("Stock change must be non-zero")

        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> int:
            movement = record.apply_delta(signed_quantity, cause, now)
            return self._ledger.append(uow, movement)

        _, record = self.mutate(product_id, operation)
        logger.info(
            "Stock of product %s changed by %+d to %d (%s)",
            product_id, signed_quantity, record.quantity, cause.reason or "no reason",
        )
        return record

    def configure(self, product_id: str, **settings: object) -> InventoryRecord:
        """Update thresholds and flags; status is recomputed, no ledger entry."""

        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> None:
            record.configure(now, **settings)

        _, record = self.mutate(product_id, operation)
        return record
