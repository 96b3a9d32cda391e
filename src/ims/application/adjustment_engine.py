"""Adjustment Engine: direct changes to physical stock.

Restocks, stock-take corrections and losses are expressed as an
adjustment type plus a quantity.  The engine turns that into a signed
delta against the quantity read under the product lock (never a stale
caller snapshot) and lets the Inventory Record Store apply it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from ims.application.dto import (
    AdjustmentType,
    BulkAdjustmentItem,
    BulkAdjustmentReport,
)
from ims.application.inventory_store import InventoryRecordStore
from ims.domain.exceptions import (
    DomainException,
    InsufficientStockError,
    NegativeStockError,
    ValidationError,
)
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import MovementCause, MovementReason, ReferenceType
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def _delta_for(adjustment_type: AdjustmentType, quantity: int, current: int) -> int:
    if adjustment_type == AdjustmentType.SET:
        return quantity - current
    if adjustment_type == AdjustmentType.INCREASE:
        return quantity
    return -quantity


class AdjustmentEngine:

    def __init__(self, store: InventoryRecordStore) -> None:
        self._store = store

    def adjust(
        self,
        product_id: str,
        adjustment_type: AdjustmentType | str,
        quantity: int,
        reason: str,
        unit_cost: Decimal | None = None,
        *,
        reason_code: MovementReason | None = None,
        created_by: str | None = None,
        reference_type: ReferenceType = ReferenceType.ADJUSTMENT,
        reference_id: str | None = None,
        force: bool = False,
        override_reason: str | None = None,
    ) -> InventoryRecord:
        """Apply a set/increase/decrease adjustment.

        Stock cannot be adjusted below what live carts and orders already
        hold.  With ``force=True`` and an ``override_reason`` the newest
        holds are released until the remaining ones fit, in the same
        transaction.  A ``set`` to the current quantity writes nothing.
        """
        kind = AdjustmentType.parse(adjustment_type)
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("Adjustment quantity must be an integer")
        if kind == AdjustmentType.SET and quantity < 0:
            raise ValidationError("Cannot set stock to a negative quantity")
        if kind != AdjustmentType.SET and quantity <= 0:
            raise ValidationError("Adjustment quantity must be positive")
        if not reason or not reason.strip():
            raise ValidationError("An adjustment reason is required")
        if force and not (override_reason and override_reason.strip()):
            raise ValidationError("A forced adjustment needs an override reason")
        if unit_cost is not None and unit_cost < 0:
            raise ValidationError("Unit cost cannot be negative")

        self._store.ensure_active_product(product_id)

        cause = MovementCause(
            reason=reason.strip(),
            reason_code=reason_code,
            reference_type=reference_type,
            reference_id=reference_id,
            unit_cost=unit_cost,
            created_by=created_by,
        )

        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> int:
            delta = _delta_for(kind, quantity, record.quantity)
            if delta == 0:
                return 0
            new_quantity = record.quantity + delta
            if new_quantity < record.stock_floor:
                raise NegativeStockError(product_id, record.quantity, delta)
            if record.reserved_quantity > max(new_quantity, 0):
                if not force:
                    raise InsufficientStockError(
                        product_id, record.reserved_quantity, max(new_quantity, 0)
                    )
                self._release_newest_holds(uow, record, max(new_quantity, 0), now, override_reason)
            movement = record.apply_delta(delta, cause, now)
            self._store.ledger.append(uow, movement)
            return delta

        delta, record = self._store.mutate(product_id, operation)
        if delta:
            logger.info(
                "Adjusted product %s: %s %d -> quantity %d (%s)%s",
                product_id, kind.value, quantity, record.quantity, cause.reason,
                f" [forced: {override_reason}]" if force else "",
            )
        return record

    def bulk_adjust(
        self,
        items: list[BulkAdjustmentItem],
        batch_reason: str | None = None,
        created_by: str | None = None,
    ) -> BulkAdjustmentReport:
        """Apply each item independently and report partial success.

        One item's failure never rolls back its siblings.  Only domain
        errors are collected; storage failures propagate.
        """
        report = BulkAdjustmentReport()
        for item in items:
            try:
                self.adjust(
                    item.product_id,
                    item.adjustment_type,
                    item.quantity,
                    item.reason or batch_reason or "Bulk inventory update",
                    item.unit_cost,
                    created_by=created_by,
                )
            except DomainException as exc:
                report.failed += 1
                report.errors.append(f"Product {item.product_id}: {exc}")
                continue
            report.successful += 1
        logger.info(
            "Bulk adjustment finished: %d successful, %d failed",
            report.successful, report.failed,
        )
        return report

    # --- Convenience operations -----------------------------------------------

    def restock(
        self,
        product_id: str,
        quantity: int,
        unit_cost: Decimal | None = None,
        reason: str = "Restock",
        created_by: str | None = None,
    ) -> InventoryRecord:
        return self.adjust(
            product_id, AdjustmentType.INCREASE, quantity, reason, unit_cost,
            reason_code=MovementReason.RESTOCK, created_by=created_by,
        )

    def record_return(
        self,
        product_id: str,
        quantity: int,
        order_id: str,
        created_by: str | None = None,
    ) -> InventoryRecord:
        return self.adjust(
            product_id, AdjustmentType.INCREASE, quantity, "Customer return",
            reason_code=MovementReason.RETURN, created_by=created_by,
            reference_type=ReferenceType.ORDER, reference_id=order_id,
        )

    def mark_damaged(
        self,
        product_id: str,
        quantity: int,
        reason: str = "Damaged stock",
        created_by: str | None = None,
    ) -> InventoryRecord:
        return self.adjust(
            product_id, AdjustmentType.DECREASE, quantity, reason,
            reason_code=MovementReason.DAMAGE, created_by=created_by,
        )

    def record_sale(
        self,
        product_id: str,
        quantity: int,
        order_id: str,
        created_by: str | None = None,
    ) -> InventoryRecord:
        """Deduct stock sold without a prior hold (e.g. point-of-sale)."""
        return self.adjust(
            product_id, AdjustmentType.DECREASE, quantity, "Product sold",
            reason_code=MovementReason.SALE, created_by=created_by,
            reference_type=ReferenceType.ORDER, reference_id=order_id,
        )

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _release_newest_holds(
        uow: UnitOfWork,
        record: InventoryRecord,
        target_reserved: int,
        now: datetime,
        override_reason: str | None,
    ) -> None:
        holds = sorted(
            uow.reservations.list_unreleased(record.product_id),
            key=lambda r: r.created_at,
            reverse=True,
        )
        for reservation in holds:
            if record.reserved_quantity <= target_reserved:
                break
            freed = reservation.release(now, f"stock override: {override_reason}")
            if freed:
                record.release_reserved(freed)
                uow.reservations.save(reservation)
                logger.warning(
                    "Released reservation %s (%d units) of product %s to force an adjustment",
                    reservation.id, freed, record.product_id,
                )
