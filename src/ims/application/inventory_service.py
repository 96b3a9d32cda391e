"""Inventory facade — the operations cart, order and admin callers use.

Thin delegation to the components; it exists so collaborators depend on
one object instead of wiring the store, ledger, reservation manager and
adjustment engine themselves.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ims.application.adjustment_engine import AdjustmentEngine
from ims.application.dto import (
    AdjustmentType,
    BulkAdjustmentItem,
    BulkAdjustmentReport,
    BulkReservationReport,
    MovementSummary,
    ReorderSuggestion,
    ReservationItem,
    ReservationStats,
)
from ims.application.inventory_store import InventoryRecordStore
from ims.application.reservation_manager import ReservationManager
from ims.application.stock_ledger import DEFAULT_HISTORY_LIMIT, StockLedger
from ims.domain.model.alert import InventoryAlert
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import MovementReason, StockMovement
from ims.domain.model.reservation import ReservationOwner, StockReservation
from ims.domain.service.alerting import AlertingGate


class InventoryService:

    def __init__(
        self,
        store: InventoryRecordStore,
        ledger: StockLedger,
        reservations: ReservationManager,
        adjustments: AdjustmentEngine,
        alerting: AlertingGate,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._reservations = reservations
        self._adjustments = adjustments
        self._alerting = alerting

    # --- Records --------------------------------------------------------------

    def create(self, product_id: str, quantity: int = 0, **kwargs: object) -> InventoryRecord:
        return self._store.create(product_id, quantity, **kwargs)

    def get(self, product_id: str) -> InventoryRecord:
        return self._store.get(product_id)

    def list_all(self) -> list[InventoryRecord]:
        return self._store.list_all()

    def configure(self, product_id: str, **settings: object) -> InventoryRecord:
        return self._store.configure(product_id, **settings)

    # --- Reservations ---------------------------------------------------------

    def reserve(
        self,
        product_id: str,
        quantity: int,
        owner: ReservationOwner,
        ttl_minutes: int | None = None,
        reason: str = "",
    ) -> StockReservation:
        return self._reservations.reserve(product_id, quantity, owner, ttl_minutes, reason)

    def reserve_many(
        self,
        items: list[ReservationItem],
        owner: ReservationOwner,
        ttl_minutes: int | None = None,
        reason: str = "",
    ) -> BulkReservationReport:
        return self._reservations.reserve_many(items, owner, ttl_minutes, reason)

    def release(self, reservation_id: str, reason: str = "released") -> int:
        return self._reservations.release(reservation_id, reason)

    def release_for_owner(self, owner: ReservationOwner, reason: str = "released") -> int:
        return self._reservations.release_for_owner(owner, reason)

    def extend(self, reservation_id: str, additional_minutes: int | None = None) -> StockReservation:
        return self._reservations.extend(reservation_id, additional_minutes)

    def commit_for_order(self, order_id: str, created_by: str | None = None) -> int:
        return self._reservations.commit_for_order(order_id, created_by)

    def active_reservations(self, product_id: str) -> list[StockReservation]:
        return self._reservations.active_reservations(product_id)

    def reservation_stats(self) -> ReservationStats:
        return self._reservations.stats()

    def expire_sweep(self, now: datetime | None = None) -> int:
        return self._reservations.expire_sweep(now)

    # --- Adjustments ----------------------------------------------------------

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
        force: bool = False,
        override_reason: str | None = None,
    ) -> InventoryRecord:
        return self._adjustments.adjust(
            product_id, adjustment_type, quantity, reason, unit_cost,
            reason_code=reason_code, created_by=created_by,
            force=force, override_reason=override_reason,
        )

    def bulk_adjust(
        self,
        items: list[BulkAdjustmentItem],
        batch_reason: str | None = None,
        created_by: str | None = None,
    ) -> BulkAdjustmentReport:
        return self._adjustments.bulk_adjust(items, batch_reason, created_by)

    # --- History and alerts ---------------------------------------------------

    def history(self, product_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[StockMovement]:
        return self._ledger.history(product_id, limit)

    def movement_summary(self, product_id: str, days: int = 30) -> MovementSummary:
        return self._ledger.summary(product_id, days)

    def verify_ledger(self, product_id: str) -> bool:
        return self._ledger.verify(product_id)

    def low_stock_alerts(self) -> list[InventoryAlert]:
        return self._alerting.current_alerts(self._store.list_all())

    def reorder_suggestions(self) -> list[ReorderSuggestion]:
        suggestions = []
        for record in self._store.list_all():
            if not record.track_inventory or record.is_discontinued:
                continue
            availability = record.availability()
            if availability.needs_reorder:
                suggestions.append(
                    ReorderSuggestion(
                        product_id=record.product_id,
                        available_quantity=availability.available_quantity,
                        reorder_point=record.reorder_point,
                        suggested_quantity=max(
                            record.reorder_quantity,
                            record.reorder_point - availability.available_quantity,
                        ),
                    )
                )
        return sorted(suggestions, key=lambda s: s.available_quantity)
