"""Reservation Manager: time-bound holds on available stock.

Holds shrink ``available_quantity`` without changing physical stock.
Every operation goes through the Inventory Record Store so the
availability check and the ``reserved_quantity`` update happen under
the same product lock.

Releases are idempotent: releasing (or expiring) a reservation that is
already released frees nothing and is not an error, so retried webhooks
and overlapping expiry sweeps are safe.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from ims.application.dto import (
    BulkReservationReport,
    ProductReservationStats,
    ReservationItem,
    ReservationOutcome,
    ReservationStats,
)
from ims.application.inventory_store import InventoryRecordStore
from ims.domain.exceptions import (
    DomainException,
    ReservationNotFound,
)
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import MovementCause, MovementReason, ReferenceType
from ims.domain.model.reservation import (
    DEFAULT_TTL_MINUTES,
    ReservationOwner,
    StockReservation,
)
from ims.domain.model.value_objects import Quantity
from ims.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)


def _reap_expired(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> int:
    """Expire lapsed holds of a locked record; returns the quantity freed."""
    freed = 0
    for reservation in uow.reservations.list_unreleased(record.product_id):
        released = reservation.expire(now)
        if released:
            record.release_reserved(released)
            uow.reservations.save(reservation)
            freed += released
    return freed


class ReservationManager:

    def __init__(
        self,
        store: InventoryRecordStore,
        uow_factory: UnitOfWorkFactory,
        default_ttl_minutes: int = DEFAULT_TTL_MINUTES,
    ) -> None:
        self._store = store
        self._uow_factory = uow_factory
        self._default_ttl_minutes = default_ttl_minutes

    def now(self) -> datetime:
        return self._store.now()

    # --- Reserve --------------------------------------------------------------

    def reserve(
        self,
        product_id: str,
        quantity: int,
        owner: ReservationOwner,
        ttl_minutes: int | None = None,
        reason: str = "",
    ) -> StockReservation:
        """Hold ``quantity`` units for a cart or order.

        Availability is checked against a fresh, locked read.  A request
        that cannot be met in full fails with InsufficientStockError and
        writes nothing; partial reservations are never created.
        """
        Quantity(quantity)
        ttl = ttl_minutes if ttl_minutes is not None else self._default_ttl_minutes
        self._store.ensure_active_product(product_id)

        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> StockReservation:
            _reap_expired(uow, record, now)
            reservation = StockReservation.create(
                reservation_id=uuid.uuid4().hex,
                product_id=product_id,
                quantity=quantity,
                owner=owner,
                now=now,
                ttl_minutes=ttl,
                reason=reason,
            )
            record.reserve(quantity)
            uow.reservations.add(reservation)
            return reservation

        reservation, record = self._store.mutate(product_id, operation)
        logger.info(
            "Reserved %d of product %s for %s until %s (available now %d)",
            quantity, product_id, owner, reservation.expires_at.isoformat(),
            record.available_quantity,
        )
        return reservation

    def reserve_many(
        self,
        items: list[ReservationItem],
        owner: ReservationOwner,
        ttl_minutes: int | None = None,
        reason: str = "",
    ) -> BulkReservationReport:
        """Reserve several products; each item succeeds or fails on its own."""
        report = BulkReservationReport()
        for item in items:
            try:
                reservation = self.reserve(item.product_id, item.quantity, owner, ttl_minutes, reason)
            except DomainException as exc:
                report.failed_items += 1
                report.reservations.append(
                    ReservationOutcome(product_id=item.product_id, success=False, message=str(exc))
                )
                continue
            report.total_reserved += item.quantity
            report.reservations.append(
                ReservationOutcome(
                    product_id=item.product_id,
                    success=True,
                    message="Stock reserved successfully",
                    reservation_id=reservation.id,
                )
            )
        return report

    # --- Release --------------------------------------------------------------

    def release(self, reservation_id: str, reason: str = "released") -> int:
        """Release one reservation; returns the quantity given back (0 if already released)."""
        with self._uow_factory() as uow:
            found = uow.reservations.get(reservation_id)
        if found is None:
            raise ReservationNotFound(reservation_id)
        if found.is_released:
            return 0

        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> int:
            reservation = uow.reservations.get(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            freed = reservation.release(now, reason)
            if freed:
                record.release_reserved(freed)
                uow.reservations.save(reservation)
            return freed

        freed, _ = self._store.mutate(found.product_id, operation)
        if freed:
            logger.info("Released reservation %s (%d of product %s): %s",
                        reservation_id, freed, found.product_id, reason)
        return freed

    def release_for_owner(self, owner: ReservationOwner, reason: str = "released") -> int:
        """Release every live reservation of a cart or order; returns total quantity freed."""
        with self._uow_factory() as uow:
            pending = [r for r in uow.reservations.list_for_owner(owner) if not r.is_released]
        total = 0
        for product_id, ids in self._group_ids_by_product(pending).items():
            total += self._release_ids(product_id, ids, reason)
        if total:
            logger.info("Released %d units held by %s: %s", total, owner, reason)
        return total

    # --- Extend / commit ------------------------------------------------------

    def extend(
        self,
        reservation_id: str,
        additional_minutes: int | None = None,
    ) -> StockReservation:
        """Push the expiry of an ACTIVE reservation to ``now + additional_minutes``."""
        minutes = additional_minutes if additional_minutes is not None else self._default_ttl_minutes
        with self._uow_factory() as uow:
            found = uow.reservations.get(reservation_id)
        if found is None:
            raise ReservationNotFound(reservation_id)

        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> StockReservation:
            reservation = uow.reservations.get(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            reservation.extend(minutes, now)
            uow.reservations.save(reservation)
            return reservation

        reservation, _ = self._store.mutate(found.product_id, operation)
        logger.info("Extended reservation %s until %s", reservation_id, reservation.expires_at.isoformat())
        return reservation

    def commit_for_order(self, order_id: str, created_by: str | None = None) -> int:
        """Turn an order's live holds into sales.

        For each product the hold is released and an OUT/SALE movement is
        written in the same transaction; returns the total quantity sold.
        """
        owner = ReservationOwner.order(order_id)
        with self._uow_factory() as uow:
            pending = [r for r in uow.reservations.list_for_owner(owner) if not r.is_released]

        total = 0
        for product_id, ids in self._group_ids_by_product(pending).items():

            def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime, ids=ids) -> int:
                sold = 0
                for reservation_id in ids:
                    reservation = uow.reservations.get(reservation_id)
                    if reservation is None or not reservation.is_active(now):
                        continue
                    freed = reservation.release(now, f"converted to sale for order {order_id}")
                    record.release_reserved(freed)
                    uow.reservations.save(reservation)
                    sold += freed
                if sold:
                    movement = record.apply_delta(
                        -sold,
                        MovementCause(
                            reason="Order confirmed - stock sold",
                            reason_code=MovementReason.SALE,
                            reference_type=ReferenceType.ORDER,
                            reference_id=order_id,
                            created_by=created_by,
                        ),
                        now,
                    )
                    self._store.ledger.append(uow, movement)
                return sold

            sold, _ = self._store.mutate(product_id, operation)
            total += sold
        if total:
            logger.info("Committed %d reserved units of order %s as sales", total, order_id)
        return total

    # --- Expiry ---------------------------------------------------------------

    def expire_sweep(self, now: datetime | None = None) -> int:
        """Release every reservation whose TTL has passed; returns how many were reaped.

        Safe to run concurrently with itself and with ``release``: each
        product is re-read under its lock and already-released rows are
        skipped.
        """
        cutoff = now or self._store.now()
        with self._uow_factory() as uow:
            expired = uow.reservations.list_expired(cutoff)
        count = 0
        for product_id, ids in self._group_ids_by_product(expired).items():

            def operation(uow: UnitOfWork, record: InventoryRecord, _now: datetime, ids=ids) -> int:
                reaped = 0
                for reservation_id in ids:
                    reservation = uow.reservations.get(reservation_id)
                    if reservation is None:
                        continue
                    freed = reservation.expire(cutoff)
                    if freed:
                        record.release_reserved(freed)
                        uow.reservations.save(reservation)
                        reaped += 1
                return reaped

            reaped, _ = self._store.mutate(product_id, operation)
            count += reaped
        if count:
            logger.info("Expired %d reservations", count)
        return count

    # --- Queries --------------------------------------------------------------

    def active_reservations(self, product_id: str) -> list[StockReservation]:
        now = self._store.now()
        with self._uow_factory() as uow:
            return uow.reservations.list_active(product_id, now)

    def reservations_for_owner(self, owner: ReservationOwner) -> list[StockReservation]:
        with self._uow_factory() as uow:
            return uow.reservations.list_for_owner(owner)

    def stats(self, expiring_within_minutes: int = DEFAULT_TTL_MINUTES) -> ReservationStats:
        now = self._store.now()
        soon = now + timedelta(minutes=expiring_within_minutes)
        with self._uow_factory() as uow:
            active = uow.reservations.list_active(None, now)

        by_product: dict[str, list[StockReservation]] = defaultdict(list)
        for reservation in active:
            by_product[reservation.product_id].append(reservation)

        return ReservationStats(
            total_active_reservations=len(active),
            total_reserved_quantity=sum(r.quantity for r in active),
            expiring_soon=sum(1 for r in active if r.expires_at <= soon),
            by_product=[
                ProductReservationStats(
                    product_id=product_id,
                    reserved_quantity=sum(r.quantity for r in reservations),
                    reservation_count=len(reservations),
                )
                for product_id, reservations in sorted(by_product.items())
            ],
        )

    # --- Internal helpers -----------------------------------------------------

    def _release_ids(self, product_id: str, ids: list[str], reason: str) -> int:
        def operation(uow: UnitOfWork, record: InventoryRecord, now: datetime) -> int:
            freed_total = 0
            for reservation_id in ids:
                reservation = uow.reservations.get(reservation_id)
                if reservation is None:
                    continue
                freed = reservation.release(now, reason)
                if freed:
                    record.release_reserved(freed)
                    uow.reservations.save(reservation)
                    freed_total += freed
            return freed_total

        freed, _ = self._store.mutate(product_id, operation)
        return freed

    @staticmethod
    def _group_ids_by_product(reservations: list[StockReservation]) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = defaultdict(list)
        for reservation in reservations:
            grouped[reservation.product_id].append(reservation.id)
        return dict(grouped)

