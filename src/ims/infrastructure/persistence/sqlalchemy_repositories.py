"""SQLAlchemy-backed implementations of the inventory repositories.

Rows are mapped to plain domain objects on the way out, so nothing above
this module ever sees a Session or an ORM instance.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ims.domain.exceptions import ConcurrentModificationError
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import (
    MovementDirection,
    MovementReason,
    ReferenceType,
    StockMovement,
)
from ims.domain.model.reservation import ReservationOwner, StockReservation
from ims.domain.model.status import InventoryStatus
from ims.domain.model.value_objects import Money
from ims.domain.repository.inventory_repository import InventoryRepository
from ims.domain.repository.movement_repository import MovementRepository
from ims.domain.repository.reservation_repository import ReservationRepository
from ims.infrastructure.persistence.orm import (
    InventoryRecordRow,
    StockMovementRow,
    StockReservationRow,
)


class SqlAlchemyInventoryRepository(InventoryRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- InventoryRepository interface ----------------------------------------

    def get(self, product_id: str) -> InventoryRecord | None:
        stmt = (
            select(InventoryRecordRow)
            .where(InventoryRecordRow.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        row = self._session.execute(stmt).scalar_one_or_none()
        return self._to_domain(row) if row is not None else None

    def get_for_update(self, product_id: str) -> InventoryRecord | None:
        # Row lock on PostgreSQL/MySQL; SQLite ignores it and relies on the
        # version check in save().
        stmt = (
            select(InventoryRecordRow)
            .where(InventoryRecordRow.product_id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = self._session.execute(stmt).scalar_one_or_none()
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[InventoryRecord]:
        stmt = (
            select(InventoryRecordRow)
            .order_by(InventoryRecordRow.product_id)
            .execution_options(populate_existing=True)
        )
        return [self._to_domain(row) for row in self._session.execute(stmt).scalars()]

    def add(self, record: InventoryRecord) -> None:
        self._session.add(InventoryRecordRow(**self._to_values(record), version=record.version))
        self._session.flush()

    def save(self, record: InventoryRecord) -> None:
        stmt = (
            update(InventoryRecordRow)
            .where(
                InventoryRecordRow.product_id == record.product_id,
                InventoryRecordRow.version == record.version,
            )
            .values(**self._to_values(record), version=record.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentModificationError(record.product_id)
        record.version += 1

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_values(record: InventoryRecord) -> dict:
        return {
            "product_id": record.product_id,
            "quantity": record.quantity,
            "reserved_quantity": record.reserved_quantity,
            "low_stock_threshold": record.low_stock_threshold,
            "reorder_point": record.reorder_point,
            "reorder_quantity": record.reorder_quantity,
            "max_stock_level": record.max_stock_level,
            "track_inventory": record.track_inventory,
            "is_discontinued": record.is_discontinued,
            "allow_backorder": record.allow_backorder,
            "backorder_limit": record.backorder_limit,
            "currency": record.average_cost.currency,
            "average_cost": record.average_cost.amount,
            "last_cost": record.last_cost.amount,
            "status": record.status.value,
            "last_movement_at": record.last_movement_at,
            "last_restocked_at": record.last_restocked_at,
            "last_sold_at": record.last_sold_at,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
        }

    @staticmethod
    def _to_domain(row: InventoryRecordRow) -> InventoryRecord:
        return InventoryRecord(
            product_id=row.product_id,
            quantity=row.quantity,
            reserved_quantity=row.reserved_quantity,
            low_stock_threshold=row.low_stock_threshold,
            reorder_point=row.reorder_point,
            reorder_quantity=row.reorder_quantity,
            max_stock_level=row.max_stock_level,
            track_inventory=row.track_inventory,
            is_discontinued=row.is_discontinued,
            allow_backorder=row.allow_backorder,
            backorder_limit=row.backorder_limit,
            average_cost=Money.of(row.average_cost, row.currency),
            last_cost=Money.of(row.last_cost, row.currency),
            status=InventoryStatus(row.status),
            version=row.version,
            last_movement_at=row.last_movement_at,
            last_restocked_at=row.last_restocked_at,
            last_sold_at=row.last_sold_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class SqlAlchemyMovementRepository(MovementRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, movement: StockMovement) -> int:
        row = StockMovementRow(
            product_id=movement.product_id,
            direction=movement.direction.value,
            quantity=movement.quantity,
            previous_quantity=movement.previous_quantity,
            new_quantity=movement.new_quantity,
            reason=movement.reason,
            reason_code=movement.reason_code.value if movement.reason_code else None,
            reference_type=movement.reference_type.value if movement.reference_type else None,
            reference_id=movement.reference_id,
            unit_cost=movement.unit_cost,
            created_by=movement.created_by,
            created_at=movement.created_at,
        )
        self._session.add(row)
        self._session.flush()
        return row.id

    def list_for_product(self, product_id: str, limit: int) -> list[StockMovement]:
        stmt = (
            select(StockMovementRow)
            .where(StockMovementRow.product_id == product_id)
            .order_by(StockMovementRow.created_at.desc(), StockMovementRow.id.desc())
            .limit(limit)
        )
        return [self._to_domain(row) for row in self._session.execute(stmt).scalars()]

    def list_all_for_product(self, product_id: str) -> list[StockMovement]:
        stmt = (
            select(StockMovementRow)
            .where(StockMovementRow.product_id == product_id)
            .order_by(StockMovementRow.id)
        )
        return [self._to_domain(row) for row in self._session.execute(stmt).scalars()]

    def list_between(
        self,
        start: datetime,
        end: datetime,
        product_id: str | None = None,
    ) -> list[StockMovement]:
        stmt = select(StockMovementRow).where(
            StockMovementRow.created_at >= start,
            StockMovementRow.created_at < end,
        )
        if product_id is not None:
            stmt = stmt.where(StockMovementRow.product_id == product_id)
        stmt = stmt.order_by(StockMovementRow.id)
        return [self._to_domain(row) for row in self._session.execute(stmt).scalars()]

    @staticmethod
    def _to_domain(row: StockMovementRow) -> StockMovement:
        return StockMovement(
            id=row.id,
            product_id=row.product_id,
            direction=MovementDirection(row.direction),
            quantity=row.quantity,
            previous_quantity=row.previous_quantity,
            new_quantity=row.new_quantity,
            reason=row.reason,
            reason_code=MovementReason(row.reason_code) if row.reason_code else None,
            reference_type=ReferenceType(row.reference_type) if row.reference_type else None,
            reference_id=row.reference_id,
            unit_cost=row.unit_cost,
            created_by=row.created_by,
            created_at=row.created_at,
        )


class SqlAlchemyReservationRepository(ReservationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, reservation: StockReservation) -> None:
        self._session.add(
            StockReservationRow(
                id=reservation.id,
                product_id=reservation.product_id,
                quantity=reservation.quantity,
                order_id=reservation.owner.order_id,
                cart_id=reservation.owner.cart_id,
                reason=reservation.reason,
                expires_at=reservation.expires_at,
                created_at=reservation.created_at,
                is_released=reservation.is_released,
                released_at=reservation.released_at,
                release_reason=reservation.release_reason,
            )
        )
        self._session.flush()

    def get(self, reservation_id: str) -> StockReservation | None:
        stmt = (
            select(StockReservationRow)
            .where(StockReservationRow.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        row = self._session.execute(stmt).scalar_one_or_none()
        return self._to_domain(row) if row is not None else None

    def save(self, reservation: StockReservation) -> None:
        stmt = (
            update(StockReservationRow)
            .where(StockReservationRow.id == reservation.id)
            .values(
                expires_at=reservation.expires_at,
                is_released=reservation.is_released,
                released_at=reservation.released_at,
                release_reason=reservation.release_reason,
            )
            .execution_options(synchronize_session=False)
        )
        self._session.execute(stmt)

    def list_unreleased(self, product_id: str) -> list[StockReservation]:
        stmt = (
            select(StockReservationRow)
            .where(
                StockReservationRow.product_id == product_id,
                StockReservationRow.is_released.is_(False),
            )
            .order_by(StockReservationRow.created_at)
        )
        return self._fetch(stmt)

    def list_active(self, product_id: str | None, now: datetime) -> list[StockReservation]:
        stmt = select(StockReservationRow).where(
            StockReservationRow.is_released.is_(False),
            StockReservationRow.expires_at >= now,
        )
        if product_id is not None:
            stmt = stmt.where(StockReservationRow.product_id == product_id)
        stmt = stmt.order_by(StockReservationRow.created_at.desc())
        return self._fetch(stmt)

    def list_for_owner(self, owner: ReservationOwner) -> list[StockReservation]:
        stmt = select(StockReservationRow)
        if owner.order_id:
            stmt = stmt.where(StockReservationRow.order_id == owner.order_id)
        else:
            stmt = stmt.where(StockReservationRow.cart_id == owner.cart_id)
        return self._fetch(stmt.order_by(StockReservationRow.created_at))

    def list_expired(self, now: datetime, limit: int | None = None) -> list[StockReservation]:
        stmt = (
            select(StockReservationRow)
            .where(
                StockReservationRow.is_released.is_(False),
                StockReservationRow.expires_at < now,
            )
            .order_by(StockReservationRow.expires_at)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._fetch(stmt)

    # --- Internal helpers -----------------------------------------------------

    def _fetch(self, stmt) -> list[StockReservation]:
        stmt = stmt.execution_options(populate_existing=True)
        return [self._to_domain(row) for row in self._session.execute(stmt).scalars()]

    @staticmethod
    def _to_domain(row: StockReservationRow) -> StockReservation:
        return StockReservation(
            id=row.id,
            product_id=row.product_id,
            quantity=row.quantity,
            owner=ReservationOwner(order_id=row.order_id, cart_id=row.cart_id),
            expires_at=row.expires_at,
            reason=row.reason,
            created_at=row.created_at,
            is_released=row.is_released,
            released_at=row.released_at,
            release_reason=row.release_reason,
        )
