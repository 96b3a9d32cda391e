"""SQLite-backed tests for the SQLAlchemy unit of work and repositories."""

import threading
from collections import Counter
from datetime import timezone
from decimal import Decimal

import pytest

from ims.domain.exceptions import ConcurrentModificationError, InsufficientStockError
from ims.domain.model.movement import MovementDirection, MovementReason
from ims.domain.model.reservation import ReservationOwner
from ims.domain.model.value_objects import Money
from ims.infrastructure.bootstrap import build_application
from ims.infrastructure.catalog.json_product_catalog import StaticProductCatalog
from ims.infrastructure.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
    create_session_factory,
)
from ims.infrastructure.settings import Settings
from tests.fakes import FixedClock


def _settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{(tmp_path / 'inventory.db').as_posix()}",
        catalog_path=tmp_path / "products.json",
    )


def _app(tmp_path, clock=None):
    return build_application(
        _settings(tmp_path),
        catalog=StaticProductCatalog({"SKU-1", "SKU-2"}),
        clock=clock or FixedClock(),
    )


class TestRoundTrip:

    def test_record_survives_a_fresh_engine(self, tmp_path):
        app = _app(tmp_path)
        app.service.create("SKU-1", 10, unit_cost=Decimal("19.99"), max_stock_level=500)
        app.service.reserve("SKU-1", 4, ReservationOwner.cart("cart-1"))

        record = _app(tmp_path).service.get("SKU-1")

        assert record.quantity == 10
        assert record.reserved_quantity == 4
        assert record.max_stock_level == 500
        assert record.average_cost == Money.of("19.99")
        assert record.version == 1
        assert record.created_at.tzinfo == timezone.utc


class TestLedgerAndReservations:

    def test_history_and_replay(self, tmp_path):
        app = _app(tmp_path)
        app.service.create("SKU-1", 10)
        app.service.adjust("SKU-1", "decrease", 3, "damage", reason_code=MovementReason.DAMAGE)
        app.service.adjust("SKU-1", "set", 20, "count", reason_code=MovementReason.STOCK_COUNT)

        history = app.service.history("SKU-1")

        assert [m.direction for m in history] == [
            MovementDirection.ADJUSTMENT, MovementDirection.OUT, MovementDirection.IN,
        ]
        assert history[1].reason_code == MovementReason.DAMAGE
        assert all(m.id is not None for m in history)
        assert app.service.verify_ledger("SKU-1")

    def test_failed_adjustment_rolls_back_everything(self, tmp_path):
        app = _app(tmp_path)
        app.service.create("SKU-1", 10)
        app.service.reserve("SKU-1", 8, ReservationOwner.cart("cart-1"))

        with pytest.raises(InsufficientStockError):
            app.service.adjust("SKU-1", "decrease", 5, "damage")

        record = app.service.get("SKU-1")
        assert (record.quantity, record.reserved_quantity) == (10, 8)
        assert len(app.service.history("SKU-1")) == 1

    def test_expiry_sweep_and_owner_queries(self, tmp_path):
        clock = FixedClock()
        app = _app(tmp_path, clock)
        app.service.create("SKU-1", 10)
        app.service.create("SKU-2", 10)
        owner = ReservationOwner.order("order-7")
        app.service.reserve("SKU-1", 2, owner, ttl_minutes=5)
        clock.advance(seconds=1)
        app.service.reserve("SKU-2", 3, owner, ttl_minutes=60)
        clock.advance(minutes=10)

        assert app.service.expire_sweep() == 1
        assert app.service.get("SKU-1").reserved_quantity == 0
        assert [r.product_id for r in app.service.active_reservations("SKU-2")] == ["SKU-2"]
        assert [r.is_released for r in app.reservations.reservations_for_owner(owner)] == [
            True, False,
        ]
        assert app.service.commit_for_order("order-7") == 3
        assert app.service.get("SKU-2").quantity == 7


class TestOptimisticLocking:

    def test_stale_version_is_rejected(self, tmp_path):
        settings = _settings(tmp_path)
        _app(tmp_path).service.create("SKU-1", 10)
        session_factory = create_session_factory(settings.database_url)

        with SqlAlchemyUnitOfWork(session_factory) as first:
            stale = first.inventory.get("SKU-1")

            with SqlAlchemyUnitOfWork(session_factory) as second:
                fresh = second.inventory.get("SKU-1")
                fresh.quantity = 11
                second.inventory.save(fresh)
                second.commit()

            stale.quantity = 12
            with pytest.raises(ConcurrentModificationError):
                first.inventory.save(stale)

        assert _app(tmp_path).service.get("SKU-1").quantity == 11

    def test_uncommitted_work_is_rolled_back(self, tmp_path):
        settings = _settings(tmp_path)
        _app(tmp_path).service.create("SKU-1", 10)
        session_factory = create_session_factory(settings.database_url)

        with SqlAlchemyUnitOfWork(session_factory) as uow:
            record = uow.inventory.get_for_update("SKU-1")
            record.quantity = 0
            uow.inventory.save(record)

        assert _app(tmp_path).service.get("SKU-1").quantity == 10


class TestConcurrentReservations:

    def test_concurrent_reserves_never_oversell(self, tmp_path):
        stock, workers = 5, 12
        _app(tmp_path).service.create("SKU-1", stock)
        outcomes = Counter()
        lock = threading.Lock()
        start = threading.Barrier(workers)

        def worker(i: int) -> None:
            # One application per thread, all sharing the same database file.
            app = _app(tmp_path)
            start.wait()
            try:
                app.service.reserve("SKU-1", 1, ReservationOwner.cart(f"cart-{i}"))
            except Exception as exc:
                outcome = type(exc).__name__
            else:
                outcome = "ok"
            with lock:
                outcomes[outcome] += 1

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        record = _app(tmp_path).service.get("SKU-1")
        assert sum(outcomes.values()) == workers
        assert set(outcomes) <= {"ok", "InsufficientStockError", "ConcurrentModificationError"}
        assert 0 < outcomes["ok"] <= stock
        assert record.reserved_quantity == outcomes["ok"]
        assert record.quantity == stock
        assert len(_app(tmp_path).service.active_reservations("SKU-1")) == outcomes["ok"]
