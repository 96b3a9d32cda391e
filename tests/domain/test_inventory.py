"""Unit tests for the InventoryRecord aggregate."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ims.domain.exceptions import (
    InsufficientStockError,
    NegativeStockError,
    ValidationError,
)
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import MovementCause, MovementDirection, MovementReason
from ims.domain.model.status import InventoryStatus
from ims.domain.model.value_objects import Money

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _record(**kwargs) -> InventoryRecord:
    kwargs.setdefault("product_id", "SKU-1")
    return InventoryRecord(**kwargs)


class TestInventoryRecordReserve:

    def test_reserve_reduces_available(self):
        rec = _record(quantity=100)
        rec.reserve(30)
        assert rec.available_quantity == 70
        assert rec.reserved_quantity == 30
        assert rec.quantity == 100

    def test_reserve_all_available(self):
        rec = _record(quantity=10)
        rec.reserve(10)
        assert rec.available_quantity == 0

    def test_reserve_more_than_available_rejected(self):
        rec = _record(quantity=10, reserved_quantity=4)
        with pytest.raises(InsufficientStockError, match="need 7, have 6 available"):
            rec.reserve(7)
        assert rec.reserved_quantity == 4

    @pytest.mark.parametrize("qty", [0, -5])
    def test_non_positive_reserve_rejected(self, qty):
        with pytest.raises(ValidationError, match="must be positive"):
            _record(quantity=10).reserve(qty)


class TestInventoryRecordRelease:

    def test_release_increases_available(self):
        rec = _record(quantity=100, reserved_quantity=30)
        rec.release_reserved(10)
        assert rec.available_quantity == 80

    def test_release_more_than_reserved_rejected(self):
        rec = _record(quantity=100, reserved_quantity=5)
        with pytest.raises(ValidationError, match="only 5 currently reserved"):
            rec.release_reserved(6)


class TestInventoryRecordApplyDelta:

    def test_inbound_delta_returns_in_movement(self):
        rec = _record(quantity=10)
        movement = rec.apply_delta(5, MovementCause(reason="Restock"), NOW)

        assert rec.quantity == 15
        assert movement.direction == MovementDirection.IN
        assert movement.quantity == 5
        assert (movement.previous_quantity, movement.new_quantity) == (10, 15)
        assert rec.last_movement_at == NOW
        assert rec.last_restocked_at == NOW

    def test_outbound_delta_below_zero_rejected(self):
        rec = _record(quantity=3)
        with pytest.raises(NegativeStockError):
            rec.apply_delta(-4, MovementCause(reason="Damaged"), NOW)
        assert rec.quantity == 3

    def test_outbound_delta_below_reserved_rejected(self):
        rec = _record(quantity=10, reserved_quantity=8)
        with pytest.raises(InsufficientStockError):
            rec.apply_delta(-3, MovementCause(reason="Damaged"), NOW)

    def test_backorder_allows_negative_down_to_limit(self):
        rec = _record(quantity=2, allow_backorder=True, backorder_limit=5)
        rec.apply_delta(-7, MovementCause(reason="Presale"), NOW)
        assert rec.quantity == -5
        with pytest.raises(NegativeStockError):
            rec.apply_delta(-1, MovementCause(reason="Presale"), NOW)

    def test_sale_sets_last_sold_at(self):
        rec = _record(quantity=10)
        rec.apply_delta(-1, MovementCause(reason="Sold", reason_code=MovementReason.SALE), NOW)
        assert rec.last_sold_at == NOW
        assert rec.last_restocked_at is None

    def test_return_is_not_a_restock(self):
        rec = _record(quantity=10)
        rec.apply_delta(1, MovementCause(reason="Return", reason_code=MovementReason.RETURN), NOW)
        assert rec.last_restocked_at is None

    def test_unit_cost_updates_weighted_average(self):
        rec = _record(quantity=10, average_cost=Money.of("100"))
        rec.apply_delta(30, MovementCause(reason="PO-7", unit_cost=Decimal("200")), NOW)
        assert rec.average_cost == Money.of("175.00")
        assert rec.last_cost == Money.of("200")


class TestInventoryRecordStatus:

    def test_refresh_status_tracks_availability(self):
        rec = _record(quantity=100, low_stock_threshold=10)
        assert rec.refresh_status() == InventoryStatus.ACTIVE
        rec.reserve(92)
        assert rec.refresh_status() == InventoryStatus.LOW_STOCK
        rec.reserve(8)
        assert rec.refresh_status() == InventoryStatus.OUT_OF_STOCK


class TestInventoryRecordInvariants:

    def test_consistent_record_passes(self):
        _record(quantity=10, reserved_quantity=10).check_invariants()

    def test_reserved_above_quantity_rejected(self):
        with pytest.raises(InsufficientStockError):
            _record(quantity=5, reserved_quantity=6).check_invariants()

    def test_negative_reserved_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _record(quantity=5, reserved_quantity=-1).check_invariants()

    def test_negative_quantity_rejected_without_backorder(self):
        with pytest.raises(ValidationError, match="below its backorder floor of 0") as exc_info:
            _record(quantity=-1).check_invariants()
        assert not isinstance(exc_info.value, NegativeStockError)
        assert "backorder limit of at least 1" in str(exc_info.value)

    def test_nothing_reserved_while_backordered(self):
        rec = _record(quantity=-2, reserved_quantity=1, allow_backorder=True, backorder_limit=5)
        with pytest.raises(InsufficientStockError):
            rec.check_invariants()


class TestInventoryRecordConfigure:

    def test_updates_thresholds(self):
        rec = _record(quantity=50)
        rec.configure(NOW, low_stock_threshold=60, max_stock_level=200)
        assert rec.low_stock_threshold == 60
        assert rec.max_stock_level == 200
        assert rec.updated_at == NOW

    def test_unknown_setting_rejected(self):
        with pytest.raises(ValidationError, match="Unknown inventory setting"):
            _record().configure(NOW, quantity=5)

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _record().configure(NOW, reorder_point=-1)

    def test_zero_max_level_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            _record().configure(NOW, max_stock_level=0)
