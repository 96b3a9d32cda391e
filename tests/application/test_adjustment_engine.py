"""Integration tests for the Adjustment Engine."""

from decimal import Decimal

import pytest

from ims.application.dto import AdjustmentType, BulkAdjustmentItem
from ims.domain.exceptions import (
    InsufficientStockError,
    NegativeStockError,
    ValidationError,
)
from ims.domain.model.movement import MovementDirection, MovementReason, ReferenceType
from ims.domain.model.reservation import ReservationOwner
from ims.domain.model.value_objects import Money
from tests.fakes import Core


def _setup(quantity: int, products=("SKU-1",)) -> Core:
    core = Core(products=products)
    for product_id in products:
        core.store.create(product_id, quantity)
    return core


def _hold(core: Core, quantity: int, cart: str) -> str:
    reservation = core.reservations.reserve("SKU-1", quantity, ReservationOwner.cart(cart))
    core.clock.advance(seconds=1)
    return reservation.id


class TestAdjust:

    def test_set_writes_single_in_movement_for_the_difference(self):
        core = _setup(5)

        record = core.adjustments.adjust("SKU-1", "set", 50, "restock")

        assert record.quantity == 50
        movement = core.ledger.history("SKU-1")[0]
        assert movement.direction == MovementDirection.IN
        assert movement.quantity == 45
        assert (movement.previous_quantity, movement.new_quantity) == (5, 50)
        assert movement.reference_type == ReferenceType.ADJUSTMENT

    def test_set_to_lower_value_writes_out_movement(self):
        core = _setup(20)
        core.adjustments.adjust("SKU-1", AdjustmentType.SET, 12, "stock take")
        movement = core.ledger.history("SKU-1")[0]
        assert movement.direction == MovementDirection.OUT
        assert movement.quantity == 8

    def test_set_to_current_value_is_a_noop(self):
        core = _setup(20)
        record = core.adjustments.adjust("SKU-1", "set", 20, "stock take")
        assert record.quantity == 20
        assert len(core.ledger.history("SKU-1")) == 1

    def test_stock_count_reason_is_tagged_adjustment(self):
        core = _setup(20)
        core.adjustments.adjust(
            "SKU-1", "set", 18, "cycle count", reason_code=MovementReason.STOCK_COUNT
        )
        assert core.ledger.history("SKU-1")[0].direction == MovementDirection.ADJUSTMENT

    def test_decrease_below_zero_rejected(self):
        core = _setup(2)
        with pytest.raises(NegativeStockError):
            core.adjustments.adjust("SKU-1", "decrease", 3, "damage")

    def test_increase_with_unit_cost_updates_average_cost(self):
        core = _setup(0)
        core.adjustments.adjust("SKU-1", "increase", 10, "PO-1", Decimal("100"))
        record = core.adjustments.adjust("SKU-1", "increase", 30, "PO-2", Decimal("200"))
        assert record.average_cost == Money.of("175.00")

    @pytest.mark.parametrize(
        "kind, quantity, reason, message",
        [
            ("explode", 1, "x", "Invalid adjustment type"),
            ("set", -1, "x", "negative quantity"),
            ("increase", 0, "x", "must be positive"),
            ("increase", 1, "  ", "reason is required"),
        ],
    )
    def test_invalid_requests_rejected(self, kind, quantity, reason, message):
        core = _setup(5)
        with pytest.raises(ValidationError, match=message):
            core.adjustments.adjust("SKU-1", kind, quantity, reason)


class TestAdjustBelowReserved:

    def test_decrease_below_reserved_rejected(self):
        core = _setup(10)
        _hold(core, 8, "cart-A")

        with pytest.raises(InsufficientStockError):
            core.adjustments.adjust("SKU-1", "decrease", 3, "damage")

        record = core.store.get("SKU-1")
        assert (record.quantity, record.reserved_quantity) == (10, 8)

    def test_force_requires_override_reason(self):
        core = _setup(10)
        with pytest.raises(ValidationError, match="override reason"):
            core.adjustments.adjust("SKU-1", "decrease", 3, "damage", force=True)

    def test_forced_decrease_releases_newest_holds(self):
        core = _setup(10)
        older = _hold(core, 5, "cart-A")
        newer = _hold(core, 3, "cart-B")

        record = core.adjustments.adjust(
            "SKU-1", "decrease", 3, "damage",
            force=True, override_reason="pallet dropped",
        )

        assert (record.quantity, record.reserved_quantity) == (7, 5)
        assert core.storage.reservations[newer].is_released
        assert core.storage.reservations[newer].release_reason == "stock override: pallet dropped"
        assert not core.storage.reservations[older].is_released


class TestBulkAdjust:

    def test_failures_do_not_roll_back_siblings(self):
        core = _setup(10, products=("SKU-1", "SKU-2"))

        report = core.adjustments.bulk_adjust(
            [
                BulkAdjustmentItem("SKU-1", 20),
                BulkAdjustmentItem("SKU-2", 100, AdjustmentType.DECREASE),
                BulkAdjustmentItem("SKU-404", 5, "increase"),
            ],
            batch_reason="Quarterly stock take",
        )

        assert report.successful == 1
        assert report.failed == 2
        assert report.errors[0].startswith("Product SKU-2:")
        assert report.errors[1].startswith("Product SKU-404:")
        assert core.store.get("SKU-1").quantity == 20
        assert core.store.get("SKU-2").quantity == 10
        assert core.ledger.history("SKU-1")[0].reason == "Quarterly stock take"


class TestConvenienceOperations:

    def test_record_sale_references_the_order(self):
        core = _setup(10)
        record = core.adjustments.record_sale("SKU-1", 2, "order-9")

        movement = core.ledger.history("SKU-1")[0]
        assert record.quantity == 8
        assert record.last_sold_at == core.clock()
        assert movement.reason_code == MovementReason.SALE
        assert (movement.reference_type, movement.reference_id) == (ReferenceType.ORDER, "order-9")

    def test_record_return_is_inbound(self):
        core = _setup(10)
        core.adjustments.record_return("SKU-1", 1, "order-9")
        movement = core.ledger.history("SKU-1")[0]
        assert movement.direction == MovementDirection.IN
        assert movement.reason_code == MovementReason.RETURN

    def test_mark_damaged_and_restock(self):
        core = _setup(10)
        core.adjustments.mark_damaged("SKU-1", 4)
        record = core.adjustments.restock("SKU-1", 6, Decimal("12.50"))
        assert record.quantity == 12
        assert [m.reason_code for m in core.ledger.history("SKU-1")] == [
            MovementReason.RESTOCK, MovementReason.DAMAGE, MovementReason.INITIAL_STOCK,
        ]
