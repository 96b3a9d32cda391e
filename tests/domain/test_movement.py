"""Unit tests for StockMovement and its direction rules."""

from datetime import datetime, timezone

import pytest

from ims.domain.exceptions import ValidationError
from ims.domain.model.movement import (
    MovementCause,
    MovementDirection,
    MovementReason,
    StockMovement,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestDirectionFor:

    def test_sign_decides_without_reason_code(self):
        cause = MovementCause(reason="manual")
        assert cause.direction_for(3) == MovementDirection.IN
        assert cause.direction_for(-3) == MovementDirection.OUT

    def test_adjustment_codes_keep_their_tag(self):
        cause = MovementCause(reason_code=MovementReason.STOCK_COUNT)
        assert cause.direction_for(4) == MovementDirection.ADJUSTMENT
        assert cause.direction_for(-4) == MovementDirection.ADJUSTMENT

    def test_contradicting_reason_code_rejected(self):
        with pytest.raises(ValidationError, match="SALE is an OUT movement"):
            MovementCause(reason_code=MovementReason.SALE).direction_for(2)

    def test_zero_delta_rejected(self):
        with pytest.raises(ValidationError, match="must change the quantity"):
            MovementCause().direction_for(0)


class TestStockMovement:

    def test_record_builds_consistent_entry(self):
        m = StockMovement.record("SKU-1", 10, -4, MovementCause(reason="Sold"), NOW)
        assert m.direction == MovementDirection.OUT
        assert m.quantity == 4
        assert m.signed_quantity == -4
        assert m.is_inbound is False

    def test_adjustment_may_go_either_way(self):
        m = StockMovement.record(
            "SKU-1", 10, -2, MovementCause(reason_code=MovementReason.CORRECTION), NOW
        )
        assert m.direction == MovementDirection.ADJUSTMENT
        assert m.signed_quantity == -2

    def test_non_positive_quantity_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            StockMovement("SKU-1", MovementDirection.IN, 0, 5, 5)

    def test_inconsistent_quantities_rejected(self):
        with pytest.raises(ValidationError, match="Inconsistent IN movement"):
            StockMovement("SKU-1", MovementDirection.IN, 3, 5, 7)

    def test_movements_are_immutable(self):
        m = StockMovement("SKU-1", MovementDirection.IN, 3, 5, 8)
        with pytest.raises(AttributeError):
            m.quantity = 4
