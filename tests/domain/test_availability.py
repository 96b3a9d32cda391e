"""Unit tests for the availability calculator."""

import pytest

from ims.domain.model.alert import AlertSeverity
from ims.domain.model.status import InventoryStatus
from ims.domain.service.availability import alert_severity, calculate_availability


class TestCalculateAvailability:

    def test_available_is_quantity_minus_reserved(self):
        result = calculate_availability(100, 30, low_stock_threshold=10, reorder_point=5)
        assert result.available_quantity == 70
        assert result.status == InventoryStatus.ACTIVE
        assert result.needs_reorder is False

    @pytest.mark.parametrize(
        "quantity, reserved, expected",
        [
            (0, 0, InventoryStatus.OUT_OF_STOCK),
            (10, 10, InventoryStatus.OUT_OF_STOCK),
            (10, 0, InventoryStatus.LOW_STOCK),   # available == threshold
            (11, 0, InventoryStatus.ACTIVE),
        ],
    )
    def test_stock_precedence(self, quantity, reserved, expected):
        result = calculate_availability(quantity, reserved, low_stock_threshold=10, reorder_point=5)
        assert result.status == expected

    def test_overstocked_above_max_level(self):
        result = calculate_availability(
            120, 0, low_stock_threshold=10, reorder_point=5, max_stock_level=100
        )
        assert result.status == InventoryStatus.OVERSTOCKED

    def test_low_stock_beats_overstock(self):
        # Everything reserved but physically above max: availability wins.
        result = calculate_availability(
            120, 115, low_stock_threshold=10, reorder_point=5, max_stock_level=100
        )
        assert result.status == InventoryStatus.LOW_STOCK

    def test_discontinued_wins_over_stock_levels(self):
        result = calculate_availability(0, 0, 10, 5, is_discontinued=True)
        assert result.status == InventoryStatus.DISCONTINUED

    def test_untracked_is_inactive(self):
        result = calculate_availability(0, 0, 10, 5, track_inventory=False)
        assert result.status == InventoryStatus.INACTIVE

    def test_needs_reorder_at_reorder_point(self):
        assert calculate_availability(5, 0, 10, 5).needs_reorder is True
        assert calculate_availability(6, 0, 10, 5).needs_reorder is False

    def test_is_deterministic(self):
        first = calculate_availability(42, 7, 10, 5, 100)
        assert calculate_availability(42, 7, 10, 5, 100) == first


class TestAlertSeverity:

    def test_out_of_stock_is_critical(self):
        assert alert_severity(InventoryStatus.OUT_OF_STOCK, 0, 10) == AlertSeverity.CRITICAL

    def test_half_threshold_is_high(self):
        assert alert_severity(InventoryStatus.LOW_STOCK, 5, 10) == AlertSeverity.HIGH

    def test_below_threshold_is_medium(self):
        assert alert_severity(InventoryStatus.LOW_STOCK, 6, 10) == AlertSeverity.MEDIUM

    def test_healthy_is_low(self):
        assert alert_severity(InventoryStatus.ACTIVE, 50, 10) == AlertSeverity.LOW

    def test_lifecycle_statuses_are_low(self):
        assert alert_severity(InventoryStatus.DISCONTINUED, 0, 10) == AlertSeverity.LOW
