"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money, Quantity


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation_defaults_to_naira(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "NGN"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_of_factory_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("ten")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError, match="must be a Decimal"):
            Money(10.5)

    def test_rounded_to_cents(self):
        assert Money.of("2.345").rounded() == Money.of("2.35")

    def test_str(self):
        assert str(Money.of("12")) == "NGN 12.00"


class TestWeightedAverage:

    def test_blends_on_hand_and_incoming_cost(self):
        # 10 @ 100 + 30 @ 200 -> 7000 / 40 = 175
        result = Money.weighted_average(10, Money.of("100"), 30, Money.of("200"))
        assert result == Money.of("175.00")

    def test_empty_stock_takes_incoming_cost(self):
        result = Money.weighted_average(0, Money.zero(), 5, Money.of("80"))
        assert result == Money.of("80.00")

    def test_backordered_stock_carries_no_value(self):
        result = Money.weighted_average(-3, Money.of("50"), 10, Money.of("90"))
        assert result == Money.of("90.00")

    def test_rounds_to_cents(self):
        result = Money.weighted_average(2, Money.of("1"), 1, Money.of("2"))
        assert result.amount == Decimal("1.33")

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine NGN with USD"):
            Money.weighted_average(5, Money.of("10", "NGN"), 5, Money.of("10", "USD"))


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_positive(self):
        assert Quantity(5).value == 5

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_rejected(self, value):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(value)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)
