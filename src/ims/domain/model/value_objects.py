"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ims.domain.exceptions import ValidationError

DEFAULT_CURRENCY = "NGN"
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency, used for the stock cost basis.

    Uses Decimal to avoid floating-point rounding errors in valuation.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    def rounded(self) -> Money:
        return Money(self.amount.quantize(_CENTS, rounding=ROUND_HALF_UP), self.currency)

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:.2f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(Decimal("0.00"), currency)

    @staticmethod
    def weighted_average(
        current_quantity: int,
        current_cost: Money,
        incoming_quantity: int,
        incoming_cost: Money,
    ) -> Money:
        """Blend the cost of stock on hand with an incoming receipt.

        Negative on-hand stock (backorders) carries no value into the blend.
        """
        current_cost._assert_same_currency(incoming_cost)
        current_quantity = max(current_quantity, 0)
        total_quantity = current_quantity + incoming_quantity
        if total_quantity <= 0:
            return incoming_cost
        blended = (
            current_cost.amount * current_quantity
            + incoming_cost.amount * incoming_quantity
        ) / total_quantity
        return Money(blended, incoming_cost.currency).rounded()


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot reserve or move zero or
    negative units.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
