"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so callers (cart, order and admin layers, or the CLI) can catch them
uniformly and decide whether to retry or surface them.  Storage connectivity
failures are not domain errors and propagate unchanged.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ProductNotFound(EntityNotFoundError):
    """No inventory record (or catalog entry) exists for the product."""

    def __init__(self, product_id: str, detail: str | None = None) -> None:
        self.product_id = product_id
        super().__init__(detail or f"No inventory record for product '{product_id}'")


class ReservationNotFound(EntityNotFoundError):
    """A release or extend referenced a reservation that was never created."""

    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"Reservation '{reservation_id}' not found")


class InsufficientStockError(ValidationError):
    """Request would violate ``reserved <= quantity``."""

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_id}' "
            f"(need {requested}, have {available} available)"
        )


class NegativeStockError(ValidationError):
    """Adjustment would drive physical quantity below the allowed floor."""

    def __init__(self, product_id: str, current: int, delta: int) -> None:
        self.product_id = product_id
        self.current = current
        self.delta = delta
        super().__init__(
            f"Cannot change stock of product '{product_id}' by {delta} "
            f"(only {current} on hand)"
        )


class ConcurrentModificationError(DomainException):
    """Optimistic-lock retry budget exhausted; retry the whole operation."""

    def __init__(self, product_id: str, attempts: int | None = None) -> None:
        self.product_id = product_id
        self.attempts = attempts
        message = f"Inventory record for product '{product_id}' was modified concurrently"
        if attempts is not None:
            message += f" (gave up after {attempts} attempts)"
        super().__init__(message)
