"""Availability Calculator.

Pure functions deriving available quantity, status and alert severity
from plain numbers.  No repository access, no clock, no side effects, so
they can be exercised directly in unit tests.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.alert import AlertSeverity
from ims.domain.model.status import InventoryStatus


@dataclass(frozen=True)
class Availability:
    available_quantity: int
    status: InventoryStatus
    needs_reorder: bool


def calculate_availability(
    quantity: int,
    reserved_quantity: int,
    low_stock_threshold: int,
    reorder_point: int,
    max_stock_level: int | None = None,
    *,
    track_inventory: bool = True,
    is_discontinued: bool = False,
) -> Availability:
    """Derive ``available = quantity - reserved`` and the inventory status.

    Lifecycle flags win over stock levels (DISCONTINUED, then INACTIVE).
    Stock precedence, highest first: OUT_OF_STOCK, LOW_STOCK, OVERSTOCKED,
    ACTIVE.
    """
    available = quantity - reserved_quantity
    needs_reorder = available <= reorder_point

    if is_discontinued:
        status = InventoryStatus.DISCONTINUED
    elif not track_inventory:
        status = InventoryStatus.INACTIVE
    elif available <= 0:
        status = InventoryStatus.OUT_OF_STOCK
    elif available <= low_stock_threshold:
        status = InventoryStatus.LOW_STOCK
    elif max_stock_level is not None and quantity > max_stock_level:
        status = InventoryStatus.OVERSTOCKED
    else:
        status = InventoryStatus.ACTIVE

    return Availability(
        available_quantity=available,
        status=status,
        needs_reorder=needs_reorder,
    )


def alert_severity(
    status: InventoryStatus,
    available_quantity: int,
    low_stock_threshold: int,
) -> AlertSeverity:
    """Map a stock level to alert severity.

    Lifecycle statuses are informational (low).  OUT_OF_STOCK is always
    critical; otherwise at or below half the threshold is high, at or
    below the threshold is medium.
    """
    if status in (InventoryStatus.DISCONTINUED, InventoryStatus.INACTIVE):
        return AlertSeverity.LOW
    if status == InventoryStatus.OUT_OF_STOCK or available_quantity <= 0:
        return AlertSeverity.CRITICAL
    if available_quantity <= low_stock_threshold * 0.5:
        return AlertSeverity.HIGH
    if available_quantity <= low_stock_threshold:
        return AlertSeverity.MEDIUM
    return AlertSeverity.LOW
