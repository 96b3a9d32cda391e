"""Derived classification of a product's stock health."""

from __future__ import annotations

from enum import Enum


class InventoryStatus(Enum):
    ACTIVE = "ACTIVE"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    OVERSTOCKED = "OVERSTOCKED"
    DISCONTINUED = "DISCONTINUED"
    INACTIVE = "INACTIVE"
