"""InventoryAlert: a derived, ephemeral stock signal.

Alerts are not authoritative inventory state: they can be discarded and
regenerated from the inventory records at any time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ims.domain.model.status import InventoryStatus


class AlertType(Enum):
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    OVERSTOCK = "OVERSTOCK"
    BACK_IN_STOCK = "BACK_IN_STOCK"
    STATUS_CHANGE = "STATUS_CHANGE"

    @staticmethod
    def for_status(status: InventoryStatus) -> AlertType:
        return _STATUS_ALERT_TYPES.get(status, AlertType.STATUS_CHANGE)


_STATUS_ALERT_TYPES = {
    InventoryStatus.LOW_STOCK: AlertType.LOW_STOCK,
    InventoryStatus.OUT_OF_STOCK: AlertType.OUT_OF_STOCK,
    InventoryStatus.OVERSTOCKED: AlertType.OVERSTOCK,
    InventoryStatus.ACTIVE: AlertType.BACK_IN_STOCK,
}


class AlertSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class InventoryAlert:
    type: AlertType
    severity: AlertSeverity
    product_id: str
    status: InventoryStatus
    current_stock: int
    threshold: int
    message: str
    previous_status: InventoryStatus | None = None
    is_acknowledged: bool = False
    is_dismissed: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def acknowledge(self) -> None:
        self.is_acknowledged = True

    def dismiss(self) -> None:
        self.is_dismissed = True
