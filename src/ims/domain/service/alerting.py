"""Domain service: Alerting Gate.

Turns status transitions of an InventoryRecord into InventoryAlert events.
The gate compares against the status persisted *before* the mutation, so
repeated writes (or reads) at an unchanged status never re-fire.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Iterable

from ims.domain.model.alert import AlertType, InventoryAlert
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.status import InventoryStatus
from ims.domain.service.availability import alert_severity

logger = logging.getLogger(__name__)

_MESSAGES = {
    AlertType.LOW_STOCK: "Low stock: product {product_id} has {available} available (threshold {threshold})",
    AlertType.OUT_OF_STOCK: "Out of stock: product {product_id} has no units available",
    AlertType.OVERSTOCK: "Overstock: product {product_id} holds {quantity} units, above its maximum",
    AlertType.BACK_IN_STOCK: "Back in stock: product {product_id} has {available} available",
    AlertType.STATUS_CHANGE: "Product {product_id} is now {status}",
}

# Statuses reported by ``current_alerts`` (the low stock dashboard).
LOW_STOCK_STATUSES = (InventoryStatus.LOW_STOCK, InventoryStatus.OUT_OF_STOCK)


class AlertPublisher(ABC):
    """Delivery side of alerting; retries are the collaborator's concern."""

    @abstractmethod
    def publish(self, alert: InventoryAlert) -> None:
        """Hand one alert to the notification collaborator."""


class AlertingGate:

    def __init__(
        self,
        publisher: AlertPublisher,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._publisher = publisher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_alert(
        self,
        record: InventoryRecord,
        previous_status: InventoryStatus | None = None,
    ) -> InventoryAlert:
        available = record.available_quantity
        alert_type = AlertType.for_status(record.status)
        message = _MESSAGES[alert_type].format(
            product_id=record.product_id,
            available=available,
            quantity=record.quantity,
            threshold=record.low_stock_threshold,
            status=record.status.value,
        )
        return InventoryAlert(
            type=alert_type,
            severity=alert_severity(record.status, available, record.low_stock_threshold),
            product_id=record.product_id,
            status=record.status,
            previous_status=previous_status,
            current_stock=available,
            threshold=record.low_stock_threshold,
            message=message,
            created_at=self._clock(),
        )

    def observe(
        self,
        previous_status: InventoryStatus | None,
        record: InventoryRecord,
    ) -> InventoryAlert | None:
        """Emit one alert if the committed status differs from the previous one.

        A brand-new record (``previous_status`` None) only alerts when it
        starts out unhealthy.
        """
        if previous_status == record.status:
            return None
        if previous_status is None and record.status not in LOW_STOCK_STATUSES:
            return None

        alert = self.build_alert(record, previous_status)
        try:
            self._publisher.publish(alert)
        except Exception:
            # The mutation is already committed; delivery is the publisher's problem.
            logger.exception(
                "Failed to publish %s alert for product %s", alert.type.value, record.product_id
            )
        return alert

    def current_alerts(self, records: Iterable[InventoryRecord]) -> list[InventoryAlert]:
        """Recompute alerts for every record currently low or out of stock."""
        alerts = [
            self.build_alert(record)
            for record in records
            if record.status in LOW_STOCK_STATUSES
        ]
        severity_rank = {"critical": 0, "high": 1, "medium": 2, "low": 3}
        alerts.sort(key=lambda a: (severity_rank[a.severity.value], a.current_stock))
        return alerts
