"""AlertPublisher implementations.

Real delivery (email, SMS, push) belongs to the notification service; the
core only needs to hand alerts over.
"""

from __future__ import annotations

import logging
import threading
from collections import deque

from ims.domain.model.alert import AlertSeverity, InventoryAlert
from ims.domain.service.alerting import AlertPublisher

logger = logging.getLogger(__name__)

DEFAULT_MAX_ALERTS = 100

_LEVELS = {
    AlertSeverity.LOW: logging.INFO,
    AlertSeverity.MEDIUM: logging.WARNING,
    AlertSeverity.HIGH: logging.WARNING,
    AlertSeverity.CRITICAL: logging.ERROR,
}


class LoggingAlertPublisher(AlertPublisher):
    """Writes each alert to the log at a level matching its severity."""

    def publish(self, alert: InventoryAlert) -> None:
        logger.log(
            _LEVELS[alert.severity],
            "[%s/%s] %s",
            alert.type.value,
            alert.severity.value,
            alert.message,
        )


class CollectingAlertPublisher(AlertPublisher):
    """Keeps the most recent ``max_alerts`` alerts in memory, optionally forwarding them.

    Older alerts are dropped once the buffer is full.
    """

    def __init__(
        self,
        forward_to: AlertPublisher | None = None,
        max_alerts: int = DEFAULT_MAX_ALERTS,
    ) -> None:
        if max_alerts <= 0:
            raise ValueError("max_alerts must be positive")
        self._forward_to = forward_to
        self._alerts: deque[InventoryAlert] = deque(maxlen=max_alerts)
        self._lock = threading.Lock()

    @property
    def alerts(self) -> list[InventoryAlert]:
        with self._lock:
            return list(self._alerts)

    def publish(self, alert: InventoryAlert) -> None:
        with self._lock:
            self._alerts.append(alert)
        if self._forward_to is not None:
            self._forward_to.publish(alert)

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()
