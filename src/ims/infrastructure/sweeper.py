"""Background reaper for expired reservations."""

from __future__ import annotations

import logging
import threading

from ims.application.reservation_manager import ReservationManager

logger = logging.getLogger(__name__)


class ReservationSweeper:
    """Runs ``expire_sweep`` every ``interval_seconds`` on a daemon thread.

    One failed sweep is logged and the loop carries on; the next pass
    picks up whatever was missed.
    """

    def __init__(self, manager: ReservationManager, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._manager = manager
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        count = self._manager.expire_sweep()
        logger.debug("Sweep released %d expired reservations", count)
        return count

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="ims-reservation-sweeper", daemon=True
        )
        self._thread.start()
        logger.info("Reservation sweeper started (every %ss)", self._interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Reservation sweeper stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Reservation sweep failed")
            self._stop.wait(self._interval)
