"""Threaded poller that runs APRS collection cycles back to back."""

from __future__ import annotations

import logging
import threading

from aprs_etl.logic.cycle import CollectionCycle, CycleResult

logger = logging.getLogger(__name__)


class APRSPoller:
    """Background poller that runs one cycle at a time on a schedule.

    A new cycle only starts after the previous one finished and the resend
    interval elapsed, so cycles never overlap.
    """

    def __init__(self, cycle: CollectionCycle, resend_interval_seconds: float) -> None:
        self._cycle = cycle
        self._resend_interval_seconds = resend_interval_seconds
        self._latest: CycleResult | None = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def get_latest(self) -> CycleResult | None:
        """Return the most recent cycle result, if any."""
        with self._lock:
            return self._latest

    def start(self) -> None:
        """Start the background polling thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the polling thread to stop."""
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread:
            self._thread.join(timeout)

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                result = self.run_once()
            except Exception:
                logger.exception("poll_cycle_crashed")
            else:
                with self._lock:
                    self._latest = result
            self._stop_event.wait(timeout=self._resend_interval_seconds)

    def run_once(self) -> CycleResult:
        result = self._cycle.run()
        if result.error:
            logger.warning("poll_cycle_error error=%s", result.error)
        return result


__all__ = ["APRSPoller"]
