from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional, Protocol

from kvstore.core.store import KeyValueStore, StatsSnapshot

logger = logging.getLogger("kvstore")


class CancelSignal(Protocol):
    def wait(self, timeout: Optional[float] = None) -> bool: ...

    def set(self) -> None: ...


class ReporterState(str, enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"


def log_snapshot(snapshot: StatsSnapshot) -> None:
    logger.info(
        "event=stats_report total_requests=%s data_size=%s errors=%s",
        snapshot.total_requests,
        snapshot.data_size,
        snapshot.errors,
    )


class Reporter:
    """Emits a store snapshot every ``interval`` seconds until cancelled."""

    def __init__(
        self,
        store: KeyValueStore,
        interval: float = 5.0,
        emit: Callable[[StatsSnapshot], None] = log_snapshot,
        cancel: Optional[CancelSignal] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.store = store
        self.interval = interval
        self._emit = emit
        self._cancel: CancelSignal = cancel if cancel is not None else threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._finished = False
        self.state = ReporterState.STOPPED
        self.ticks = 0

    def tick(self) -> StatsSnapshot:
        # Reading for the report is not client traffic.
        snapshot = self.store.stats(record=False)
        self._emit(snapshot)
        self.ticks += 1
        return snapshot

    def run(self) -> None:
        """Block until cancelled, ticking once per elapsed interval."""
        if self._finished:
            raise RuntimeError("Reporter has already been stopped")
        self.state = ReporterState.RUNNING
        try:
            while True:
                if self._cancel.wait(self.interval):
                    break
                self.tick()
        finally:
            self.state = ReporterState.STOPPED
            self._finished = True
            logger.info("event=reporter_stopped ticks=%s", self.ticks)

    def start(self) -> threading.Thread:
        if self._thread is not None or self._finished:
            raise RuntimeError("Reporter can only be started once")
        self._thread = threading.Thread(target=self.run, name="stats-reporter", daemon=True)
        self.state = ReporterState.RUNNING
        self._thread.start()
        return self._thread

    def cancel(self) -> None:
        self._cancel.set()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Signal cancellation and wait for the loop to exit.
        Returns False if the thread is still alive after ``timeout``.
        """
        self.cancel()
        if self._thread is None:
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.error("event=reporter_stop_timeout timeout_seconds=%s", timeout)
            return False
        return True
