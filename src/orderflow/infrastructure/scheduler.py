"""Background expiration sweeper.

Runs the expiration sweep (and, under compare-and-swap storage,
reservation reconciliation) on a fixed interval in a daemon thread.
Ticks never overlap: a tick that finds the previous one still running
is skipped. A failing tick is logged and the loop carries on.
"""

from __future__ import annotations

import threading

import structlog

from orderflow.application.expire_orders import ExpireOrdersHandler
from orderflow.application.reconcile_inventory import ReconcileInventoryHandler

logger = structlog.get_logger(__name__)


class ExpirationSweeper:

    def __init__(
        self,
        expire: ExpireOrdersHandler,
        reconcile: ReconcileInventoryHandler | None = None,
        interval_seconds: float = 60.0,
        run_immediately: bool = False,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._expire = expire
        self._reconcile = reconcile
        self._interval = interval_seconds
        self._run_immediately = run_immediately
        self._stop_event = threading.Event()
        self._tick_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._ticks = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> bool:
        """Run one tick. Returns False if a tick was already in progress."""
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Previous sweep still running, skipping tick")
            return False
        self._ticks += 1
        try:
            with structlog.contextvars.bound_contextvars(sweep_tick=self._ticks):
                self._expire.handle()
                if self._reconcile is not None:
                    self._reconcile.handle()
        except Exception:
            logger.error("Expiration sweep failed", sweep_tick=self._ticks, exc_info=True)
        finally:
            self._tick_lock.release()
        return True

    def run_loop(self) -> None:
        logger.info("Expiration sweeper starting", interval_seconds=self._interval)
        if self._run_immediately:
            self.run_once()
        while not self._stop_event.wait(self._interval):
            self.run_once()
        logger.info("Expiration sweeper stopped")

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_loop, name="expiration-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def __enter__(self) -> ExpirationSweeper:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
