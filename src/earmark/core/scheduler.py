# ABOUTME: Periodic driver for the import pipeline with serialized sweeps.
# ABOUTME: A timer loop and on-demand triggers share one lock; stop() cancels the sweep in flight.

import logging
import threading

from earmark.core.importer import ImportPipeline, SweepCancelled, SweepResult

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Runs ImportPipeline.run_all every interval seconds until stopped."""

    def __init__(self, pipeline: ImportPipeline, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"sweep interval must be positive, got {interval}")
        self._pipeline = pipeline
        self._interval = interval
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger(self) -> list[SweepResult]:
        """Run one sweep now, waiting for any sweep already in progress."""
        with self._lock:
            if self._stopped.is_set():
                return []
            try:
                return self._pipeline.run_all()
            except SweepCancelled:
                logger.info("Sweep cancelled")
                return []

    def run_forever(self) -> None:
        """Sweep immediately, then every interval, until stop() is called."""
        logger.info("Scheduler started, sweeping every %ss", self._interval)
        while not self._stopped.is_set():
            self.trigger()
            self._stopped.wait(self._interval)
        logger.info("Scheduler stopped")

    def start(self) -> None:
        """Run the loop on a daemon thread."""
        if self.running:
            return
        self._thread = threading.Thread(target=self.run_forever, name="earmark-sweeps", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the loop and cancel the sweep in flight."""
        self._stopped.set()
        self._pipeline.cancel.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
