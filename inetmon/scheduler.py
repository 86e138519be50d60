"""Timer-driven probe scheduler with serialized cycles."""

import logging

from PySide6.QtCore import QObject, QThreadPool, QTimer, Signal

from inetmon.cycle import ProbeCycle
from inetmon.models import EngineConfig, EngineState
from inetmon.publisher import StatusPublisher
from inetmon.workers import CycleWorker

logger = logging.getLogger(__name__)


class ProbeScheduler(QObject):
    """Runs probe cycles on a repeating timer, one at a time.

    Key features:
    - start() runs a cycle immediately, then one per interval
    - Ticks that arrive while a cycle is in flight are skipped, not queued
    - refresh_now() during an in-flight cycle is coalesced into one follow-up cycle
    - apply_config() during an in-flight cycle re-arms the timer only after
      that cycle has finished

    Thread-safe: all state access on the Qt main thread via signals/slots.
    """

    error = Signal(str)  # error message from a failed cycle worker

    def __init__(
        self,
        cycle: ProbeCycle,
        publisher: StatusPublisher,
        config: EngineConfig | None = None,
        thread_pool: QThreadPool | None = None,
        parent=None,
    ):
        """Initialize scheduler.

        Args:
            cycle: Probe cycle executed by each worker
            publisher: Receives every cycle result on the main thread
            config: Engine settings, defaults if omitted
            thread_pool: Pool for cycle workers, the global pool if omitted
            parent: Qt parent object
        """
        super().__init__(parent)

        self.cycle = cycle
        self.publisher = publisher
        self.config = (config if config is not None else EngineConfig()).validate()

        self.state = EngineState.STOPPED

        # Overlap guard and deferred work
        self._in_flight = False
        self._refresh_pending = False
        self._restart_pending = False
        self._current_worker = None

        # Diagnostics
        self._cycle_id = 0
        self._cycles_completed = 0
        self._ticks_skipped = 0

        self.thread_pool = thread_pool if thread_pool is not None else QThreadPool.globalInstance()

        self.timer = QTimer(self)
        self.timer.timeout.connect(self._on_tick)

    @property
    def is_running(self) -> bool:
        return self.state is EngineState.RUNNING

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def start(self):
        """Arm the timer and run one cycle right away. Restarts if already running."""
        if self.is_running:
            self.stop()

        self.state = EngineState.RUNNING
        self.timer.start(self.config.interval_ms)
        logger.info(
            "Monitoring started: endpoint=%s, interval=%.1fs",
            self.config.endpoint,
            self.config.interval_s,
        )

        self._request_cycle("start")

    def stop(self):
        """Disarm the timer and drop deferred cycles.

        An in-flight cycle may still finish and publish once.
        """
        self._restart_pending = False
        self._refresh_pending = False
        if not self.is_running:
            return

        self.timer.stop()
        self.state = EngineState.STOPPED
        logger.info("Monitoring stopped")

    def refresh_now(self):
        """Run one cycle outside the schedule without touching the timer phase."""
        self._request_cycle("refresh")

    def apply_config(self, config: EngineConfig):
        """Replace the configuration and restart the schedule if running.

        Raises:
            InvalidConfig: config is rejected and the previous one stays active
        """
        config.validate()
        self.config = config
        logger.info(
            "Config applied: endpoint=%s, interval=%.1fs, timeout=%.1fs, max_retries=%d",
            config.endpoint,
            config.interval_s,
            config.timeout_s,
            config.max_retries,
        )

        if not self.is_running:
            return

        if self._in_flight:
            # Let the running cycle finish before arming the new timer
            self.timer.stop()
            self._restart_pending = True
            logger.debug("Restart deferred until cycle %d finishes", self._cycle_id)
            return

        self.stop()
        self.start()

    def _on_tick(self):
        """Handle timer tick - start a cycle unless one is still running."""
        if not self.is_running:
            return

        if self._in_flight:
            self._ticks_skipped += 1
            logger.debug("Tick skipped: cycle %d still in flight", self._cycle_id)
            return

        self._start_cycle("tick")

    def _request_cycle(self, reason: str):
        if self._in_flight:
            self._refresh_pending = True
            logger.debug("Cycle request (%s) coalesced behind cycle %d", reason, self._cycle_id)
            return
        self._start_cycle(reason)

    def _start_cycle(self, reason: str):
        """Hand one probe cycle to the thread pool."""
        self._cycle_id += 1
        self._in_flight = True

        worker = CycleWorker(self.cycle, self.config, self._cycle_id)
        worker.signals.cycle_ready.connect(self._on_cycle_ready)
        worker.signals.error.connect(self._on_cycle_error)
        worker.signals.finished.connect(self._on_cycle_finished)
        self._current_worker = worker

        logger.debug("Cycle %d scheduled (%s)", self._cycle_id, reason)
        self.thread_pool.start(worker)

    def _on_cycle_ready(self, metrics, cycle_id):
        """Publish a cycle result. Runs on the main thread."""
        self._cycles_completed += 1
        self.publisher.record(metrics)

    def _on_cycle_error(self, error_msg, cycle_id):
        logger.error("Cycle %d failed unexpectedly: %s", cycle_id, error_msg)
        self.error.emit(error_msg)

    def _on_cycle_finished(self, cycle_id):
        """Clear the in-flight flag and run any deferred restart or refresh."""
        self._in_flight = False
        self._current_worker = None

        if self._restart_pending:
            self._restart_pending = False
            self._refresh_pending = False
            if self.is_running:
                self.stop()
                self.start()
            return

        if self._refresh_pending:
            self._refresh_pending = False
            self._start_cycle("deferred refresh")

    def get_stats(self):
        """Get scheduler statistics.

        Returns:
            Dict with scheduler state info
        """
        return {
            "state": self.state.value,
            "interval_s": self.config.interval_s,
            "in_flight": self._in_flight,
            "cycles_started": self._cycle_id,
            "cycles_completed": self._cycles_completed,
            "ticks_skipped": self._ticks_skipped,
        }
