"""Worker classes for running probe cycles off the event-loop thread."""

import logging

from PySide6.QtCore import QObject, QRunnable, Signal

from inetmon.cycle import ProbeCycle
from inetmon.models import EngineConfig

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals for communicating between worker threads and main thread."""

    cycle_ready = Signal(object, int)  # Emits (Metrics, cycle_id)
    error = Signal(str, int)  # Emits (error message, cycle_id)
    finished = Signal(int)  # Emits cycle_id when worker completes


class CycleWorker(QRunnable):
    """Worker that executes ProbeCycle.run() in a background thread."""

    def __init__(self, cycle: ProbeCycle, config: EngineConfig, cycle_id: int):
        super().__init__()
        self.cycle = cycle
        self.config = config
        self.cycle_id = cycle_id
        self.signals = WorkerSignals()

    def run(self):
        """Execute the probe cycle in background thread."""
        try:
            logger.debug(
                "Cycle starting: cycle_id=%d, endpoint=%s", self.cycle_id, self.config.endpoint
            )

            # May block for several timeouts when the network is down
            metrics = self.cycle.run(self.config)

            self.signals.cycle_ready.emit(metrics, self.cycle_id)

            logger.debug(
                "Cycle completed: cycle_id=%d, latency=%dms, loss=%d%%",
                self.cycle_id,
                metrics.latency_ms,
                metrics.packet_loss_pct,
            )

        except Exception as e:
            logger.exception("Cycle exception: cycle_id=%d, error=%s", self.cycle_id, str(e))
            self.signals.error.emit(str(e), self.cycle_id)

        finally:
            # Always signal completion
            self.signals.finished.emit(self.cycle_id)
