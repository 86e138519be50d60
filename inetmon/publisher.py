"""Last-known status holder with change notification."""

import logging
from typing import Callable

from PySide6.QtCore import QObject, Signal

from inetmon.classifier import evaluate
from inetmon.models import ConnectionStatus, Metrics

logger = logging.getLogger(__name__)

StatusListener = Callable[[ConnectionStatus], None]


class StatusPublisher(QObject):
    """Holds the latest Metrics/status and notifies listeners on transitions.

    record() is only called on the thread that owns this object (the Qt main
    thread); worker results reach it through queued signals, so no locking is
    needed.
    """

    status_changed = Signal(object)  # ConnectionStatus
    metrics_updated = Signal(object)  # Metrics

    def __init__(self, parent=None):
        super().__init__(parent)
        self._listeners: list[StatusListener] = []
        self._status: ConnectionStatus | None = None
        self._metrics: Metrics | None = None

    def add_listener(self, listener: StatusListener) -> StatusListener:
        """Register listener; returns it so it can be removed later."""
        self._listeners.append(listener)
        return listener

    def remove_listener(self, listener: StatusListener):
        """Unregister listener. Unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug("remove_listener: listener not registered")

    def record(self, metrics: Metrics):
        """Store metrics and notify listeners if the status changed."""
        new_status = evaluate(metrics)
        self._metrics = metrics
        self.metrics_updated.emit(metrics)

        if new_status == self._status:
            return

        previous = self._status
        self._status = new_status
        logger.info(
            "Status changed: %s -> %s (latency=%dms, loss=%d%%)",
            previous.value if previous else "unknown",
            new_status.value,
            metrics.latency_ms,
            metrics.packet_loss_pct,
        )

        for listener in list(self._listeners):
            try:
                listener(new_status)
            except Exception:
                logger.exception("Status listener %r failed", listener)

        self.status_changed.emit(new_status)

    def current_status(self) -> ConnectionStatus | None:
        return self._status

    def current_metrics(self) -> Metrics | None:
        return self._metrics
