"""Facade exposing the connectivity engine to the presentation shell."""

import logging
import time

import requests
from PySide6.QtCore import QThreadPool

from inetmon.classifier import describe_status
from inetmon.cycle import ProbeCycle
from inetmon.models import ConnectionStatus, EngineConfig, Metrics
from inetmon.prober import Prober, ReachabilityProbe
from inetmon.publisher import StatusListener, StatusPublisher
from inetmon.retry import RetryPolicy
from inetmon.scheduler import ProbeScheduler

logger = logging.getLogger(__name__)


class InternetMonitor:
    """Periodic internet connectivity monitor.

    Wires Prober, RetryPolicy, ProbeCycle, StatusPublisher and ProbeScheduler
    together. Must be created on the thread that runs the Qt event loop;
    status listeners are invoked on that thread.
    """

    def __init__(
        self,
        reachability_probe: ReachabilityProbe,
        config: EngineConfig | None = None,
        session: requests.Session | None = None,
        thread_pool: QThreadPool | None = None,
        sleep=time.sleep,
    ):
        config = (config if config is not None else EngineConfig()).validate()

        self.prober = Prober(
            reachability_probe, session=session, fallback_timeout_s=config.fallback_timeout_s
        )
        self.retry_policy = RetryPolicy(
            self.prober, backoff_s=config.backoff_s, retry_path=config.retry_path, sleep=sleep
        )
        self.cycle = ProbeCycle(self.prober, self.retry_policy)
        self.publisher = StatusPublisher()
        self.scheduler = ProbeScheduler(
            self.cycle, self.publisher, config=config, thread_pool=thread_pool
        )

    @property
    def config(self) -> EngineConfig:
        return self.scheduler.config

    @property
    def is_monitoring(self) -> bool:
        return self.scheduler.is_running

    def on_status_change(self, listener: StatusListener) -> StatusListener:
        """Register a callback invoked with the new ConnectionStatus on every transition."""
        return self.publisher.add_listener(listener)

    def remove_listener(self, listener: StatusListener):
        self.publisher.remove_listener(listener)

    def get_current_metrics(self) -> Metrics | None:
        return self.publisher.current_metrics()

    def get_current_status(self) -> ConnectionStatus | None:
        return self.publisher.current_status()

    def get_status_description(self) -> str:
        return describe_status(self.publisher.current_status())

    def start_monitoring(self):
        self.scheduler.start()

    def stop_monitoring(self):
        self.scheduler.stop()

    def restart_monitoring(self):
        """Stop and start again; the restart runs an immediate cycle."""
        logger.info("Restarting monitoring")
        self.scheduler.stop()
        self.scheduler.start()

    def refresh_status(self):
        self.scheduler.refresh_now()

    def apply_config(self, endpoint: str | None = None, interval: float | None = None):
        """Change endpoint and/or interval (seconds) at runtime.

        Raises:
            InvalidConfig: the values are rejected and the current config stays active
        """
        changes = {}
        if endpoint is not None:
            changes["endpoint"] = endpoint
        if interval is not None:
            changes["interval_s"] = float(interval)

        new_config = self.scheduler.config.replace(**changes)
        self.scheduler.apply_config(new_config)
