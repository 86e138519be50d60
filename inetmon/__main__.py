"""Entry point for the headless inetmon monitor."""

import logging
import os
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from inetmon.classifier import describe_status
from inetmon.config import load_config
from inetmon.fake_probe import FakeProbe
from inetmon.logging_config import configure_logging
from inetmon.monitor import InternetMonitor

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)


def build_probe():
    """Select the fallback reachability probe.

    Returns:
        (probe, user_message) where user_message is None unless a fallback happened
    """
    if os.environ.get("INETMON_PROBE", "").lower() == "fake":
        logger.info("Fake probe explicitly requested via environment variable")
        return FakeProbe(), "Using simulated fallback probe (INETMON_PROBE=fake)"

    # Step 1: Try importing the module
    try:
        from inetmon.probe_ping import PingProbe

        logger.debug("PingProbe module imported successfully")
    except ImportError as e:
        logger.warning("PingProbe unavailable: %s", e)
        return FakeProbe(), "Using simulated fallback probe (ping support unavailable)"

    # Step 2: Try instantiating
    try:
        probe = PingProbe()
        logger.info("PingProbe initialized successfully")
        return probe, None
    except PermissionError as e:
        logger.warning("Insufficient permissions for ping: %s", e)
        return FakeProbe(), "Using simulated fallback probe (permission denied)"
    except OSError as e:
        logger.warning("Ping command unavailable: %s", e)
        return FakeProbe(), "Using simulated fallback probe (ping command not available)"


def main():
    """Main entry point for the inetmon monitor."""
    app = QCoreApplication(sys.argv)

    probe, user_message = build_probe()
    if user_message:
        logger.warning(user_message)

    monitor = InternetMonitor(probe, config=load_config())

    def report(status):
        metrics = monitor.get_current_metrics()
        logger.info(
            "%s (latency=%dms, loss=%d%%)",
            describe_status(status),
            metrics.latency_ms,
            metrics.packet_loss_pct,
        )

    monitor.on_status_change(report)

    def shutdown(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        monitor.stop_monitoring()
        app.quit()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    # Wake the event loop regularly so Python signal handlers get to run
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(500)

    monitor.start_monitoring()
    exit_code = app.exec()
    monitor.scheduler.thread_pool.waitForDone(5000)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
