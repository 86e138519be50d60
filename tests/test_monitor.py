"""End-to-end tests for the InternetMonitor facade."""

import pytest
import requests
from PySide6.QtCore import QThreadPool

from fakes import FakeSession, ScriptedProbe, no_sleep, pump_until
from inetmon.errors import InvalidConfig
from inetmon.models import ConnectionStatus, ProbeReply
from inetmon.monitor import InternetMonitor


@pytest.fixture
def make_monitor(qapp):
    monitors = []

    def factory(outcomes=None, replies=None, default_status=200):
        monitor = InternetMonitor(
            ScriptedProbe(replies),
            session=FakeSession(outcomes, default=default_status),
            thread_pool=QThreadPool(),
            sleep=no_sleep,
        )
        monitors.append(monitor)
        return monitor

    yield factory
    for monitor in monitors:
        monitor.stop_monitoring()
        monitor.scheduler.thread_pool.waitForDone(5000)


class TestInternetMonitor:
    def test_unknown_before_first_cycle(self, make_monitor):
        monitor = make_monitor()

        assert monitor.get_current_status() is None
        assert monitor.get_current_metrics() is None
        assert monitor.get_status_description() == "Status unknown"
        assert not monitor.is_monitoring

    def test_start_reports_connected(self, qapp, make_monitor):
        monitor = make_monitor()
        seen = []
        monitor.on_status_change(seen.append)

        monitor.start_monitoring()

        assert pump_until(qapp, lambda: seen != [])
        assert seen == [ConnectionStatus.CONNECTED]
        assert monitor.get_current_metrics().packet_loss_pct == 0
        assert monitor.get_status_description() == "Internet connection is active"

    def test_fallback_success_keeps_connected(self, qapp, make_monitor):
        """Test a reachable fallback keeps the host online when HTTP is blocked."""
        monitor = make_monitor(
            outcomes=[requests.ConnectionError("blocked")] * 2,
            replies=[ProbeReply(reachable=True, rtt_ms=40.0)],
        )

        monitor.refresh_status()

        assert pump_until(qapp, lambda: monitor.get_current_status() is not None)
        assert monitor.get_current_status() is ConnectionStatus.CONNECTED
        assert monitor.get_current_metrics().latency_ms == 40

    def test_total_failure_reports_disconnected(self, qapp, make_monitor):
        monitor = make_monitor(default_status=503)
        seen = []
        monitor.on_status_change(seen.append)

        monitor.start_monitoring()

        assert pump_until(qapp, lambda: seen != [])
        assert seen == [ConnectionStatus.DISCONNECTED]
        metrics = monitor.get_current_metrics()
        assert (metrics.latency_ms, metrics.packet_loss_pct) == (-1, 100)
        assert monitor.is_monitoring

    def test_apply_config_changes_endpoint(self, qapp, make_monitor):
        monitor = make_monitor()
        monitor.start_monitoring()
        pump_until(qapp, lambda: monitor.get_current_status() is not None)

        monitor.apply_config(endpoint="example.com", interval=10)

        assert monitor.config.endpoint == "example.com"
        assert monitor.scheduler.timer.interval() == 10000
        session = monitor.prober.session
        assert pump_until(qapp, lambda: len(session.calls) == 2)
        assert session.calls[-1][0] == "https://example.com"

    def test_apply_invalid_config_rejected(self, make_monitor):
        monitor = make_monitor()

        with pytest.raises(InvalidConfig):
            monitor.apply_config(interval=0)
        with pytest.raises(InvalidConfig):
            monitor.apply_config(endpoint="")

        assert monitor.config.endpoint == "apple.com"
        assert monitor.config.interval_s == 5.0

    def test_remove_listener(self, qapp, make_monitor):
        monitor = make_monitor()
        seen = []
        monitor.on_status_change(seen.append)
        monitor.remove_listener(seen.append)

        monitor.refresh_status()

        assert pump_until(qapp, lambda: monitor.get_current_status() is not None)
        assert seen == []

    def test_restart_monitoring(self, qapp, make_monitor):
        monitor = make_monitor()
        monitor.start_monitoring()
        pump_until(qapp, lambda: not monitor.scheduler.in_flight)

        monitor.restart_monitoring()

        assert monitor.is_monitoring
        assert pump_until(qapp, lambda: monitor.scheduler.get_stats()["cycles_completed"] == 2)
