"""Tests for the simulated reachability probe."""

import pytest

from inetmon.fake_probe import FakeProbe
from inetmon.models import ProbeReply


class TestFakeProbe:
    def test_deterministic_with_seed(self):
        """Test two probes with the same seed produce identical replies."""
        first = FakeProbe(seed=42)
        second = FakeProbe(seed=42)

        for _ in range(20):
            assert first.probe("8.8.8.8", 2.0) == second.probe("8.8.8.8", 2.0)

    def test_replies_respect_invariants(self):
        """Test reachable replies carry a positive rtt and lost ones none."""
        probe = FakeProbe(seed=100, loss_probability=0.3)

        for _ in range(50):
            reply = probe.probe("8.8.8.8", 2.0)
            assert isinstance(reply, ProbeReply)
            if reply.reachable:
                assert reply.rtt_ms is not None and reply.rtt_ms > 0
            else:
                assert reply.rtt_ms is None

    def test_total_loss(self):
        probe = FakeProbe(seed=1, loss_probability=1.0)
        assert probe.probe("8.8.8.8", 2.0).reachable is False

    def test_empty_address_rejected(self):
        with pytest.raises(ValueError, match="Address cannot be empty"):
            FakeProbe().probe("", 2.0)

    def test_invalid_loss_probability(self):
        with pytest.raises(ValueError):
            FakeProbe(loss_probability=1.5)
