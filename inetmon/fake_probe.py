"""Simulated reachability probe for tests and offline runs."""

import random

from inetmon.models import ProbeReply


class FakeProbe:
    """Generates seeded, plausible echo replies without touching the network."""

    def __init__(self, seed: int | None = None, loss_probability: float = 0.02):
        """Initialize with optional random seed for deterministic behavior."""
        if not 0.0 <= loss_probability <= 1.0:
            raise ValueError("loss_probability must be within [0, 1]")

        # Isolated random instance so concurrent users don't share state
        self._random = random.Random(seed)

        self.base_latency = 25.0
        self.latency_variance = 5.0
        self.spike_probability = 0.05
        self.spike_multiplier = 3.0
        self.loss_probability = loss_probability

    def probe(self, address: str, timeout_s: float) -> ProbeReply:
        """Return a simulated reply for address."""
        if not address or not address.strip():
            raise ValueError("Address cannot be empty")

        if self._random.random() < self.loss_probability:
            return ProbeReply(reachable=False)

        if self._random.random() < self.spike_probability:
            latency = self.base_latency * self.spike_multiplier + self._random.gauss(
                0, self.latency_variance
            )
        else:
            latency = self.base_latency + self._random.gauss(0, self.latency_variance)

        latency = max(0.1, latency)
        if latency > timeout_s * 1000:
            return ProbeReply(reachable=False)

        return ProbeReply(reachable=True, rtt_ms=round(latency, 2))
