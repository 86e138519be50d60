"""Data models for the connectivity engine."""

import ipaddress
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from inetmon.errors import InvalidConfig

FAILURE_LATENCY_MS = -1  # latency sentinel: not measured
TOTAL_LOSS_PCT = 100

DEFAULT_ENDPOINT = "apple.com"
DEFAULT_INTERVAL_S = 5.0
MIN_INTERVAL_S = 1.0
DEFAULT_TIMEOUT_S = 4.0
DEFAULT_MAX_RETRIES = 1
DEFAULT_RETRY_PATH = "/status/200"
DEFAULT_BACKOFF_S = 0.5
DEFAULT_FALLBACK_ADDRESS = "8.8.8.8"
DEFAULT_FALLBACK_TIMEOUT_S = 2.0


class ConnectionStatus(Enum):
    """Classified connection quality."""

    CONNECTED = "connected"
    UNSTABLE = "unstable"
    DISCONNECTED = "disconnected"


class EngineState(Enum):
    """Run state of the probe scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"


class ProbeSource(Enum):
    """Which probing strategy produced a Metrics value."""

    PRIMARY = "primary"
    RETRY = "retry"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class Metrics:
    """Outcome of one completed probe cycle."""

    latency_ms: int  # FAILURE_LATENCY_MS when nothing was measured
    packet_loss_pct: int
    captured_at: datetime = field(default_factory=datetime.now)
    source: ProbeSource = ProbeSource.PRIMARY

    def __post_init__(self):
        """Reject loss percentages outside [0, 100]."""
        if not 0 <= self.packet_loss_pct <= TOTAL_LOSS_PCT:
            raise ValueError(f"packet_loss_pct out of range: {self.packet_loss_pct}")

    @classmethod
    def total_failure(cls) -> "Metrics":
        """Metrics for a cycle where every probe failed."""
        return cls(
            latency_ms=FAILURE_LATENCY_MS,
            packet_loss_pct=TOTAL_LOSS_PCT,
            source=ProbeSource.NONE,
        )

    @property
    def is_total_failure(self) -> bool:
        return self.packet_loss_pct >= TOTAL_LOSS_PCT


@dataclass(frozen=True)
class ProbeReply:
    """Answer from an external reachability probe."""

    reachable: bool
    rtt_ms: float | None = None  # None when the round-trip time was not reported


@dataclass(frozen=True)
class EngineConfig:
    """Settings read by the scheduler and the probe cycle.

    Instances are immutable; use replace() to derive a changed copy. Both
    validate() and replace() raise InvalidConfig for unusable values.
    """

    endpoint: str = DEFAULT_ENDPOINT
    interval_s: float = DEFAULT_INTERVAL_S
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_path: str = DEFAULT_RETRY_PATH
    backoff_s: float = DEFAULT_BACKOFF_S
    fallback_address: str = DEFAULT_FALLBACK_ADDRESS
    fallback_timeout_s: float = DEFAULT_FALLBACK_TIMEOUT_S

    @property
    def interval_ms(self) -> int:
        return int(self.interval_s * 1000)

    def validate(self) -> "EngineConfig":
        """Check every field and return self.

        Raises:
            InvalidConfig: if any value is unusable
        """
        validate_endpoint(self.endpoint)
        if self.interval_s < MIN_INTERVAL_S:
            raise InvalidConfig(
                f"interval must be at least {MIN_INTERVAL_S}s, got {self.interval_s}"
            )
        if self.timeout_s <= 0:
            raise InvalidConfig(f"timeout must be positive, got {self.timeout_s}")
        if self.max_retries < 0:
            raise InvalidConfig(f"max_retries must be >= 0, got {self.max_retries}")
        if self.backoff_s < 0:
            raise InvalidConfig(f"backoff must be >= 0, got {self.backoff_s}")
        if self.fallback_timeout_s <= 0:
            raise InvalidConfig(
                f"fallback timeout must be positive, got {self.fallback_timeout_s}"
            )
        if not self.retry_path.startswith("/"):
            raise InvalidConfig(f"retry_path must start with '/', got {self.retry_path!r}")
        return self

    def replace(self, **changes) -> "EngineConfig":
        """Return a validated copy with the given fields changed."""
        return replace(self, **changes).validate()


def validate_endpoint(endpoint: str) -> str:
    """Check that endpoint is a bare hostname or IP literal.

    Returns:
        The endpoint unchanged

    Raises:
        InvalidConfig: for empty values, URLs, paths or embedded whitespace
    """
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise InvalidConfig("endpoint cannot be empty")
    if endpoint != endpoint.strip() or any(ch.isspace() for ch in endpoint):
        raise InvalidConfig(f"endpoint contains whitespace: {endpoint!r}")
    if "://" in endpoint or "/" in endpoint:
        raise InvalidConfig(f"endpoint must be a host name, not a URL: {endpoint!r}")
    if is_ipv6_literal(endpoint):
        return endpoint
    if ":" in endpoint:
        host, _, port = endpoint.rpartition(":")
        if not host or not port.isdigit():
            raise InvalidConfig(f"malformed endpoint: {endpoint!r}")
    return endpoint


def is_ipv6_literal(value: str) -> bool:
    """Return True if value parses as an IPv6 address."""
    try:
        return isinstance(ipaddress.ip_address(value), ipaddress.IPv6Address)
    except ValueError:
        return False
