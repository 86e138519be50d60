"""Exception types raised by the connectivity engine."""


class ProbeError(Exception):
    """Base class for a failed probe attempt."""


class NetworkFailure(ProbeError):
    """Transport-level failure: DNS, TLS, refused connection or timeout."""


class BadStatus(ProbeError):
    """The endpoint answered with a non-2xx status code."""

    def __init__(self, code: int):
        super().__init__(f"HTTP {code}")
        self.code = code


class Unreachable(ProbeError):
    """The fallback reachability probe failed."""


class InvalidConfig(ValueError):
    """Rejected configuration value (endpoint, interval, timeout or retries)."""
