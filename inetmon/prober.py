"""Single-attempt connectivity probes: HTTP HEAD primary, ICMP echo fallback."""

import logging
import subprocess
import threading
import time
from typing import Protocol
from urllib.parse import urljoin

import requests

from inetmon.errors import BadStatus, NetworkFailure, Unreachable
from inetmon.models import Metrics, ProbeReply, ProbeSource, is_ipv6_literal

logger = logging.getLogger(__name__)

USER_AGENT = "inetmon/0.1"
MAX_REDIRECTS = 5
MAX_ABANDONED_ATTEMPTS = 4  # hung attempts allowed to linger on helper threads


class ReachabilityProbe(Protocol):
    """Protocol for the external one-shot echo facility used as fallback."""

    def probe(self, address: str, timeout_s: float) -> ProbeReply:
        """Send one echo request to address and report the outcome."""
        ...


def build_url(endpoint: str, path: str = "") -> str:
    """Build the https URL probed for endpoint, bracketing IPv6 literals."""
    host = f"[{endpoint}]" if is_ipv6_literal(endpoint) else endpoint
    return f"https://{host}{path}"


class Prober:
    """Executes one reachability attempt and turns it into Metrics.

    Failures are raised as ProbeError subclasses; the probe cycle decides
    whether to retry, fall back or give up.
    """

    def __init__(
        self,
        reachability_probe: ReachabilityProbe,
        session: requests.Session | None = None,
        fallback_timeout_s: float = 2.0,
        clock=time.monotonic,
    ):
        """Initialize prober.

        Args:
            reachability_probe: Fallback echo facility (PingProbe, FakeProbe, ...)
            session: HTTP session, created on demand if omitted
            fallback_timeout_s: Bounded wait for the fallback probe
            clock: Monotonic clock in seconds, injectable for tests
        """
        if fallback_timeout_s <= 0:
            raise ValueError("fallback_timeout_s must be positive")

        self.reachability_probe = reachability_probe
        self.session = session if session is not None else requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT
        self.fallback_timeout_s = fallback_timeout_s
        self._clock = clock
        self._lock = threading.Lock()
        self._abandoned = 0

    def probe_primary(
        self, endpoint: str, timeout_s: float, path: str = "", source=ProbeSource.PRIMARY
    ) -> Metrics:
        """Send a HEAD request to https://{endpoint}{path} and time it.

        The whole attempt, redirects included, runs against one wall-clock
        deadline. An attempt still running at the deadline is abandoned on its
        helper thread and reported as a NetworkFailure.

        Returns:
            Metrics with the measured latency and no loss

        Raises:
            NetworkFailure: DNS/TLS/connection error, too many redirects, or the deadline passed
            BadStatus: the final response status was outside 200-299
        """
        url = build_url(endpoint, path)
        logger.debug("HEAD %s (timeout=%.1fs)", url, timeout_s)

        with self._lock:
            if self._abandoned >= MAX_ABANDONED_ATTEMPTS:
                raise NetworkFailure(f"{self._abandoned} earlier attempts still hanging")

        started = self._clock()
        deadline = started + timeout_s
        state = {"done": False, "abandoned": False}
        finished = threading.Event()

        def attempt():
            try:
                state["status"] = self._head_following_redirects(url, deadline)
            except Exception as e:
                state["error"] = e
            finally:
                with self._lock:
                    state["done"] = True
                    if state["abandoned"]:
                        self._abandoned -= 1
                finished.set()

        threading.Thread(target=attempt, name="inetmon-head", daemon=True).start()
        finished.wait(timeout_s)

        with self._lock:
            if not state["done"]:
                state["abandoned"] = True
                self._abandoned += 1
        if state["abandoned"]:
            logger.debug("HEAD %s abandoned at the %.1fs deadline", url, timeout_s)
            raise NetworkFailure(f"attempt exceeded {timeout_s}s timeout")

        elapsed_s = self._clock() - started
        latency_ms = int(elapsed_s * 1000)

        error = state.get("error")
        if isinstance(error, requests.RequestException):
            logger.debug("HEAD %s failed after %dms: %s", url, latency_ms, error)
            raise NetworkFailure(str(error)) from error
        if error is not None:
            raise error

        if elapsed_s > timeout_s:
            logger.debug("HEAD %s exceeded timeout: %dms > %.1fs", url, latency_ms, timeout_s)
            raise NetworkFailure(f"attempt exceeded {timeout_s}s timeout")

        status_code = state["status"]
        if not 200 <= status_code <= 299:
            logger.debug("HEAD %s returned HTTP %d", url, status_code)
            raise BadStatus(status_code)

        logger.debug("HEAD %s succeeded: HTTP %d in %dms", url, status_code, latency_ms)
        return Metrics(latency_ms=latency_ms, packet_loss_pct=0, source=source)

    def _head_following_redirects(self, url: str, deadline: float) -> int:
        """Issue HEAD requests along the redirect chain; returns the final status code.

        Each hop gets only what is left of the deadline as its connect/read timeout.
        """
        for _ in range(MAX_REDIRECTS + 1):
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise requests.Timeout(f"deadline reached before HEAD {url}")

            response = self.session.head(
                url, timeout=(remaining, remaining), allow_redirects=False, stream=True
            )
            response.close()
            if not response.is_redirect:
                return response.status_code

            url = urljoin(url, response.headers["location"])
            logger.debug("Following redirect to %s", url)

        raise requests.TooManyRedirects(f"more than {MAX_REDIRECTS} redirects")

    def probe_fallback(self, address: str, timeout_s: float | None = None) -> Metrics:
        """Run one echo probe against address.

        Uses the round-trip time reported by the probe when available, the
        wall-clock duration of the invocation otherwise. timeout_s defaults
        to the prober's fallback_timeout_s.

        Raises:
            Unreachable: the probe reported failure or could not be run
        """
        if timeout_s is None:
            timeout_s = self.fallback_timeout_s

        started = self._clock()
        try:
            reply = self.reachability_probe.probe(address, timeout_s)
        except subprocess.TimeoutExpired as e:
            logger.debug("Fallback probe timed out: address=%s", address)
            raise Unreachable(f"echo probe to {address} timed out") from e
        except (OSError, ValueError) as e:
            logger.warning("Fallback probe error: address=%s, error=%s", address, e, exc_info=True)
            raise Unreachable(f"echo probe to {address} failed: {e}") from e
        measured_ms = int((self._clock() - started) * 1000)

        if not reply.reachable:
            logger.debug("Fallback probe failed: address=%s", address)
            raise Unreachable(f"{address} did not answer")

        latency_ms = int(reply.rtt_ms) if reply.rtt_ms is not None else measured_ms
        logger.debug(
            "Fallback probe succeeded: address=%s, latency=%dms (%s)",
            address,
            latency_ms,
            "reported" if reply.rtt_ms is not None else "measured",
        )
        return Metrics(latency_ms=latency_ms, packet_loss_pct=0, source=ProbeSource.FALLBACK)
