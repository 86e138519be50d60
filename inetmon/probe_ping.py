"""ICMP echo reachability probe using the system ping command."""

import logging
import platform
import re
import shutil
import subprocess
from math import ceil

from inetmon.models import ProbeReply

logger = logging.getLogger(__name__)

_LESS_THAN_PATTERN = re.compile(r"time<(\d+)", re.IGNORECASE)
_LATENCY_PATTERN = re.compile(r"time\s*[=<]\s*(\d+(?:\.\d+)?)\s*ms", re.IGNORECASE)


def parse_ping_latency_ms(output: str) -> float | None:
    """Parse the round-trip time from ping command output (pure function).

    Handles the usual formats:
    - Linux/macOS: "time=12.3 ms"
    - Windows: "time=12ms" or "time<1ms"

    Windows "time<Nms" is interpreted as N/2 ms, so "time<1ms" => 0.5.

    Args:
        output: Raw ping output (stdout, or stdout+stderr combined)

    Returns:
        Latency in milliseconds, or None if no time was found

    Examples:
        >>> parse_ping_latency_ms("time=12.3 ms")
        12.3
        >>> parse_ping_latency_ms("time<1ms")
        0.5
        >>> parse_ping_latency_ms("Request timed out.")
    """
    if not output:
        return None

    match = _LESS_THAN_PATTERN.search(output)
    if match:
        return float(match.group(1)) / 2.0

    match = _LATENCY_PATTERN.search(output)
    if match:
        try:
            return float(match.group(1))
        except (ValueError, IndexError):
            return None

    return None


class PingProbe:
    """Reachability probe that sends one echo request with the OS ping tool.

    Parsing relies on the English keyword "time"; on localized systems the
    round-trip time is reported as None and the caller measures the
    invocation duration instead. Reachability itself comes from the exit
    code, so it is unaffected by the locale.
    """

    def __init__(self, executable: str = "ping"):
        """Locate the ping executable.

        Raises:
            OSError: if no ping command is available on PATH
        """
        resolved = shutil.which(executable)
        if resolved is None:
            raise OSError(f"ping command not found: {executable}")

        self.executable = resolved
        self.system = platform.system()

        logger.debug("PingProbe initialized: executable=%s, system=%s", resolved, self.system)

    def probe(self, address: str, timeout_s: float) -> ProbeReply:
        """Send a single echo request to address.

        Raises:
            ValueError: if timeout_s is not positive
            OSError: if the ping process could not be started
            subprocess.TimeoutExpired: if ping outlived its time budget
        """
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        if not address or not address.strip():
            return ProbeReply(reachable=False)

        cmd = self._build_ping_command(address, timeout_s)
        logger.debug("Executing ping: address=%s, timeout=%.1fs", address, timeout_s)

        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout_s + 0.5,  # let ping report its own timeout first
            shell=False,
        )

        logger.debug("Ping completed: address=%s, returncode=%d", address, result.returncode)

        if result.returncode != 0:
            return ProbeReply(reachable=False)

        rtt = parse_ping_latency_ms(result.stdout)
        if rtt is None:
            logger.debug(
                "No round-trip time in ping output: address=%s, output_preview=%s",
                address,
                result.stdout[:100] if result.stdout else "(empty)",
            )
        return ProbeReply(reachable=True, rtt_ms=rtt)

    def _build_ping_command(self, address: str, timeout_s: float) -> list[str]:
        """Build the platform-specific ping command line."""
        if self.system == "Windows":
            return [self.executable, "-n", "1", "-w", str(int(timeout_s * 1000)), address]

        if self.system == "Linux":
            wait_secs = max(1, ceil(timeout_s))
            return [self.executable, "-c", "1", "-W", str(wait_secs), address]

        # macOS/BSD: -W means something different there, rely on the subprocess timeout
        return [self.executable, "-c", "1", address]
