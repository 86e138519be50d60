"""One probe cycle: primary with retries, then fallback, then total failure."""

import logging

from inetmon.errors import ProbeError, Unreachable
from inetmon.models import EngineConfig, Metrics
from inetmon.prober import Prober
from inetmon.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ProbeCycle:
    """Runs a complete probe cycle and always returns Metrics.

    Probe errors never escape: a cycle where both strategies fail yields
    Metrics.total_failure(). Runs on a worker thread and holds no Qt state.
    """

    def __init__(self, prober: Prober, retry_policy: RetryPolicy | None = None):
        self.prober = prober
        self.retry_policy = retry_policy if retry_policy is not None else RetryPolicy(prober)

    def run(self, config: EngineConfig) -> Metrics:
        """Execute one cycle against config.endpoint."""
        try:
            return self.retry_policy.run_with_retry(
                config.endpoint,
                config.timeout_s,
                config.max_retries,
                backoff_s=config.backoff_s,
                retry_path=config.retry_path,
            )
        except ProbeError as primary_error:
            logger.warning(
                "Primary probe to %s failed (%s), trying fallback %s",
                config.endpoint,
                primary_error,
                config.fallback_address,
            )

        try:
            return self.prober.probe_fallback(config.fallback_address, config.fallback_timeout_s)
        except Unreachable as e:
            # Two different targets failed: the configured endpoint and the fallback address
            logger.warning(
                "Total failure: endpoint=%s and fallback=%s both unreachable (%s)",
                config.endpoint,
                config.fallback_address,
                e,
            )
            return Metrics.total_failure()
