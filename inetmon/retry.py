"""Bounded retries of the primary probe."""

import logging
import time

from inetmon.errors import ProbeError
from inetmon.models import DEFAULT_BACKOFF_S, DEFAULT_RETRY_PATH, Metrics, ProbeSource
from inetmon.prober import Prober

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Retries the primary probe a fixed number of times with a fixed backoff.

    The first attempt hits the endpoint root; retries hit retry_path on the
    same host. max_retries counts additional attempts, so max_retries=1 means
    two attempts in total.
    """

    def __init__(
        self,
        prober: Prober,
        backoff_s: float = DEFAULT_BACKOFF_S,
        retry_path: str = DEFAULT_RETRY_PATH,
        sleep=time.sleep,
    ):
        if backoff_s < 0:
            raise ValueError("backoff_s must be >= 0")
        self.prober = prober
        self.backoff_s = backoff_s
        self.retry_path = retry_path
        self._sleep = sleep

    def run_with_retry(
        self,
        endpoint: str,
        timeout_s: float,
        max_retries: int,
        backoff_s: float | None = None,
        retry_path: str | None = None,
    ) -> Metrics:
        """Probe endpoint, retrying on failure.

        backoff_s and retry_path default to the values the policy was built with.

        Returns:
            Metrics from the first successful attempt

        Raises:
            ProbeError: the failure of the last attempt once retries are exhausted
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if backoff_s is None:
            backoff_s = self.backoff_s
        if retry_path is None:
            retry_path = self.retry_path

        try:
            return self.prober.probe_primary(endpoint, timeout_s)
        except ProbeError as e:
            last_error = e
            logger.debug("Primary attempt 1 failed: endpoint=%s, error=%s", endpoint, e)

        for retry in range(1, max_retries + 1):
            self._sleep(backoff_s)
            try:
                return self.prober.probe_primary(
                    endpoint, timeout_s, path=retry_path, source=ProbeSource.RETRY
                )
            except ProbeError as e:
                last_error = e
                logger.debug(
                    "Primary attempt %d failed: endpoint=%s, error=%s", retry + 1, endpoint, e
                )

        logger.info(
            "Primary probe exhausted after %d attempts: endpoint=%s, last_error=%s",
            max_retries + 1,
            endpoint,
            last_error,
        )
        raise last_error
