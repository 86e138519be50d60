"""Tests for RetryPolicy."""

import pytest
import requests

from fakes import FakeSession, ScriptedProbe
from inetmon.errors import BadStatus, NetworkFailure
from inetmon.models import ProbeSource
from inetmon.prober import Prober
from inetmon.retry import RetryPolicy


def make_policy(outcomes, backoff_s=0.5):
    session = FakeSession(outcomes)
    sleeps = []
    policy = RetryPolicy(
        Prober(ScriptedProbe(), session=session), backoff_s=backoff_s, sleep=sleeps.append
    )
    return policy, session, sleeps


class TestRetryPolicy:
    def test_success_on_first_attempt_does_not_retry(self):
        policy, session, sleeps = make_policy([200])

        metrics = policy.run_with_retry("apple.com", 4.0, max_retries=3)

        assert metrics.source is ProbeSource.PRIMARY
        assert len(session.calls) == 1
        assert sleeps == []

    def test_one_retry_means_two_attempts(self):
        """Test max_retries=1 makes exactly two attempts before failing."""
        policy, session, sleeps = make_policy([requests.ConnectionError("down")] * 5)

        with pytest.raises(NetworkFailure):
            policy.run_with_retry("apple.com", 4.0, max_retries=1)

        assert len(session.calls) == 2
        assert sleeps == [0.5]

    def test_zero_retries_means_one_attempt(self):
        policy, session, sleeps = make_policy([503])

        with pytest.raises(BadStatus):
            policy.run_with_retry("apple.com", 4.0, max_retries=0)

        assert len(session.calls) == 1
        assert sleeps == []

    def test_retry_uses_secondary_path_on_same_host(self):
        policy, session, _ = make_policy([requests.ConnectionError("blip"), 200])

        metrics = policy.run_with_retry("apple.com", 4.0, max_retries=1)

        assert metrics.source is ProbeSource.RETRY
        assert [call[0] for call in session.calls] == [
            "https://apple.com",
            "https://apple.com/status/200",
        ]

    def test_bad_status_is_retried(self):
        """Test non-2xx responses are retried like network failures."""
        policy, session, _ = make_policy([500, 200])

        policy.run_with_retry("apple.com", 4.0, max_retries=1)

        assert len(session.calls) == 2

    def test_last_error_is_raised(self):
        policy, _, _ = make_policy([requests.ConnectionError("down"), 404])

        with pytest.raises(BadStatus) as excinfo:
            policy.run_with_retry("apple.com", 4.0, max_retries=1)

        assert excinfo.value.code == 404

    def test_stops_at_first_success(self):
        policy, session, sleeps = make_policy([500, 500, 200, 200])

        policy.run_with_retry("apple.com", 4.0, max_retries=5)

        assert len(session.calls) == 3
        assert sleeps == [0.5, 0.5]

    def test_negative_retries_rejected(self):
        policy, _, _ = make_policy([])

        with pytest.raises(ValueError):
            policy.run_with_retry("apple.com", 4.0, max_retries=-1)

    def test_per_call_backoff_and_path(self):
        """Test backoff and retry path passed to the call win over the policy defaults."""
        policy, session, sleeps = make_policy([503, 200])

        policy.run_with_retry(
            "apple.com", 4.0, max_retries=1, backoff_s=0.2, retry_path="/generate_204"
        )

        assert sleeps == [0.2]
        assert session.calls[1][0] == "https://apple.com/generate_204"
