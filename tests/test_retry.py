"""
Tests for retry logic used around collaborator calls.
"""

import pytest

from lifepath.errors import CollaboratorTimeout, CollaboratorUnavailable, ProfileNotFoundError
from lifepath.retry import RetryError, exponential_backoff, should_retry_http_status


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        calls = []

        @exponential_backoff(max_retries=3, base_delay=0)
        def load():
            calls.append(1)
            return "profile"

        assert load() == "profile"
        assert len(calls) == 1

    def test_retry_then_succeed(self):
        """A collaborator that recovers on the third attempt should succeed."""
        calls = []

        @exponential_backoff(max_retries=3, base_delay=0, exceptions=(CollaboratorUnavailable,))
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise CollaboratorUnavailable("store offline")
            return ["task"]

        assert flaky() == ["task"]
        assert len(calls) == 3

    def test_all_retries_exhausted(self):
        calls = []

        @exponential_backoff(max_retries=2, base_delay=0, exceptions=(CollaboratorTimeout,))
        def always_times_out():
            calls.append(1)
            raise CollaboratorTimeout("no answer", collaborator="task_breakdown")

        with pytest.raises(RetryError) as excinfo:
            always_times_out()

        assert len(calls) == 3  # Initial + 2 retries
        assert isinstance(excinfo.value.__cause__, CollaboratorTimeout)

    def test_zero_retries_means_one_attempt(self):
        calls = []

        @exponential_backoff(max_retries=0, base_delay=0)
        def fails():
            calls.append(1)
            raise CollaboratorUnavailable("down")

        with pytest.raises(RetryError):
            fails()
        assert len(calls) == 1

    def test_exhaustion_message_counts_attempts(self):
        @exponential_backoff(max_retries=1, base_delay=0)
        def always_fails():
            raise CollaboratorUnavailable("down")

        with pytest.raises(RetryError, match="Failed after 2 attempts: down"):
            always_fails()

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            exponential_backoff(max_retries=-1)

    def test_domain_errors_are_not_retried(self):
        """Only the listed exception types are retried; others propagate as-is."""
        calls = []

        @exponential_backoff(max_retries=3, base_delay=0, exceptions=(CollaboratorUnavailable,))
        def missing():
            calls.append(1)
            raise ProfileNotFoundError("Profile not found", profile_id="p-9")

        with pytest.raises(ProfileNotFoundError):
            missing()
        assert len(calls) == 1

    def test_exponential_delay(self, monkeypatch):
        """Delay doubles between attempts."""
        monkeypatch.setattr("lifepath.retry.time.sleep", lambda seconds: None)
        delays = []

        @exponential_backoff(
            max_retries=3,
            base_delay=0.5,
            exponential_base=2.0,
            on_retry=lambda attempt, exc, delay: delays.append((attempt, delay)),
        )
        def always_fails():
            raise CollaboratorUnavailable("down")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [(1, 0.5), (2, 1.0), (3, 2.0)]

    def test_max_delay_cap(self, monkeypatch):
        slept = []
        monkeypatch.setattr("lifepath.retry.time.sleep", slept.append)

        @exponential_backoff(max_retries=5, base_delay=1.0, max_delay=2.0, exponential_base=3.0)
        def always_fails():
            raise CollaboratorUnavailable("down")

        with pytest.raises(RetryError):
            always_fails()

        assert len(slept) == 5
        assert all(d <= 2.0 for d in slept)

    def test_zero_delay_never_sleeps(self, monkeypatch):
        slept = []
        monkeypatch.setattr("lifepath.retry.time.sleep", slept.append)

        @exponential_backoff(max_retries=2, base_delay=0)
        def always_fails():
            raise CollaboratorUnavailable("down")

        with pytest.raises(RetryError):
            always_fails()
        assert slept == []


class TestRetryableStatus:
    def test_http_status_retry_logic(self):
        """Should correctly identify retryable HTTP status codes."""
        for status in (408, 429, 500, 502, 503, 504):
            assert should_retry_http_status(status)

        for status in (200, 400, 401, 403, 404, 422):
            assert not should_retry_http_status(status)
