"""
Tests for ingestion retry policy and backoff.

Tests cover:
- Backoff growth and cap
- Retry eligibility against max_retries
- Advisory next_retry_at timestamps
"""

from datetime import datetime, timedelta, timezone

import pytest

from docflow.ingestion.jobs.retry import (
    RetryPolicy,
    calculate_backoff,
    evaluate_retry,
)


class TestBackoffCalculation:
    """Tests for calculate_backoff."""

    def test_backoff_doubles_until_cap(self):
        """retry_count 0..6 yields 1, 2, 4, 8, 16, 32, 60 minutes."""
        assert [calculate_backoff(n) for n in range(7)] == [1, 2, 4, 8, 16, 32, 60]

    def test_backoff_stays_capped(self):
        """Large retry counts never exceed 60 minutes."""
        for count in (6, 7, 10, 31, 32, 100):
            assert calculate_backoff(count) == 60

    def test_backoff_is_monotonic(self):
        """Delay never decreases as retry_count grows."""
        delays = [calculate_backoff(n) for n in range(20)]
        assert delays == sorted(delays)

    def test_custom_policy(self):
        """Policy base and cap are respected."""
        policy = RetryPolicy(base_delay_minutes=5, max_delay_minutes=30)
        assert calculate_backoff(0, policy) == 5
        assert calculate_backoff(2, policy) == 20
        assert calculate_backoff(3, policy) == 30

    def test_negative_retry_count_rejected(self):
        with pytest.raises(ValueError):
            calculate_backoff(-1)


class TestRetryDecision:
    """Tests for evaluate_retry."""

    def test_first_failure_advises_two_minutes(self):
        """A fresh job (retry_count 0) is advised to retry in 2 minutes."""
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        decision = evaluate_retry(retry_count=0, max_retries=3, now=now)

        assert decision.should_retry is True
        assert decision.delay_minutes == 2
        assert decision.next_retry_at == now + timedelta(minutes=2)

    def test_successive_failures_grow_backoff(self):
        """Each retry that fails again doubles the advised delay."""
        delays = [
            evaluate_retry(retry_count=n, max_retries=10).delay_minutes
            for n in range(7)
        ]
        assert delays == [2, 4, 8, 16, 32, 60, 60]

    def test_exhausted_retries_have_no_next_retry(self):
        """retry_count == max_retries leaves next_retry_at unset."""
        decision = evaluate_retry(retry_count=3, max_retries=3)

        assert decision.should_retry is False
        assert decision.next_retry_at is None
        assert "Max retries" in decision.reason

    def test_zero_max_retries_never_retries(self):
        decision = evaluate_retry(retry_count=0, max_retries=0)

        assert decision.should_retry is False
        assert decision.next_retry_at is None

    def test_default_now_is_current_time(self):
        before = datetime.now(timezone.utc)
        decision = evaluate_retry(retry_count=1, max_retries=3)
        after = datetime.now(timezone.utc)

        assert before + timedelta(minutes=4) <= decision.next_retry_at <= after + timedelta(minutes=4)
