"""
Retry policy and backoff calculation for ingestion jobs.

Retries are explicit: a FAILED job is re-run only when its owner calls
retry_job (or an external system reports a new status). The backoff
computed here is stored as next_retry_at, an advisory timestamp telling
the caller when a retry is reasonable.

Backoff formula: min(2^retry_count, 60) minutes
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

# Retry configuration constants
BASE_DELAY_MINUTES = 1
MAX_DELAY_MINUTES = 60


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy configuration.

    Attributes:
        base_delay_minutes: Delay for retry_count 0, doubled per retry
        max_delay_minutes: Maximum delay cap
    """
    base_delay_minutes: int = BASE_DELAY_MINUTES
    max_delay_minutes: int = MAX_DELAY_MINUTES


@dataclass
class RetryDecision:
    """
    Result of retry evaluation after a failure.

    Attributes:
        should_retry: Whether retries remain (retry_count < max_retries)
        delay_minutes: Suggested wait before retrying (0 when exhausted)
        next_retry_at: Absolute advisory timestamp, None when exhausted
        reason: Human-readable explanation
    """
    should_retry: bool
    delay_minutes: int
    next_retry_at: Optional[datetime]
    reason: str


def calculate_backoff(
    retry_count: int,
    policy: RetryPolicy = RetryPolicy(),
) -> int:
    """
    Calculate backoff delay in minutes.

    Formula: min(base * 2^retry_count, max_delay)

    >>> [calculate_backoff(n) for n in range(7)]
    [1, 2, 4, 8, 16, 32, 60]
    """
    if retry_count < 0:
        raise ValueError("retry_count must be non-negative")

    # Cap before exponentiating large counts
    if retry_count >= 32:
        return policy.max_delay_minutes

    return min(policy.base_delay_minutes * (2 ** retry_count), policy.max_delay_minutes)


def evaluate_retry(
    retry_count: int,
    max_retries: int,
    policy: RetryPolicy = RetryPolicy(),
    now: Optional[datetime] = None,
) -> RetryDecision:
    """
    Decide whether a failed job remains retryable and when.

    The delay is computed for the attempt a retry would start, i.e.
    retry_count + 1, so a fresh job failing for the first time is
    advised to retry in 2 minutes, then 4, 8, ... up to 60.

    Args:
        retry_count: Retries already performed on the job
        max_retries: Retry budget of the job
        policy: Retry policy configuration
        now: Reference time (defaults to current UTC time)

    Returns:
        RetryDecision with next_retry_at set only when retries remain
    """
    if retry_count >= max_retries:
        return RetryDecision(
            should_retry=False,
            delay_minutes=0,
            next_retry_at=None,
            reason=f"Max retries ({max_retries}) reached",
        )

    now = now or datetime.now(timezone.utc)
    delay = calculate_backoff(retry_count + 1, policy)

    return RetryDecision(
        should_retry=True,
        delay_minutes=delay,
        next_retry_at=now + timedelta(minutes=delay),
        reason=f"Retry {retry_count + 1}/{max_retries} advised in {delay}m",
    )


def log_retry_decision(
    job_id: int,
    owner_id: int,
    decision: RetryDecision,
) -> None:
    """
    Log retry decision for observability.

    Args:
        job_id: Job identifier
        owner_id: Owning user identifier
        decision: Retry decision made
    """
    log_extra = {
        "job_id": job_id,
        "owner_id": owner_id,
        "should_retry": decision.should_retry,
        "delay_minutes": decision.delay_minutes,
        "reason": decision.reason,
    }

    if decision.next_retry_at:
        log_extra["next_retry_at"] = decision.next_retry_at.isoformat()

    if decision.should_retry:
        logger.info("ingestion.retry_advised", extra=log_extra)
    else:
        logger.warning("ingestion.retries_exhausted", extra=log_extra)
