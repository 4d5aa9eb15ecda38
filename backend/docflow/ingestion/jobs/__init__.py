"""
Ingestion job orchestration.

Provides:
- IngestionJob model with status, progress and retry tracking
- JobStore for persistence
- JobExecutor for fire-and-forget execution
- Retry policy with capped exponential backoff

The state machine itself lives in docflow.ingestion.jobs.orchestrator.
"""

from docflow.ingestion.jobs.models import IngestionJob, JobStatus, ProcessingType
from docflow.ingestion.jobs.exceptions import (
    IngestionError,
    InvalidRequestError,
    JobNotFoundError,
    AccessDeniedError,
    ProcessingFailure,
)
from docflow.ingestion.jobs.retry import (
    RetryPolicy,
    RetryDecision,
    calculate_backoff,
    evaluate_retry,
)
from docflow.ingestion.jobs.store import JobStore
from docflow.ingestion.jobs.executor import JobExecutor, get_job_executor

__all__ = [
    "IngestionJob",
    "JobStatus",
    "ProcessingType",
    "IngestionError",
    "InvalidRequestError",
    "JobNotFoundError",
    "AccessDeniedError",
    "ProcessingFailure",
    "RetryPolicy",
    "RetryDecision",
    "calculate_backoff",
    "evaluate_retry",
    "JobStore",
    "JobExecutor",
    "get_job_executor",
]
