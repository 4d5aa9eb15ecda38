"""
Ingestion job exceptions.

InvalidRequestError, JobNotFoundError and AccessDeniedError are raised
synchronously to the caller of JobOrchestrator operations. ProcessingFailure
only exists inside job execution and is always recorded as job state.
"""

from typing import Optional


class IngestionError(Exception):
    """Base exception for ingestion job errors."""

    def __init__(self, message: str, job_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, job_id={self.job_id})"


class InvalidRequestError(IngestionError):
    """Raised when a trigger or retry request cannot be honored."""


class JobNotFoundError(IngestionError):
    """Raised when a job does not exist."""

    def __init__(self, message: str = "Ingestion job not found", **kwargs):
        super().__init__(message, **kwargs)


class AccessDeniedError(IngestionError):
    """Raised when a job or its documents belong to another user."""

    def __init__(self, message: str = "Access denied to this ingestion job", **kwargs):
        super().__init__(message, **kwargs)


class ProcessingFailure(IngestionError):
    """Raised inside job execution when processing cannot complete."""
