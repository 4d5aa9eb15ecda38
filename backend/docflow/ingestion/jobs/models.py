"""
Ingestion job model for document processing orchestration.

Defines the IngestionJob model that tracks document processing jobs with:
- Per-user ownership via OwnedMixin
- Status tracking (pending|processing|completed|failed|retrying)
- Progress reporting (0-100)
- Retry tracking bounded by max_retries (0-10, default 3)
- External job id for webhook correlation

SECURITY: created_by_id is ONLY taken from the authenticated principal.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from docflow.db_base import Base
from docflow.models.base import JSONType, OwnedMixin, TimestampMixin

DEFAULT_MAX_RETRIES = 3
MAX_ALLOWED_RETRIES = 10


class JobStatus(str, enum.Enum):
    """Ingestion job status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    RETRYING = "retrying"


class ProcessingType(str, enum.Enum):
    """Kind of document processing requested by a job."""
    OCR = "ocr"
    TEXT_EXTRACTION = "text_extraction"
    DOCUMENT_CLASSIFICATION = "document_classification"
    DATA_EXTRACTION = "data_extraction"


class IngestionJob(Base, TimestampMixin, OwnedMixin):
    """
    Tracks one document processing request through its lifecycle.

    Only JobOrchestrator writes these records. Each job is executed by a
    single execution path at a time, guarded by the FAILED-only retry rule.

    Attributes:
        id: Primary key
        external_job_id: Opaque correlation id for webhooks (set once)
        name: Job name (defaults to a timestamped name)
        description: Optional description
        type: Processing type, fixed at creation
        status: pending, processing, completed, failed, retrying
        progress: 0-100
        error_message: Last error message (failed jobs)
        retry_count: Number of explicit retries so far
        max_retries: Upper bound for retry_count
        next_retry_at: Advisory time after which a retry is suggested
        parameters: Opaque processing parameters
        input_data: Document ids and metadata snapshot at trigger time
        output_data: Processing result (completed jobs)
        started_at: When execution last started
        completed_at: When the job last reached completed or failed
        created_by_id: Triggering user (from OwnedMixin)
    """

    __tablename__ = "ingestion_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    external_job_id = Column(
        String(64),
        nullable=True,
        unique=True,
        index=True,
        comment="Externally visible job id for webhook correlation"
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    type = Column(
        Enum(ProcessingType),
        nullable=False,
        comment="Processing type: ocr, text_extraction, document_classification, data_extraction"
    )

    # Status tracking
    status = Column(
        Enum(JobStatus),
        default=JobStatus.PENDING,
        nullable=False,
        index=True,
        comment="Job status: pending, processing, completed, failed, retrying"
    )
    progress = Column(
        Integer,
        default=0,
        nullable=False,
        comment="Completion percentage (0-100)"
    )
    error_message = Column(
        Text,
        nullable=True,
        comment="Last error message for failed jobs"
    )

    # Retry tracking
    retry_count = Column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of retry attempts"
    )
    max_retries = Column(
        Integer,
        default=DEFAULT_MAX_RETRIES,
        nullable=False,
        comment="Maximum retry attempts (0-10)"
    )
    next_retry_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Suggested time for the next retry (advisory)"
    )

    # Payload
    parameters = Column(
        JSONType,
        nullable=True,
        default=dict,
        comment="Processing parameters passed through to the processor"
    )
    input_data = Column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Document ids and metadata snapshot at trigger time"
    )
    output_data = Column(
        JSONType,
        nullable=True,
        comment="Processing result for completed jobs"
    )

    # Timestamps for lifecycle
    started_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the job started processing"
    )
    completed_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the job finished"
    )

    created_by = relationship("User", foreign_keys="IngestionJob.created_by_id")

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_ingestion_jobs_progress"),
        CheckConstraint("retry_count <= max_retries", name="ck_ingestion_jobs_retry_bound"),
        # Owner-scoped listing, newest first
        Index("ix_ingestion_jobs_owner_created", "created_by_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<IngestionJob("
            f"id={self.id}, "
            f"external_job_id={self.external_job_id}, "
            f"created_by_id={self.created_by_id}, "
            f"status={self.status.value if self.status else None}"
            f")>"
        )

    @property
    def is_active(self) -> bool:
        """Check if job is queued or executing."""
        return self.status in (JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.RETRYING)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def can_retry(self) -> bool:
        """Check if job can be retried (failed and under max retries)."""
        return self.status == JobStatus.FAILED and self.retry_count < self.max_retries

    @property
    def document_ids(self) -> List[int]:
        return list((self.input_data or {}).get("document_ids", []))

    @property
    def documents(self) -> List[Dict[str, Any]]:
        return list((self.input_data or {}).get("documents", []))

    def mark_processing(self) -> None:
        """Mark job as claimed for execution."""
        self.status = JobStatus.PROCESSING
        self.started_at = datetime.now(timezone.utc)

    def set_progress(self, progress: int) -> None:
        self.progress = max(0, min(100, int(progress)))

    def mark_completed(self, output_data: Optional[Dict[str, Any]] = None) -> None:
        """Mark job as completed with its result payload."""
        self.status = JobStatus.COMPLETED
        self.progress = 100
        self.output_data = output_data
        self.completed_at = datetime.now(timezone.utc)

    def mark_failed(
        self,
        error_message: str,
        next_retry_at: Optional[datetime] = None,
    ) -> None:
        """
        Mark job as failed with error details.

        Args:
            error_message: Human-readable error description
            next_retry_at: Advisory retry time (None = retries exhausted)
        """
        self.status = JobStatus.FAILED
        self.error_message = error_message
        self.next_retry_at = next_retry_at
        self.completed_at = datetime.now(timezone.utc)

    def mark_retrying(self) -> None:
        """Reset a failed job for another attempt."""
        self.status = JobStatus.RETRYING
        self.progress = 0
        self.error_message = None
        self.next_retry_at = None
        self.retry_count += 1
