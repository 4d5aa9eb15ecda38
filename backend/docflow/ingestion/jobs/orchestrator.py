"""
Job orchestrator for document ingestion.

Owns the ingestion job state machine and is the only writer of
IngestionJob records:

    PENDING -> PROCESSING -> COMPLETED
                          -> FAILED -> RETRYING -> PROCESSING -> ...

Handles:
- Triggering jobs for a validated set of documents
- Fire-and-forget execution with progress reporting
- Explicit retries bounded by max_retries, with advisory backoff
- Status pushes from external processors (webhook)

Execution does its database reads and commits through the loop's default
thread pool so progress writes never block other requests. The session
is only ever touched by one call at a time.

SECURITY: Every query and mutation is scoped to the owning user unless
the caller passes privileged=True (admin).
"""

import asyncio
import logging
import math
import secrets
import string
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy.orm import Session

from docflow.config.settings import get_settings
from docflow.documents.validator import DocumentValidator
from docflow.ingestion.jobs.exceptions import (
    AccessDeniedError,
    InvalidRequestError,
    JobNotFoundError,
    ProcessingFailure,
)
from docflow.ingestion.jobs.executor import JobExecutor, get_job_executor
from docflow.ingestion.jobs.models import (
    DEFAULT_MAX_RETRIES,
    MAX_ALLOWED_RETRIES,
    IngestionJob,
    JobStatus,
    ProcessingType,
)
from docflow.ingestion.jobs.retry import RetryPolicy, evaluate_retry, log_retry_decision
from docflow.ingestion.jobs.store import JobStore
from docflow.processing.service import DocumentInfo, ProcessingRoutine, ProcessingService

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_STEPS = 10
EXTERNAL_ID_PREFIX = "ext_job_"
EXTERNAL_ID_SUFFIX_LENGTH = 9
MAX_EXTERNAL_ID_ATTEMPTS = 5

_BASE36_ALPHABET = string.digits + string.ascii_lowercase

# Processing type -> processing routine (1:1)
_ROUTINES = {
    ProcessingType.OCR: ProcessingRoutine.OCR,
    ProcessingType.TEXT_EXTRACTION: ProcessingRoutine.TEXT_EXTRACTION,
    ProcessingType.DOCUMENT_CLASSIFICATION: ProcessingRoutine.CLASSIFICATION,
    ProcessingType.DATA_EXTRACTION: ProcessingRoutine.DATA_EXTRACTION,
}

# External status tokens (case-sensitive); anything else is FAILED
_EXTERNAL_STATUSES = {
    "pending": JobStatus.PENDING,
    "processing": JobStatus.PROCESSING,
    "completed": JobStatus.COMPLETED,
    "failed": JobStatus.FAILED,
}


@dataclass
class TriggerRequest:
    """Request to process a set of documents."""
    type: ProcessingType
    document_ids: List[int]
    name: Optional[str] = None
    description: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    max_retries: int = DEFAULT_MAX_RETRIES


@dataclass
class StatusUpdate:
    """Status pushed by an external processor."""
    status: str
    progress: Optional[int] = None
    error_message: Optional[str] = None
    output_data: Optional[Dict[str, Any]] = None


@dataclass
class JobPage:
    """One page of jobs, newest first."""
    jobs: List[IngestionJob]
    total: int
    page: int
    limit: int
    total_pages: int


def map_external_status(token: str) -> JobStatus:
    """Map an external status token to JobStatus (unknown -> FAILED)."""
    return _EXTERNAL_STATUSES.get(token, JobStatus.FAILED)


def generate_external_job_id(now: Optional[datetime] = None) -> str:
    """Build ext_job_<epoch ms>_<9 base36 chars>."""
    now = now or datetime.now(timezone.utc)
    suffix = "".join(
        secrets.choice(_BASE36_ALPHABET) for _ in range(EXTERNAL_ID_SUFFIX_LENGTH)
    )
    return f"{EXTERNAL_ID_PREFIX}{int(now.timestamp() * 1000)}_{suffix}"


class JobOrchestrator:
    """
    Drives ingestion jobs through their lifecycle.

    Responsibilities:
    - Validate documents and create jobs
    - Hand jobs to the executor and run them (progress, result, failure)
    - Enforce retry rules and compute advisory backoff
    - Apply external status updates

    Execution errors never escape process_job; they become FAILED jobs.
    """

    def __init__(
        self,
        db_session: Session,
        processing_service: Optional[ProcessingService] = None,
        executor: Optional[JobExecutor] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        retry_policy: RetryPolicy = RetryPolicy(),
        progress_steps: int = DEFAULT_PROGRESS_STEPS,
        step_delay_seconds: Optional[float] = None,
    ):
        """
        Initialize job orchestrator.

        Args:
            db_session: Session for the calling request
            processing_service: Processing invoker (creates default if not provided)
            executor: Background executor (process-wide executor if not provided)
            session_factory: Creates sessions for background execution;
                when None, execution reuses db_session
            retry_policy: Backoff configuration
            progress_steps: Number of progress increments per execution
            step_delay_seconds: Pause between progress increments
                (INGESTION_STEP_DELAY_SECONDS if not provided)
        """
        if progress_steps < 1:
            raise ValueError("progress_steps must be at least 1")

        self.db = db_session
        self.store = JobStore(db_session)
        self.validator = DocumentValidator(db_session)
        self._processing_service = processing_service
        self.executor = executor or get_job_executor()
        self.session_factory = session_factory
        self.retry_policy = retry_policy
        self.progress_steps = progress_steps
        if step_delay_seconds is None:
            step_delay_seconds = get_settings().ingestion_step_delay_seconds
        self.step_delay_seconds = step_delay_seconds

    @property
    def processing_service(self) -> ProcessingService:
        if self._processing_service is None:
            self._processing_service = ProcessingService()
        return self._processing_service

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def trigger(self, request: TriggerRequest, owner_id: int) -> IngestionJob:
        """
        Create a job for a set of documents and start it in the background.

        Args:
            request: Processing type, document ids and options
            owner_id: Triggering user

        Returns:
            The new job (PENDING, with external_job_id)

        Raises:
            InvalidRequestError: Bad type, retry budget or document set
            AccessDeniedError: A document belongs to another user
        """
        try:
            processing_type = ProcessingType(request.type)
        except ValueError:
            raise InvalidRequestError(f"Unsupported processing type: {request.type}")

        max_retries = request.max_retries
        if max_retries is None:
            max_retries = DEFAULT_MAX_RETRIES
        if not 0 <= max_retries <= MAX_ALLOWED_RETRIES:
            raise InvalidRequestError(
                f"max_retries must be between 0 and {MAX_ALLOWED_RETRIES}"
            )

        documents = self.validator.resolve(request.document_ids, owner_id)
        snapshots = [doc.to_snapshot() for doc in documents]

        now = datetime.now(timezone.utc)
        job = IngestionJob(
            name=request.name or f"Ingestion Job {now.isoformat()}",
            description=request.description,
            type=processing_type,
            status=JobStatus.PENDING,
            progress=0,
            retry_count=0,
            max_retries=max_retries,
            parameters=dict(request.parameters or {}),
            input_data={
                "document_ids": [doc.id for doc in documents],
                "documents": snapshots,
            },
            created_by_id=owner_id,
        )
        self.store.add(job)

        job.external_job_id = self._new_external_job_id()
        self.store.save(job)

        logger.info(
            "ingestion.job_triggered",
            extra={
                "job_id": job.id,
                "external_job_id": job.external_job_id,
                "owner_id": owner_id,
                "type": processing_type.value,
                "document_count": len(documents),
                "max_retries": max_retries,
            },
        )

        # Re-read before scheduling: threaded execution may start at once
        job = self.store.get(job.id)
        self._schedule(job.id, snapshots)
        return job

    def find_all(
        self,
        owner_id: int,
        page: int = 1,
        limit: int = 10,
        privileged: bool = False,
    ) -> JobPage:
        """
        List jobs newest first.

        Args:
            owner_id: Requesting user
            page: 1-based page number
            limit: Page size
            privileged: List every user's jobs (admin)

        Raises:
            InvalidRequestError: If page or limit is below 1
        """
        if page < 1 or limit < 1:
            raise InvalidRequestError("page and limit must be at least 1")

        jobs, total = self.store.list_jobs(
            owner_id=None if privileged else owner_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return JobPage(
            jobs=jobs,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def find_one(
        self,
        job_id: int,
        owner_id: int,
        privileged: bool = False,
    ) -> IngestionJob:
        """
        Get one job.

        Raises:
            JobNotFoundError: If the job does not exist
            AccessDeniedError: If the job belongs to another user
        """
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id=job_id)

        if job.created_by_id != owner_id and not privileged:
            logger.warning(
                "ingestion.job_access_denied",
                extra={"job_id": job_id, "owner_id": job.created_by_id, "requested_by": owner_id},
            )
            raise AccessDeniedError(job_id=job_id)

        return job

    def retry_job(
        self,
        job_id: int,
        owner_id: int,
        privileged: bool = False,
    ) -> IngestionJob:
        """
        Retry a failed job on its original document set.

        Raises:
            JobNotFoundError: If the job does not exist
            AccessDeniedError: If the job belongs to another user
            InvalidRequestError: If the job is not FAILED or retries are exhausted
        """
        job = self.find_one(job_id, owner_id, privileged=privileged)

        if job.status != JobStatus.FAILED:
            raise InvalidRequestError("Only failed jobs can be retried", job_id=job_id)

        if job.retry_count >= job.max_retries:
            raise InvalidRequestError("Maximum retry attempts reached", job_id=job_id)

        job.mark_retrying()
        self.store.save(job)

        documents = self.validator.fetch(job.document_ids)
        snapshots = [doc.to_snapshot() for doc in documents]

        logger.info(
            "ingestion.job_retry",
            extra={
                "job_id": job.id,
                "external_job_id": job.external_job_id,
                "retry_count": job.retry_count,
                "max_retries": job.max_retries,
                "document_count": len(snapshots),
            },
        )

        # Re-read before scheduling: threaded execution may start at once
        job = self.store.get(job.id)
        self._schedule(job.id, snapshots)
        return job

    def update_job_status(
        self,
        external_job_id: str,
        update: StatusUpdate,
    ) -> Optional[IngestionJob]:
        """
        Apply a status pushed by an external processor.

        Unknown external ids are logged and ignored so duplicate or late
        deliveries never fail.

        Returns:
            The updated job, or None if the id is unknown
        """
        job = self.store.get_by_external_id(external_job_id)
        if job is None:
            logger.warning(
                "ingestion.webhook_unknown_job",
                extra={"external_job_id": external_job_id, "status": update.status},
            )
            return None

        new_status = map_external_status(update.status)
        now = datetime.now(timezone.utc)

        job.status = new_status
        if update.progress is not None:
            job.set_progress(update.progress)
        if update.error_message is not None:
            job.error_message = update.error_message
        if update.output_data is not None:
            job.output_data = update.output_data

        if new_status == JobStatus.PROCESSING:
            if job.started_at is None:
                job.started_at = now
        elif new_status == JobStatus.COMPLETED:
            job.progress = 100
            job.completed_at = now
        elif new_status == JobStatus.FAILED:
            job.error_message = update.error_message or "Processing failed"
            decision = evaluate_retry(
                job.retry_count, job.max_retries, self.retry_policy, now=now
            )
            job.next_retry_at = decision.next_retry_at
            log_retry_decision(job.id, job.created_by_id, decision)

        self.store.save(job)

        logger.info(
            "ingestion.webhook_status_applied",
            extra={
                "job_id": job.id,
                "external_job_id": external_job_id,
                "reported_status": update.status,
                "status": new_status.value,
                "progress": job.progress,
            },
        )
        return job

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def process_job(self, job_id: int, documents: List[Dict[str, Any]]) -> None:
        """
        Execute a job: report progress, run processing, record the outcome.

        Never raises. Any failure (unsuccessful result or exception) leaves
        the job FAILED, never PROCESSING.

        Args:
            job_id: Job to execute
            documents: Document snapshots to process
        """
        with self._execution_session() as db:
            store = JobStore(db)
            job = await self._run_blocking(store.get, job_id)
            if job is None:
                logger.warning("ingestion.job_vanished", extra={"job_id": job_id})
                return

            try:
                job.mark_processing()
                await self._run_blocking(store.save, job)
                self._log_job_started(job)

                routine = _ROUTINES.get(job.type)
                if routine is None:
                    raise ProcessingFailure(
                        f"Unsupported processing type: {job.type}", job_id=job.id
                    )

                for step in range(self.progress_steps):
                    job.set_progress(round((step + 1) * 100 / self.progress_steps))
                    await self._run_blocking(store.save, job)
                    if self.step_delay_seconds > 0:
                        await asyncio.sleep(self.step_delay_seconds)

                result = await self.processing_service.process_documents(
                    routine,
                    [DocumentInfo.from_snapshot(doc) for doc in documents],
                    dict(job.parameters or {}),
                )
                if not result.success:
                    raise ProcessingFailure(result.error or "Processing failed", job_id=job.id)

                job.mark_completed(result.data)
                await self._run_blocking(store.save, job)
                self._log_job_completed(job, result.processing_time_ms)

            except ProcessingFailure as e:
                await self._run_blocking(self._record_failure, db, store, job_id, e.message)
            except Exception as e:
                logger.error(
                    "ingestion.job_unexpected_error",
                    extra={"job_id": job_id, "error": str(e)},
                    exc_info=True,
                )
                await self._run_blocking(
                    self._record_failure, db, store, job_id, str(e) or e.__class__.__name__
                )

    def _record_failure(
        self,
        db: Session,
        store: JobStore,
        job_id: int,
        error_message: str,
    ) -> None:
        try:
            # A failed flush leaves the session unusable until rolled back
            if not db.is_active:
                db.rollback()
            job = store.get(job_id)
            if job is None:
                return

            decision = evaluate_retry(job.retry_count, job.max_retries, self.retry_policy)
            job.mark_failed(error_message, next_retry_at=decision.next_retry_at)
            store.save(job)

            self._log_job_failed(job)
            log_retry_decision(job.id, job.created_by_id, decision)
        except Exception as e:
            logger.error(
                "ingestion.job_failure_not_recorded",
                extra={"job_id": job_id, "error": str(e)},
                exc_info=True,
            )

    async def _run_blocking(self, fn: Callable[..., Any], *args: Any) -> Any:
        # Session I/O runs off the event loop; calls are awaited one at a time
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def _schedule(self, job_id: int, snapshots: List[Dict[str, Any]]) -> None:
        self.executor.submit(
            self.process_job(job_id, snapshots),
            name=f"ingestion-job-{job_id}",
        )

    @contextmanager
    def _execution_session(self) -> Iterator[Session]:
        if self.session_factory is None:
            yield self.db
            return

        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def _new_external_job_id(self) -> str:
        for _ in range(MAX_EXTERNAL_ID_ATTEMPTS):
            candidate = generate_external_job_id()
            if not self.store.external_id_exists(candidate):
                return candidate
            logger.warning("ingestion.external_id_collision", extra={"external_job_id": candidate})
        raise RuntimeError("Could not generate a unique external job id")

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _log_job_started(self, job: IngestionJob) -> None:
        logger.info(
            "ingestion.job_started",
            extra={
                "job_id": job.id,
                "external_job_id": job.external_job_id,
                "type": job.type.value,
                "retry_count": job.retry_count,
            },
        )

    def _log_job_completed(self, job: IngestionJob, processing_time_ms: int) -> None:
        logger.info(
            "ingestion.job_completed",
            extra={
                "job_id": job.id,
                "external_job_id": job.external_job_id,
                "type": job.type.value,
                "processing_time_ms": processing_time_ms,
            },
        )

    def _log_job_failed(self, job: IngestionJob) -> None:
        logger.error(
            "ingestion.job_failed",
            extra={
                "job_id": job.id,
                "external_job_id": job.external_job_id,
                "error_message": job.error_message,
                "retry_count": job.retry_count,
                "max_retries": job.max_retries,
                "next_retry_at": job.next_retry_at.isoformat() if job.next_retry_at else None,
            },
        )
