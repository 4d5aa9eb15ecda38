"""
Job store for ingestion jobs.

Thin persistence layer over the SQLAlchemy session. Every save is a
whole-record commit so concurrent readers (polling clients) always see a
consistent snapshot of a job.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from docflow.ingestion.jobs.models import IngestionJob

logger = logging.getLogger(__name__)


class JobStore:
    """
    Durable record of ingestion jobs.

    Jobs are keyed by internal id and by external_job_id.
    Ownership scoping is applied by the caller (JobOrchestrator).
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, job: IngestionJob) -> IngestionJob:
        """Insert a new job and commit so it receives its id."""
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def save(self, job: IngestionJob) -> IngestionJob:
        """Persist the current state of a job."""
        self.db.add(job)
        self.db.commit()
        return job

    def get(self, job_id: int) -> Optional[IngestionJob]:
        return (
            self.db.query(IngestionJob)
            .options(joinedload(IngestionJob.created_by))
            .filter(IngestionJob.id == job_id)
            .first()
        )

    def get_by_external_id(self, external_job_id: str) -> Optional[IngestionJob]:
        return (
            self.db.query(IngestionJob)
            .filter(IngestionJob.external_job_id == external_job_id)
            .first()
        )

    def external_id_exists(self, external_job_id: str) -> bool:
        return (
            self.db.query(IngestionJob.id)
            .filter(IngestionJob.external_job_id == external_job_id)
            .first()
            is not None
        )

    def list_jobs(
        self,
        owner_id: Optional[int],
        offset: int,
        limit: int,
    ) -> Tuple[List[IngestionJob], int]:
        """
        List jobs newest first.

        Args:
            owner_id: Restrict to jobs created by this user (None = all jobs)
            offset: Number of jobs to skip
            limit: Maximum jobs to return

        Returns:
            Tuple of (jobs, total matching jobs)
        """
        query = self.db.query(IngestionJob)
        if owner_id is not None:
            query = query.filter(IngestionJob.created_by_id == owner_id)

        total = query.count()
        jobs = (
            query.options(joinedload(IngestionJob.created_by))
            .order_by(IngestionJob.created_at.desc(), IngestionJob.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return jobs, total
