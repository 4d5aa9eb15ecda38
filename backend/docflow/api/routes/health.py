"""
Health check route (no authentication).
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from docflow.database.session import get_engine
from docflow.ingestion.jobs.executor import get_job_executor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str
    running_jobs: int


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Report API liveness, database reachability and in-flight jobs."""
    database = "ok"
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except ValueError:
        database = "not_configured"
    except Exception as e:
        logger.warning("Health check database probe failed", extra={"error": str(e)})
        database = "unavailable"

    return HealthResponse(
        status="ok",
        database=database,
        running_jobs=get_job_executor().pending_count,
    )
