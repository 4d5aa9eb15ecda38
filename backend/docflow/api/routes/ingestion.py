"""
Ingestion API routes for triggering and monitoring document processing jobs.

SECURITY: Job routes require a valid bearer token and are scoped to the
caller's jobs (admins see all). The status webhook is authenticated with
an HMAC-SHA256 signature instead of a user token.
"""

import base64
import hashlib
import hmac
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError

from docflow.api.schemas.ingestion import (
    IngestionJobListResponse,
    IngestionJobResponse,
    TriggerIngestionRequest,
    WebhookAckResponse,
    WebhookStatusUpdate,
)
from docflow.auth.context import AuthContext, get_auth_context, require_roles
from docflow.config.settings import Settings, get_settings
from docflow.database.session import get_db_session, get_session_factory
from docflow.ingestion.jobs.exceptions import (
    AccessDeniedError,
    InvalidRequestError,
    JobNotFoundError,
)
from docflow.ingestion.jobs.orchestrator import JobOrchestrator, StatusUpdate, TriggerRequest
from docflow.models.user import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ingestion", tags=["ingestion"])

SIGNATURE_HEADER = "X-Webhook-Signature"


def get_job_orchestrator(db_session=Depends(get_db_session)) -> JobOrchestrator:
    """Job orchestrator bound to the request session; jobs run on their own sessions."""
    return JobOrchestrator(db_session, session_factory=get_session_factory())


def verify_webhook_signature(data: bytes, signature: str, secret: str) -> bool:
    """
    Verify a webhook HMAC signature.

    Args:
        data: Raw request body bytes
        signature: Base64 HMAC-SHA256 of the body (X-Webhook-Signature)
        secret: Shared webhook secret

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature or not secret:
        return False

    computed = hmac.new(secret.encode("utf-8"), data, hashlib.sha256)
    expected = base64.b64encode(computed.digest()).decode("utf-8")

    # Constant-time comparison
    return hmac.compare_digest(expected, signature)


async def get_verified_status_update(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> WebhookStatusUpdate:
    """
    Read, authenticate and parse a webhook status update.

    Raises:
        HTTPException: 503 if INGESTION_WEBHOOK_SECRET is not configured,
            401 on a missing/invalid signature, 422 on a bad payload
    """
    secret = settings.ingestion_webhook_secret
    if not secret:
        logger.error("INGESTION_WEBHOOK_SECRET not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook verification not configured",
        )

    body = await request.body()

    signature = request.headers.get(SIGNATURE_HEADER, "")
    if not verify_webhook_signature(body, signature, secret):
        logger.warning("ingestion.webhook_invalid_signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    try:
        return WebhookStatusUpdate.model_validate(json.loads(body or b"{}"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid JSON payload",
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=json.loads(e.json()),
        )


def _job_response(job) -> IngestionJobResponse:
    return IngestionJobResponse.model_validate(job)


# Routes

@router.post(
    "/trigger",
    response_model=IngestionJobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Trigger a document processing job",
    responses={
        400: {"description": "Unknown documents or invalid options"},
        403: {"description": "Documents belong to another user or role not allowed"},
    },
)
async def trigger_ingestion(
    body: TriggerIngestionRequest,
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR)),
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    """
    Create a job for the given documents and start processing in the background.

    Returns immediately with the PENDING job; poll GET /api/ingestion/{id}
    for progress.
    """
    request = TriggerRequest(
        type=body.type,
        document_ids=body.document_ids,
        name=body.name,
        description=body.description,
        parameters=body.parameters,
        max_retries=body.max_retries,
    )

    try:
        job = orchestrator.trigger(request, owner_id=auth.user_id)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except AccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    return _job_response(job)


@router.get(
    "",
    response_model=IngestionJobListResponse,
    summary="List ingestion jobs",
)
async def list_ingestion_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    """List the caller's jobs, newest first (admins see every job)."""
    try:
        result = orchestrator.find_all(
            auth.user_id, page=page, limit=limit, privileged=auth.is_admin
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return IngestionJobListResponse(
        jobs=[_job_response(job) for job in result.jobs],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.post(
    "/webhook/status-update",
    response_model=WebhookAckResponse,
    summary="Receive a job status update from an external processor",
    responses={
        401: {"description": "Invalid webhook signature"},
        503: {"description": "Webhook secret not configured"},
    },
)
async def webhook_status_update(
    update: WebhookStatusUpdate = Depends(get_verified_status_update),
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    """
    Apply a pushed status. Unknown external job ids are acknowledged and ignored.
    """
    orchestrator.update_job_status(
        update.external_job_id,
        StatusUpdate(
            status=update.status,
            progress=update.progress,
            error_message=update.error_message,
            output_data=update.output_data,
        ),
    )
    return WebhookAckResponse()


@router.get(
    "/{job_id}",
    response_model=IngestionJobResponse,
    summary="Get an ingestion job",
    responses={
        403: {"description": "Job belongs to another user"},
        404: {"description": "Job not found"},
    },
)
async def get_ingestion_job(
    job_id: int,
    auth: AuthContext = Depends(get_auth_context),
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    try:
        job = orchestrator.find_one(job_id, auth.user_id, privileged=auth.is_admin)
    except JobNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except AccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    return _job_response(job)


@router.post(
    "/{job_id}/retry",
    response_model=IngestionJobResponse,
    summary="Retry a failed ingestion job",
    responses={
        400: {"description": "Job is not failed or retries are exhausted"},
        403: {"description": "Job belongs to another user"},
        404: {"description": "Job not found"},
    },
)
async def retry_ingestion_job(
    job_id: int,
    auth: AuthContext = Depends(get_auth_context),
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    """Retry a FAILED job on its original documents."""
    try:
        job = orchestrator.retry_job(job_id, auth.user_id, privileged=auth.is_admin)
    except JobNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except AccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return _job_response(job)
