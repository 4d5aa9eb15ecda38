"""
Request and response schemas for ingestion routes.

Webhook payloads accept both error/error_message and output/output_data
so external processors may use either spelling.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docflow.api.schemas.users import UserSummary
from docflow.ingestion.jobs.models import (
    DEFAULT_MAX_RETRIES,
    MAX_ALLOWED_RETRIES,
    JobStatus,
    ProcessingType,
)


class TriggerIngestionRequest(BaseModel):
    """Request to process a set of documents."""
    type: ProcessingType = Field(
        ...,
        description="Processing type",
        examples=["ocr"],
    )
    document_ids: List[int] = Field(
        ...,
        min_length=1,
        description="Documents to process (must belong to the caller)",
        examples=[[1, 2]],
    )
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Processing parameters passed through to the processor",
        examples=[{"language": "en", "extract_tables": True}],
    )
    max_retries: int = Field(
        DEFAULT_MAX_RETRIES,
        ge=0,
        le=MAX_ALLOWED_RETRIES,
        description="Maximum explicit retries",
    )


class WebhookStatusUpdate(BaseModel):
    """Status pushed by an external processor."""
    external_job_id: str = Field(..., min_length=1, examples=["ext_job_1700000000000_k3j9x0a1b"])
    status: str = Field(
        ...,
        description="pending, processing, completed or failed (anything else is treated as failed)",
    )
    progress: Optional[int] = Field(None, ge=0, le=100)
    error: Optional[str] = None
    error_message: Optional[str] = None
    output: Optional[Dict[str, Any]] = None
    output_data: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def merge_aliases(self) -> "WebhookStatusUpdate":
        if self.error_message is None:
            self.error_message = self.error
        if self.output_data is None:
            self.output_data = self.output
        return self


class IngestionJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    external_job_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    type: ProcessingType
    status: JobStatus
    progress: int
    error_message: Optional[str] = None
    retry_count: int
    max_retries: int
    next_retry_at: Optional[datetime] = None
    parameters: Optional[Dict[str, Any]] = None
    input_data: Dict[str, Any]
    output_data: Optional[Dict[str, Any]] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by_id: int
    created_by: Optional[UserSummary] = None


class IngestionJobListResponse(BaseModel):
    jobs: List[IngestionJobResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class WebhookAckResponse(BaseModel):
    message: str = "Status updated successfully"
