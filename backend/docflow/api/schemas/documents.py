"""Request and response schemas for document routes."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from docflow.models.document import DocumentStatus


class DocumentUpdateRequest(BaseModel):
    """Partial document update. Omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    status: Optional[DocumentStatus] = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    file_name: Optional[str] = None
    original_file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    content: Optional[str] = None
    status: DocumentStatus
    created_by_id: int
    updated_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class DocumentListResponse(BaseModel):
    documents: List[DocumentResponse]
    pagination: PaginationResponse


SortField = Literal["created_at", "updated_at", "title"]
SortOrder = Literal["asc", "desc"]
