"""
Document API routes.

SECURITY: All routes require a bearer token. Users see and change only
their own documents; admins see and change all. Creating, updating and
deleting documents requires the admin or editor role.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse

from docflow.api.schemas.documents import (
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdateRequest,
    PaginationResponse,
    SortField,
    SortOrder,
)
from docflow.auth.context import AuthContext, get_auth_context, require_roles
from docflow.database.session import get_db_session
from docflow.documents.service import (
    DocumentAccessDeniedError,
    DocumentNotFoundError,
    DocumentSearch,
    DocumentService,
    UploadedFile,
)
from docflow.models.document import DocumentStatus
from docflow.models.user import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

_DOCUMENT_ERRORS = {
    404: {"description": "Document not found"},
    403: {"description": "Document belongs to another user"},
}


def get_document_service(db_session=Depends(get_db_session)) -> DocumentService:
    return DocumentService(db_session)


def _raise_for(error: Exception) -> None:
    if isinstance(error, DocumentNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, DocumentAccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.message)
    raise error


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    title: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    document_status: DocumentStatus = Form(DocumentStatus.DRAFT, alias="status"),
    file: Optional[UploadFile] = File(None),
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR)),
    documents: DocumentService = Depends(get_document_service),
):
    """Create a document, optionally with an uploaded file (multipart form)."""
    upload = None
    if file is not None and file.filename:
        upload = UploadedFile(
            filename=file.filename,
            content_type=file.content_type,
            data=await file.read(),
        )

    document = documents.create(
        {
            "title": title,
            "description": description,
            "content": content,
            "status": document_status,
        },
        owner_id=auth.user_id,
        upload=upload,
    )
    return DocumentResponse.model_validate(document)


@router.get("", response_model=DocumentListResponse)
async def search_documents(
    search: Optional[str] = Query(None, max_length=255),
    user_id: Optional[int] = Query(None, description="Owner filter (admins only)"),
    document_status: Optional[DocumentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: SortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    auth: AuthContext = Depends(get_auth_context),
    documents: DocumentService = Depends(get_document_service),
):
    result = documents.search(
        DocumentSearch(
            search=search,
            user_id=user_id,
            status=document_status,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        ),
        actor_id=auth.user_id,
        is_admin=auth.is_admin,
    )
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(doc) for doc in result.items],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/{document_id}", response_model=DocumentResponse, responses=_DOCUMENT_ERRORS)
async def get_document(
    document_id: int,
    auth: AuthContext = Depends(get_auth_context),
    documents: DocumentService = Depends(get_document_service),
):
    try:
        document = documents.find_one(document_id, auth.user_id, is_admin=auth.is_admin)
    except (DocumentNotFoundError, DocumentAccessDeniedError) as e:
        _raise_for(e)
    return DocumentResponse.model_validate(document)


@router.patch("/{document_id}", response_model=DocumentResponse, responses=_DOCUMENT_ERRORS)
async def update_document(
    document_id: int,
    body: DocumentUpdateRequest,
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR)),
    documents: DocumentService = Depends(get_document_service),
):
    try:
        document = documents.update(
            document_id,
            body.model_dump(exclude_unset=True),
            actor_id=auth.user_id,
            is_admin=auth.is_admin,
        )
    except (DocumentNotFoundError, DocumentAccessDeniedError) as e:
        _raise_for(e)
    return DocumentResponse.model_validate(document)


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_DOCUMENT_ERRORS,
)
async def delete_document(
    document_id: int,
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR)),
    documents: DocumentService = Depends(get_document_service),
):
    try:
        documents.remove(document_id, auth.user_id, is_admin=auth.is_admin)
    except (DocumentNotFoundError, DocumentAccessDeniedError) as e:
        _raise_for(e)


@router.get("/{document_id}/download", responses=_DOCUMENT_ERRORS)
async def download_document(
    document_id: int,
    auth: AuthContext = Depends(get_auth_context),
    documents: DocumentService = Depends(get_document_service),
):
    try:
        document = documents.get_file(document_id, auth.user_id, is_admin=auth.is_admin)
    except (DocumentNotFoundError, DocumentAccessDeniedError) as e:
        _raise_for(e)

    return FileResponse(
        document.file_path,
        media_type=document.mime_type or "application/octet-stream",
        filename=document.original_file_name or document.file_name,
    )
