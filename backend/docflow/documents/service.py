"""
Document service.

Handles:
- Document CRUD with optional file upload
- Search with text match, owner/status filters, sorting and pagination
- Ownership checks (admins may read and modify any document)

Uploaded files are stored as <upload_dir>/<uuid><ext>; the original file
name is kept in original_file_name.
"""

import logging
import math
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from docflow.config.settings import get_settings
from docflow.models.document import Document, DocumentStatus

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": Document.created_at,
    "updated_at": Document.updated_at,
    "title": Document.title,
}
EDITABLE_FIELDS = ("title", "description", "content", "status")


class DocumentError(Exception):
    """Base exception for document errors."""

    def __init__(self, message: str, document_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.document_id = document_id


class DocumentNotFoundError(DocumentError):
    """Raised when a document (or its file) does not exist."""

    def __init__(self, message: str = "Document not found", **kwargs):
        super().__init__(message, **kwargs)


class DocumentAccessDeniedError(DocumentError):
    """Raised when a user touches another user's document."""

    def __init__(self, message: str = "You do not have access to this document", **kwargs):
        super().__init__(message, **kwargs)


@dataclass
class UploadedFile:
    """File received with a create request."""
    filename: str
    content_type: Optional[str]
    data: bytes


@dataclass
class DocumentSearch:
    """Search criteria for DocumentService.search."""
    search: Optional[str] = None
    user_id: Optional[int] = None
    status: Optional[DocumentStatus] = None
    page: int = 1
    limit: int = 10
    sort_by: str = "created_at"
    sort_order: str = "desc"


@dataclass
class DocumentPage:
    items: List[Document] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0


class DocumentService:
    """Document persistence, search and file storage."""

    def __init__(self, db_session: Session, upload_dir: Optional[str] = None):
        self.db = db_session
        self.upload_dir = Path(upload_dir or get_settings().upload_dir)

    def create(
        self,
        data: Dict[str, Any],
        owner_id: int,
        upload: Optional[UploadedFile] = None,
    ) -> Document:
        """
        Create a document, storing the uploaded file if any.

        Args:
            data: title (required), description, content, status
            owner_id: Creating user
            upload: Optional file
        """
        document = Document(
            title=data["title"],
            description=data.get("description"),
            content=data.get("content"),
            status=data.get("status") or DocumentStatus.DRAFT,
            created_by_id=owner_id,
        )

        if upload is not None:
            self._store_file(document, upload)

        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)

        logger.info(
            "documents.created",
            extra={
                "document_id": document.id,
                "owner_id": owner_id,
                "has_file": document.has_file,
            },
        )
        return document

    def search(
        self,
        criteria: DocumentSearch,
        actor_id: int,
        is_admin: bool = False,
    ) -> DocumentPage:
        """
        Search documents visible to the actor.

        Non-admins only ever see their own documents, whatever user_id
        they ask for. Admins see everything, optionally filtered by user_id.
        """
        if criteria.page < 1 or criteria.limit < 1:
            raise ValueError("page and limit must be at least 1")

        query = self.db.query(Document)

        if is_admin:
            if criteria.user_id is not None:
                query = query.filter(Document.created_by_id == criteria.user_id)
        else:
            query = query.filter(Document.created_by_id == actor_id)

        if criteria.search:
            pattern = f"%{criteria.search}%"
            query = query.filter(
                or_(
                    Document.title.ilike(pattern),
                    Document.description.ilike(pattern),
                    Document.content.ilike(pattern),
                )
            )

        if criteria.status is not None:
            query = query.filter(Document.status == criteria.status)

        sort_column = SORTABLE_FIELDS.get(criteria.sort_by, Document.created_at)
        if criteria.sort_order.lower() == "asc":
            order = [sort_column.asc(), Document.id.asc()]
        else:
            order = [sort_column.desc(), Document.id.desc()]

        total = query.count()
        items = (
            query.order_by(*order)
            .offset((criteria.page - 1) * criteria.limit)
            .limit(criteria.limit)
            .all()
        )

        return DocumentPage(
            items=items,
            total=total,
            page=criteria.page,
            limit=criteria.limit,
            total_pages=math.ceil(total / criteria.limit),
        )

    def find_one(self, document_id: int, actor_id: int, is_admin: bool = False) -> Document:
        """
        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentAccessDeniedError: If it belongs to someone else
        """
        document = self.db.query(Document).filter(Document.id == document_id).first()
        if document is None:
            raise DocumentNotFoundError(document_id=document_id)

        if not is_admin and not document.is_owned_by(actor_id):
            raise DocumentAccessDeniedError(document_id=document_id)

        return document

    def update(
        self,
        document_id: int,
        data: Dict[str, Any],
        actor_id: int,
        is_admin: bool = False,
    ) -> Document:
        document = self.find_one(document_id, actor_id, is_admin=is_admin)

        for name in EDITABLE_FIELDS:
            if name in data and data[name] is not None:
                setattr(document, name, data[name])
        document.updated_by_id = actor_id

        self.db.commit()
        self.db.refresh(document)

        logger.info(
            "documents.updated",
            extra={"document_id": document.id, "updated_by_id": actor_id},
        )
        return document

    def remove(self, document_id: int, actor_id: int, is_admin: bool = False) -> None:
        """Delete a document and its stored file."""
        document = self.find_one(document_id, actor_id, is_admin=is_admin)
        file_path = document.file_path

        self.db.delete(document)
        self.db.commit()

        if file_path and os.path.exists(file_path):
            os.remove(file_path)

        logger.info(
            "documents.removed",
            extra={"document_id": document_id, "removed_by_id": actor_id},
        )

    def get_file(self, document_id: int, actor_id: int, is_admin: bool = False) -> Document:
        """
        Return a document whose stored file exists on disk.

        Raises:
            DocumentNotFoundError: If the document has no file
        """
        document = self.find_one(document_id, actor_id, is_admin=is_admin)
        if not document.file_path or not os.path.exists(document.file_path):
            raise DocumentNotFoundError("File not found", document_id=document_id)
        return document

    def _store_file(self, document: Document, upload: UploadedFile) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        extension = Path(upload.filename or "").suffix
        file_name = f"{uuid.uuid4()}{extension}"
        file_path = self.upload_dir / file_name
        file_path.write_bytes(upload.data)

        document.file_name = file_name
        document.original_file_name = upload.filename
        document.file_path = str(file_path)
        document.file_size = len(upload.data)
        document.mime_type = upload.content_type
