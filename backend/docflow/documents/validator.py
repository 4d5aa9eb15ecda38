"""
Document validation for ingestion requests.

Resolves the document ids of a trigger request and checks that every one
exists and belongs to the requesting user.
"""

import logging
from typing import List, Sequence

from sqlalchemy.orm import Session

from docflow.ingestion.jobs.exceptions import AccessDeniedError, InvalidRequestError
from docflow.models.document import Document

logger = logging.getLogger(__name__)


class DocumentValidator:
    """Confirms a set of document references for an ingestion job."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def fetch(self, document_ids: Sequence[int]) -> List[Document]:
        """Load documents by id, ordered as requested. Missing ids are skipped."""
        if not document_ids:
            return []
        found = {
            doc.id: doc
            for doc in self.db.query(Document).filter(Document.id.in_(list(document_ids))).all()
        }
        return [found[doc_id] for doc_id in dict.fromkeys(document_ids) if doc_id in found]

    def resolve(self, document_ids: Sequence[int], owner_id: int) -> List[Document]:
        """
        Resolve document ids owned by owner_id.

        Args:
            document_ids: Requested document ids
            owner_id: Requesting user

        Returns:
            Documents in request order (duplicates collapsed)

        Raises:
            InvalidRequestError: If any id does not resolve
            AccessDeniedError: If any document belongs to another user
        """
        if not document_ids:
            raise InvalidRequestError("At least one document is required")

        documents = self.fetch(document_ids)
        if len(documents) != len(set(document_ids)):
            missing = sorted(set(document_ids) - {doc.id for doc in documents})
            logger.info(
                "documents.validation_missing",
                extra={"owner_id": owner_id, "missing_ids": missing},
            )
            raise InvalidRequestError("Some documents not found")

        foreign = [doc.id for doc in documents if not doc.is_owned_by(owner_id)]
        if foreign:
            logger.warning(
                "documents.validation_access_denied",
                extra={"owner_id": owner_id, "document_ids": foreign},
            )
            raise AccessDeniedError("Access denied to some documents")

        return documents
