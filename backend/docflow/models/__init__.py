"""
Core ORM models.

Ingestion job models live in docflow.ingestion.jobs.models; import
docflow.models.registry to register every table with Base.metadata.
"""

from docflow.models.user import User, UserRole
from docflow.models.document import Document, DocumentStatus

__all__ = [
    "User",
    "UserRole",
    "Document",
    "DocumentStatus",
]
