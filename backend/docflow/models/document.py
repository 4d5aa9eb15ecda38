"""
Document model.

A Document is a user-owned record with optional stored file metadata.
Documents are the input of ingestion jobs: a job snapshots the id, title,
file path, file name and mime type of each document at trigger time.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from docflow.db_base import Base
from docflow.models.base import OwnedMixin, TimestampMixin


class DocumentStatus(str, enum.Enum):
    """Document publication status."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Document(Base, TimestampMixin, OwnedMixin):
    """
    User-owned document.

    Attributes:
        id: Primary key
        title: Document title
        description: Optional free-text description
        file_name: Stored file name (<uuid><ext>)
        original_file_name: File name as uploaded
        file_path: Path of the stored file on disk
        file_size: Stored file size in bytes
        mime_type: Uploaded file content type
        content: Optional inline text content
        status: draft, published or archived
        created_by_id: Owner (from OwnedMixin)
        updated_by_id: Last user who modified the document
    """

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False, comment="Document title")
    description = Column(Text, nullable=True)

    # Stored file metadata (all null when no file was uploaded)
    file_name = Column(String(255), nullable=True, comment="Stored file name")
    original_file_name = Column(String(255), nullable=True, comment="Uploaded file name")
    file_path = Column(String(500), nullable=True, comment="Stored file path")
    file_size = Column(Integer, nullable=True, comment="File size in bytes")
    mime_type = Column(String(100), nullable=True)

    content = Column(Text, nullable=True, comment="Inline text content")

    status = Column(
        Enum(DocumentStatus),
        default=DocumentStatus.DRAFT,
        nullable=False,
        index=True,
        comment="Document status: draft, published, archived"
    )

    updated_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="User who last updated the document"
    )

    created_by = relationship(
        "User",
        back_populates="documents",
        foreign_keys="Document.created_by_id",
    )
    updated_by = relationship("User", foreign_keys=[updated_by_id])

    __table_args__ = (
        Index("ix_documents_owner_created", "created_by_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Document("
            f"id={self.id}, "
            f"title={self.title!r}, "
            f"created_by_id={self.created_by_id}, "
            f"status={self.status.value if self.status else None}"
            f")>"
        )

    @property
    def has_file(self) -> bool:
        return bool(self.file_path)

    def is_owned_by(self, user_id: int) -> bool:
        return self.created_by_id == user_id

    def to_snapshot(self) -> dict:
        """Minimal metadata captured into an ingestion job's input_data."""
        return {
            "id": self.id,
            "title": self.title,
            "file_path": self.file_path,
            "file_name": self.original_file_name,
            "mime_type": self.mime_type,
        }
