"""
Base mixins for database models.

Provides common functionality:
- TimestampMixin: created_at, updated_at timestamps
- OwnedMixin: created_by_id for per-user ownership
- JSONType: JSON column that uses JSONB on PostgreSQL
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr

JSONType = JSON().with_variant(JSONB(), "postgresql")


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Timestamp when record was last updated"
    )


class OwnedMixin:
    """
    Mixin that adds the created_by_id ownership column.

    SECURITY: created_by_id is ONLY taken from the authenticated principal.
    NEVER accept it from client input (body/query/path).
    """

    @declared_attr
    def created_by_id(cls):
        return Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            comment="User who created the record. Immutable."
        )
