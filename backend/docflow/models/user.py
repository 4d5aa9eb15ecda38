"""
User model.

A User is a local account authenticated with email + password and
authorized through a list of role names (admin, editor, viewer).

SECURITY:
- Only the password hash is stored, never the password itself
- password_hash must never appear in API responses
- roles are only changed by an admin through UserService.update_roles
"""

import enum
from typing import List

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from docflow.db_base import Base
from docflow.models.base import JSONType, TimestampMixin


class UserRole(str, enum.Enum):
    """Role names carried in user records and access tokens."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class User(Base, TimestampMixin):
    """
    Local user account.

    Key concepts:
    - email is unique and used as the login identifier
    - roles is a JSON list of UserRole values, defaults to ["viewer"]
    - documents and ingestion jobs reference the user via created_by_id
    """

    __tablename__ = "users"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Internal primary key"
    )

    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email address (unique)"
    )

    password_hash = Column(
        String(255),
        nullable=False,
        comment="passlib password hash"
    )

    roles = Column(
        JSONType,
        nullable=False,
        default=lambda: [UserRole.VIEWER.value],
        comment="Role names: admin, editor, viewer"
    )

    documents = relationship(
        "Document",
        back_populates="created_by",
        foreign_keys="Document.created_by_id",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, roles={self.roles})>"

    @property
    def role_names(self) -> List[str]:
        return list(self.roles or [])

    @property
    def is_admin(self) -> bool:
        return UserRole.ADMIN.value in self.role_names

    def has_any_role(self, *roles: str) -> bool:
        """Check if the user holds at least one of the given roles."""
        return any(role in self.role_names for role in roles)
