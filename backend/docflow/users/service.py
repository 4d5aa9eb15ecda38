"""
User account management.

Handles:
- Account creation with unique email and hashed password
- Lookup by id and email
- Role assignment (admin only, enforced by the routes)
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from docflow.auth.passwords import hash_password
from docflow.models.user import User, UserRole

logger = logging.getLogger(__name__)

VALID_ROLES = {role.value for role in UserRole}


class UserError(Exception):
    """Base exception for user errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserNotFoundError(UserError):
    """Raised when a user does not exist."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class UserAlreadyExistsError(UserError):
    """Raised when registering an email that is already taken."""

    def __init__(self, message: str = "User with this email already exists"):
        super().__init__(message)


class InvalidRoleError(UserError):
    """Raised when a role name is not one of admin, editor, viewer."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """User persistence and role management."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def find_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == normalize_email(email))
            .first()
        )

    def find_by_id(self, user_id: int) -> User:
        """
        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise UserNotFoundError()
        return user

    def find_all(self) -> List[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def create(
        self,
        email: str,
        password: str,
        roles: Optional[Iterable[str]] = None,
    ) -> User:
        """
        Create a user account.

        Args:
            email: Login email (normalized to lower case)
            password: Plain password, stored hashed
            roles: Initial roles (defaults to viewer)

        Raises:
            UserAlreadyExistsError: If the email is taken
            InvalidRoleError: If a role name is unknown
        """
        if self.find_by_email(email) is not None:
            raise UserAlreadyExistsError()

        role_names = _validated_roles(roles) if roles else [UserRole.VIEWER.value]

        user = User(
            email=normalize_email(email),
            password_hash=hash_password(password),
            roles=role_names,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info("users.created", extra={"user_id": user.id, "roles": role_names})
        return user

    def update_roles(self, user_id: int, roles: Iterable[str]) -> User:
        """
        Add roles to a user. Existing roles are kept, duplicates dropped.

        Raises:
            UserNotFoundError: If the user does not exist
            InvalidRoleError: If a role name is unknown
        """
        new_roles = _validated_roles(roles)
        user = self.find_by_id(user_id)

        merged = list(dict.fromkeys([*user.role_names, *new_roles]))
        user.roles = merged
        self.db.commit()
        self.db.refresh(user)

        logger.info("users.roles_updated", extra={"user_id": user.id, "roles": merged})
        return user


def _validated_roles(roles: Iterable[str]) -> List[str]:
    role_names = [getattr(role, "value", role) for role in roles]
    invalid = [role for role in role_names if role not in VALID_ROLES]
    if invalid:
        raise InvalidRoleError(
            f"Invalid roles: {', '.join(invalid)}. Valid roles: {', '.join(sorted(VALID_ROLES))}"
        )
    if not role_names:
        raise InvalidRoleError("At least one role is required")
    return list(dict.fromkeys(role_names))
