"""
Registration, login and logout.

Login returns a bearer token plus the public user fields; logout revokes
the presented token.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from docflow.auth.passwords import verify_password
from docflow.auth.token_service import InvalidCredentialsError, IssuedToken, TokenService
from docflow.models.user import User
from docflow.users.service import UserService

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    token: IssuedToken
    user: User


class AuthService:
    """Authenticates users and manages their access tokens."""

    def __init__(self, db_session: Session, token_service: TokenService):
        self.users = UserService(db_session)
        self.tokens = token_service

    def register(self, email: str, password: str) -> User:
        """Create a viewer account. Raises UserAlreadyExistsError."""
        return self.users.create(email=email, password=password)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Verify credentials and issue an access token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        user = self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("auth.login_failed", extra={"email": email})
            raise InvalidCredentialsError()

        token = self.tokens.issue(user.id, user.email, user.role_names)
        logger.info("auth.login", extra={"user_id": user.id})
        return LoginResult(token=token, user=user)

    def logout(self, token: str) -> None:
        self.tokens.revoke(token)
