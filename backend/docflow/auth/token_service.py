"""
JWT access tokens.

Issues HS256 tokens for authenticated users and validates them on every
request. Logout revokes a token by adding it to a TokenBlacklist.

Security Requirements:
- Token lifetime: JWT_EXPIRES_MINUTES (default 24 hours)
- Issuer checked on every validation
- Revoked tokens rejected until they expire

The blacklist is process memory: it does not survive restarts and is not
shared between instances.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Dict, List, Optional

import jwt
from pydantic import BaseModel

from docflow.config.settings import get_settings

logger = logging.getLogger(__name__)


class TokenConfig(BaseModel):
    """Configuration for access token issuance."""
    jwt_secret: str
    algorithm: str = "HS256"
    lifetime_minutes: int = 1440
    issuer: str = "docflow"


class TokenPayload(BaseModel):
    """Decoded access token payload."""
    sub: str  # user id
    email: str
    roles: List[str]
    iss: str
    iat: int
    exp: int
    jti: str

    @property
    def user_id(self) -> int:
        return int(self.sub)


class IssuedToken(BaseModel):
    """Result of token issuance."""
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class AuthError(Exception):
    """Base exception for authentication errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCredentialsError(AuthError):
    """Email or password did not match."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class TokenRevokedError(AuthError):
    """Token was revoked by logout."""

    def __init__(self, message: str = "Token has been revoked"):
        super().__init__(message)


class TokenValidationError(AuthError):
    """Token is malformed, expired or signed with another key."""


class TokenBlacklist:
    """
    Revoked tokens, kept until their own expiry.

    Lifecycle: revoke() on logout, is_revoked() on every validation,
    purge_expired() drops entries whose token would be rejected anyway,
    clear() resets state (tests, shutdown).
    """

    def __init__(self):
        self._entries: Dict[str, datetime] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def revoke(self, token: str, expires_at: datetime) -> None:
        with self._lock:
            self._entries[token] = expires_at

    def is_revoked(self, token: str) -> bool:
        with self._lock:
            return token in self._entries

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop entries past expiry. Returns the number removed."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            expired = [token for token, exp in self._entries.items() if exp <= now]
            for token in expired:
                del self._entries[token]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_blacklist = TokenBlacklist()


def get_token_blacklist() -> TokenBlacklist:
    """Get the process-wide token blacklist."""
    return _blacklist


class TokenService:
    """Issues, validates and revokes access tokens."""

    def __init__(
        self,
        config: Optional[TokenConfig] = None,
        blacklist: Optional[TokenBlacklist] = None,
    ):
        """
        Args:
            config: Token configuration. If not provided, loads from settings.
            blacklist: Revocation store (process-wide blacklist if not provided)
        """
        if config:
            self.config = config
        else:
            settings = get_settings()
            self.config = TokenConfig(
                jwt_secret=settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                lifetime_minutes=settings.jwt_expires_minutes,
                issuer=settings.jwt_issuer,
            )
        self.blacklist = blacklist if blacklist is not None else get_token_blacklist()

    def issue(self, user_id: int, email: str, roles: List[str]) -> IssuedToken:
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=self.config.lifetime_minutes)

        payload = {
            "sub": str(user_id),
            "email": email,
            "roles": list(roles),
            "iss": self.config.issuer,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.algorithm)

        logger.info(
            "auth.token_issued",
            extra={"user_id": user_id, "expires_at": exp.isoformat()},
        )
        return IssuedToken(access_token=token, expires_at=exp)

    def validate(self, token: str) -> TokenPayload:
        """
        Validate and decode an access token.

        Raises:
            TokenRevokedError: If the token was revoked
            TokenValidationError: If the token is invalid or expired
        """
        if self.blacklist.is_revoked(token):
            raise TokenRevokedError()

        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
            )
            return TokenPayload(**payload)
        except jwt.ExpiredSignatureError:
            raise TokenValidationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenValidationError(f"Invalid token: {str(e)}")

    def revoke(self, token: str) -> None:
        """Revoke a token until its expiry. Undecodable tokens are revoked for one lifetime."""
        try:
            claims = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.algorithm],
                options={"verify_exp": False, "verify_iss": False},
            )
            expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        except (jwt.InvalidTokenError, KeyError):
            expires_at = datetime.now(timezone.utc) + timedelta(
                minutes=self.config.lifetime_minutes
            )

        self.blacklist.revoke(token, expires_at)
        purged = self.blacklist.purge_expired()
        logger.info("auth.token_revoked", extra={"purged_expired": purged})
