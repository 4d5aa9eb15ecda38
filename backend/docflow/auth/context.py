"""
Request authentication context.

get_auth_context resolves the bearer token of a request into an
AuthContext. Routes receive the context through Depends and pass
user_id / is_admin explicitly to services; nothing is stored globally.

Usage:
    @router.get("/documents")
    async def list_documents(auth: AuthContext = Depends(get_auth_context)):
        ...

    @router.post("/documents", dependencies=[Depends(require_roles("admin", "editor"))])
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docflow.auth.token_service import AuthError, TokenService
from docflow.models.user import UserRole

logger = logging.getLogger(__name__)

# Security scheme for extracting Bearer token
security = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """Authenticated principal of a request."""
    user_id: int
    email: str
    roles: List[str] = field(default_factory=list)
    token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return UserRole.ADMIN.value in self.roles

    def has_any_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)


def get_token_service() -> TokenService:
    """FastAPI dependency for the token service."""
    return TokenService()


async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> AuthContext:
    """
    Resolve the bearer token into an AuthContext.

    Raises 401 when the token is missing, invalid, expired or revoked.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = token_service.validate(credentials.credentials)
    except AuthError as e:
        logger.info("auth.token_rejected", extra={"reason": e.message})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthContext(
        user_id=payload.user_id,
        email=payload.email,
        roles=payload.roles,
        token=credentials.credentials,
    )


def require_roles(*roles: str) -> Callable:
    """
    Dependency factory requiring at least one of the given roles.

    Raises 403 if the user holds none of them.
    """
    role_names = [getattr(role, "value", role) for role in roles]

    async def dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not auth.has_any_role(*role_names):
            logger.warning(
                "Role check failed",
                extra={
                    "user_id": auth.user_id,
                    "required_roles": role_names,
                    "user_roles": auth.roles,
                },
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action",
            )
        return auth

    return dependency
