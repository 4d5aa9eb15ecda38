"""
Auth API routes: registration, login, logout and current user.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from docflow.api.schemas.users import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from docflow.auth.context import AuthContext, get_auth_context, get_token_service
from docflow.auth.service import AuthService
from docflow.auth.token_service import InvalidCredentialsError, TokenService
from docflow.database.session import get_db_session
from docflow.users.service import UserAlreadyExistsError, UserNotFoundError, UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_auth_service(
    db_session=Depends(get_db_session),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db_session, token_service)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered"}},
)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create a viewer account."""
    try:
        user = auth_service.register(body.email, body.password)
    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        result = auth_service.login(body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    return LoginResponse(
        access_token=result.token.access_token,
        token_type=result.token.token_type,
        expires_at=result.token.expires_at,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    auth: AuthContext = Depends(get_auth_context),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Revoke the presented token."""
    auth_service.logout(auth.token)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def me(
    auth: AuthContext = Depends(get_auth_context),
    db_session=Depends(get_db_session),
):
    try:
        user = UserService(db_session).find_by_id(auth.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return UserResponse.model_validate(user)
