"""
User management API routes.

SECURITY: Listing users and changing roles is admin-only. A user may read
their own record.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from docflow.api.schemas.users import UpdateRolesRequest, UserResponse
from docflow.auth.context import AuthContext, get_auth_context, require_roles
from docflow.database.session import get_db_session
from docflow.models.user import UserRole
from docflow.users.service import InvalidRoleError, UserNotFoundError, UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_service(db_session=Depends(get_db_session)) -> UserService:
    return UserService(db_session)


@router.get("", response_model=List[UserResponse])
async def list_users(
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN)),
    users: UserService = Depends(get_user_service),
):
    return [UserResponse.model_validate(user) for user in users.find_all()]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    auth: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service),
):
    if user_id != auth.user_id and not auth.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to perform this action",
        )

    try:
        user = users.find_by_id(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}/roles",
    response_model=UserResponse,
    responses={400: {"description": "Unknown role"}, 404: {"description": "User not found"}},
)
async def update_user_roles(
    user_id: int,
    body: UpdateRolesRequest,
    auth: AuthContext = Depends(require_roles(UserRole.ADMIN)),
    users: UserService = Depends(get_user_service),
):
    """Add roles to a user (existing roles are kept)."""
    try:
        user = users.update_roles(user_id, [role.value for role in body.roles])
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidRoleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info(
        "users.roles_changed_by_admin",
        extra={"user_id": user_id, "admin_id": auth.user_id, "roles": user.roles},
    )
    return UserResponse.model_validate(user)
