"""
Users admin endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.security.models import Role
from app.core.users.models import UserStatus
from app.infrastructure.database import get_db
from app.schemas.common import MessageResponse
from app.schemas.users import UserResponse, UserListResponse, UserCreateRequest, UserUpdateRequest
from app.services import user_service

router = APIRouter(prefix="/users")


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="List users with optional search, role and status filters. Requires ADMIN role.",
)
async def list_users(
    search: Optional[str] = Query(default=None, description="Name, email or phone contains"),
    role: Optional[Role] = Query(default=None),
    status_filter: Optional[UserStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> UserListResponse:
    """List all users"""
    users, total = user_service.list_users(
        db, search=search, role=role, status=status_filter, limit=pagination.limit, offset=pagination.offset
    )
    return UserListResponse(
        items=[UserResponse.from_model(u) for u in users],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user",
    description="Get user detail with wallet id and balance. Requires ADMIN role.",
)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> UserResponse:
    return UserResponse.from_model(user_service.get_user(db, user_id))


@router.post(
    "/store",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user (and its wallet). Requires ADMIN role.",
)
async def store_user(
    request: UserCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> UserResponse:
    user = user_service.create_user(
        db,
        **request.model_dump(),
        actor_user_id=get_user_id_from_principal(principal),
    )
    return UserResponse.from_model(user)


@router.put(
    "/{user_id}/update",
    response_model=UserResponse,
    summary="Update user",
    description="Update profile, role, status, KYC flag or password. Requires ADMIN role.",
)
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> UserResponse:
    user = user_service.update_user(
        db,
        user_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return UserResponse.from_model(user)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
    description="Delete a user without financial history. Users with history must be deactivated instead. Requires ADMIN role.",
)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    user_service.delete_user(db, user_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"User {user_id} deleted")
