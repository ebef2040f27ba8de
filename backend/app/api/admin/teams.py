"""
Teams admin endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.teams.models import TeamStatus
from app.infrastructure.database import get_db
from app.schemas.common import MessageResponse
from app.schemas.users import (
    TeamResponse,
    TeamListResponse,
    TeamCreateRequest,
    TeamUpdateRequest,
    TeamMemberRequest,
)
from app.services import team_service

router = APIRouter(prefix="/teams")


@router.get("", response_model=TeamListResponse, summary="List teams")
async def list_teams(
    status_filter: Optional[TeamStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TeamListResponse:
    items, total = team_service.list_teams(db, status=status_filter, limit=pagination.limit, offset=pagination.offset)
    return TeamListResponse(
        items=[TeamResponse.from_model(t) for t in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.get("/{team_id}", response_model=TeamResponse, summary="Get team")
async def get_team(
    team_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TeamResponse:
    return TeamResponse.from_model(team_service.get_team(db, team_id))


@router.post(
    "/store",
    response_model=TeamResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create team",
    description="Create a team with optional leader and members. The leader is always a member. Requires ADMIN role.",
)
async def store_team(
    request: TeamCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TeamResponse:
    team = team_service.create_team(
        db, actor_user_id=get_user_id_from_principal(principal), **request.model_dump()
    )
    return TeamResponse.from_model(team)


@router.put("/{team_id}/update", response_model=TeamResponse, summary="Update team")
async def update_team(
    team_id: int,
    request: TeamUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TeamResponse:
    team = team_service.update_team(
        db,
        team_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return TeamResponse.from_model(team)


@router.delete("/{team_id}", response_model=MessageResponse, summary="Delete team")
async def delete_team(
    team_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    team_service.delete_team(db, team_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"Team {team_id} deleted")


@router.post(
    "/{team_id}/members",
    response_model=TeamResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add team member",
)
async def add_member(
    team_id: int,
    request: TeamMemberRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TeamResponse:
    team = team_service.add_member(
        db,
        team_id,
        user_id=request.user_id,
        role=request.role,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return TeamResponse.from_model(team)


@router.delete("/{team_id}/members/{user_id}", response_model=TeamResponse, summary="Remove team member")
async def remove_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TeamResponse:
    team = team_service.remove_member(db, team_id, user_id, actor_user_id=get_user_id_from_principal(principal))
    return TeamResponse.from_model(team)
