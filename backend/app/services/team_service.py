"""
Team service - sales/field teams and their members
"""

import logging
from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.teams.models import Team, TeamMember, TeamMemberRole, TeamStatus
from app.core.users.models import User
from app.services.audit import record_audit, snapshot
from app.services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TEAM_AUDIT_FIELDS = ("name", "description", "leader_id", "status")


def get_team(db: Session, team_id: int) -> Team:
    team = db.get(Team, team_id)
    if not team:
        raise NotFoundError("Team", team_id)
    return team


def list_teams(
    db: Session,
    *,
    status: Optional[TeamStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Team], int]:
    conditions = [Team.status == status] if status is not None else []
    items = db.execute(
        select(Team).where(*conditions).order_by(Team.name).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Team.id)).where(*conditions)).scalar_one()
    return list(items), total


def _ensure_user(db: Session, user_id: int, field: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise ValidationError(f"User {user_id} does not exist", field=field)
    return user


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    conditions = [Team.name == name]
    if exclude_id is not None:
        conditions.append(Team.id != exclude_id)
    if db.execute(select(Team.id).where(*conditions)).first():
        raise ValidationError("Team name already exists", field="name")


def _membership(db: Session, team_id: int, user_id: int) -> Optional[TeamMember]:
    return db.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    ).scalar_one_or_none()


def _set_leader(db: Session, team: Team, leader_id: Optional[int]) -> None:
    """The leader is always a member with the LEADER role"""
    for member in team.members:
        if member.role == TeamMemberRole.LEADER and member.user_id != leader_id:
            member.role = TeamMemberRole.MEMBER
    team.leader_id = leader_id
    if leader_id is None:
        return
    membership = _membership(db, team.id, leader_id)
    if membership is None:
        team.members.append(TeamMember(user_id=leader_id, role=TeamMemberRole.LEADER, status=TeamStatus.ACTIVE))
    else:
        membership.role = TeamMemberRole.LEADER


def create_team(
    db: Session,
    *,
    name: str,
    description: Optional[str] = None,
    leader_id: Optional[int] = None,
    member_ids: Optional[List[int]] = None,
    status: TeamStatus = TeamStatus.ACTIVE,
    actor_user_id: Optional[int] = None,
) -> Team:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Team name is required", field="name")
    _ensure_unique_name(db, name)
    if leader_id is not None:
        _ensure_user(db, leader_id, "leader_id")

    team = Team(name=name, description=description, status=status)
    db.add(team)
    db.flush()
    for user_id in dict.fromkeys(member_ids or []):
        if user_id == leader_id:
            continue
        _ensure_user(db, user_id, "member_ids")
        team.members.append(TeamMember(user_id=user_id, role=TeamMemberRole.MEMBER, status=TeamStatus.ACTIVE))
    db.flush()
    _set_leader(db, team, leader_id)
    db.flush()

    record_audit(
        db,
        action="TEAM_CREATED",
        entity_type="Team",
        entity_id=team.id,
        actor_user_id=actor_user_id,
        after=snapshot(team, TEAM_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(team)
    logger.info("Team created", extra={"team_id": team.id, "members": len(team.members)})
    return team


def update_team(db: Session, team_id: int, *, actor_user_id: Optional[int] = None, **changes: Any) -> Team:
    team = get_team(db, team_id)
    before = snapshot(team, TEAM_AUDIT_FIELDS)

    name = changes.get("name")
    if name is not None:
        name = name.strip()
        _ensure_unique_name(db, name, exclude_id=team.id)
        team.name = name
    if changes.get("description") is not None:
        team.description = changes["description"]
    if changes.get("status") is not None:
        team.status = changes["status"]
    if changes.get("leader_id") is not None:
        _ensure_user(db, changes["leader_id"], "leader_id")
        _set_leader(db, team, changes["leader_id"])

    record_audit(
        db,
        action="TEAM_UPDATED",
        entity_type="Team",
        entity_id=team.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(team, TEAM_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(team)
    return team


def delete_team(db: Session, team_id: int, *, actor_user_id: Optional[int] = None) -> None:
    team = get_team(db, team_id)
    record_audit(
        db,
        action="TEAM_DELETED",
        entity_type="Team",
        entity_id=team.id,
        actor_user_id=actor_user_id,
        before=snapshot(team, TEAM_AUDIT_FIELDS),
    )
    db.delete(team)
    db.commit()


def add_member(
    db: Session,
    team_id: int,
    *,
    user_id: int,
    role: TeamMemberRole = TeamMemberRole.MEMBER,
    actor_user_id: Optional[int] = None,
) -> Team:
    team = get_team(db, team_id)
    _ensure_user(db, user_id, "user_id")
    if _membership(db, team.id, user_id) is not None:
        raise ValidationError("User is already a member of this team", field="user_id")

    if role == TeamMemberRole.LEADER:
        _set_leader(db, team, user_id)
    else:
        team.members.append(TeamMember(user_id=user_id, role=role, status=TeamStatus.ACTIVE))

    record_audit(
        db,
        action="TEAM_MEMBER_ADDED",
        entity_type="Team",
        entity_id=team.id,
        actor_user_id=actor_user_id,
        after={"user_id": user_id, "role": role.value},
    )
    db.commit()
    db.refresh(team)
    return team


def remove_member(db: Session, team_id: int, user_id: int, *, actor_user_id: Optional[int] = None) -> Team:
    team = get_team(db, team_id)
    membership = _membership(db, team.id, user_id)
    if membership is None:
        raise NotFoundError("TeamMember", user_id)

    if team.leader_id == user_id:
        team.leader_id = None
    team.members.remove(membership)
    record_audit(
        db,
        action="TEAM_MEMBER_REMOVED",
        entity_type="Team",
        entity_id=team.id,
        actor_user_id=actor_user_id,
        before={"user_id": user_id, "role": membership.role.value},
    )
    db.commit()
    db.refresh(team)
    return team
