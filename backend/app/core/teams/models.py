"""
Team and TeamMember models
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Text, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel


class TeamStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TeamMemberRole(str, enum.Enum):
    MEMBER = "member"
    LEADER = "leader"


class Team(BaseModel):
    """Team model"""

    __tablename__ = "teams"

    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    leader_id = Column(Integer, ForeignKey("users.id", name="fk_teams_leader_id"), nullable=True, index=True)
    status = Column(SQLEnum(TeamStatus, name="team_status", create_constraint=True), nullable=False, default=TeamStatus.ACTIVE)

    # Relationships
    leader = relationship("User", foreign_keys=[leader_id])
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan", lazy="select")


class TeamMember(BaseModel):
    """TeamMember model"""

    __tablename__ = "team_members"

    team_id = Column(Integer, ForeignKey("teams.id", name="fk_team_members_team_id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", name="fk_team_members_user_id"), nullable=False, index=True)
    role = Column(SQLEnum(TeamMemberRole, name="team_member_role", create_constraint=True), nullable=False, default=TeamMemberRole.MEMBER)
    status = Column(SQLEnum(TeamStatus, name="team_member_status", create_constraint=True), nullable=False, default=TeamStatus.ACTIVE)

    # Relationships
    team = relationship("Team", back_populates="members")
    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint('team_id', 'user_id', name='uq_team_members_team_user'),
    )
