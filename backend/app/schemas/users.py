"""
User and team admin schemas
"""

from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from app.core.security.models import Role
from app.core.teams.models import Team, TeamMemberRole, TeamStatus
from app.core.users.models import User, UserStatus
from app.schemas.common import iso, money


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    status: str
    kyc_verified: bool
    wallet_id: Optional[int] = None
    wallet_balance: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            role=user.role.value,
            status=user.status.value,
            kyc_verified=user.kyc_verified,
            wallet_id=user.wallet.id if user.wallet else None,
            wallet_balance=money(user.wallet.balance) if user.wallet else None,
            created_at=iso(user.created_at),
        )


class UserListResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    per_page: int


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: Optional[str] = Field(None, min_length=8)
    phone: Optional[str] = Field(None, max_length=50)
    role: Role = Role.USER
    status: UserStatus = UserStatus.ACTIVE
    kyc_verified: bool = False


class UserUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    phone: Optional[str] = Field(None, max_length=50)
    role: Optional[Role] = None
    status: Optional[UserStatus] = None
    kyc_verified: Optional[bool] = None


class TeamMemberResponse(BaseModel):
    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    role: str
    status: str


class TeamResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    leader_id: Optional[int] = None
    status: str
    members: List[TeamMemberResponse]

    @classmethod
    def from_model(cls, team: Team) -> "TeamResponse":
        return cls(
            id=team.id,
            name=team.name,
            description=team.description,
            leader_id=team.leader_id,
            status=team.status.value,
            members=[
                TeamMemberResponse(
                    user_id=member.user_id,
                    name=member.user.name if member.user else None,
                    email=member.user.email if member.user else None,
                    role=member.role.value,
                    status=member.status.value,
                )
                for member in team.members
            ],
        )


class TeamListResponse(BaseModel):
    items: List[TeamResponse]
    total: int
    page: int
    per_page: int


class TeamCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    leader_id: Optional[int] = None
    member_ids: List[int] = Field(default_factory=list)
    status: TeamStatus = TeamStatus.ACTIVE


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    leader_id: Optional[int] = None
    status: Optional[TeamStatus] = None


class TeamMemberRequest(BaseModel):
    user_id: int
    role: TeamMemberRole = TeamMemberRole.MEMBER
