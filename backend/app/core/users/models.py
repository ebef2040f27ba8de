"""
User model
"""

from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel
from app.core.security.models import Role


class UserStatus(str, enum.Enum):
    """User status enum"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(BaseModel):
    """User model - customers and administrators share one table, split by role"""

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)

    # bcrypt hash; NULL for users created by an admin without a password
    password_hash = Column(String(255), nullable=True)

    role = Column(SQLEnum(Role, name="user_role", create_constraint=True), nullable=False, default=Role.USER, index=True)
    status = Column(SQLEnum(UserStatus, name="user_status", create_constraint=True), nullable=False, default=UserStatus.ACTIVE, index=True)
    kyc_verified = Column(Boolean, nullable=False, default=False)

    # Relationships
    wallet = relationship("Wallet", back_populates="user", uselist=False, lazy="select")
    investments = relationship("Investment", back_populates="user", lazy="select")
    profits = relationship("Profit", foreign_keys="Profit.user_id", back_populates="user", lazy="select")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
