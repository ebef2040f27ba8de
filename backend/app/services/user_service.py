"""
User management - registration and admin CRUD

Every user gets a wallet on creation.
"""

import logging
from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from app.auth.passwords import hash_password, verify_password
from app.core.compliance.models import AuditLog
from app.core.investments.models import Investment
from app.core.security.models import Role
from app.core.teams.models import Team, TeamMember
from app.core.transactions.models import Transaction
from app.core.users.models import User, UserStatus
from app.services import wallet_ledger
from app.services.audit import record_audit, snapshot
from app.services.exceptions import (
    AuthenticationError,
    InvalidStateTransition,
    NotFoundError,
    UserInactive,
    ValidationError,
)

logger = logging.getLogger(__name__)

USER_AUDIT_FIELDS = ("name", "email", "phone", "role", "status", "kyc_verified")

_MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _validate_password(password: str) -> None:
    if len(password or "") < _MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {_MIN_PASSWORD_LENGTH} characters", field="password")


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == _normalize_email(email))).scalar_one_or_none()


def list_users(
    db: Session,
    *,
    search: Optional[str] = None,
    role: Optional[Role] = None,
    status: Optional[UserStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[User], int]:
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern)))
    if role is not None:
        conditions.append(User.role == role)
    if status is not None:
        conditions.append(User.status == status)
    items = db.execute(
        select(User).where(*conditions).order_by(User.id.desc()).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(User.id)).where(*conditions)).scalar_one()
    return list(items), total


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    password: Optional[str] = None,
    phone: Optional[str] = None,
    role: Role = Role.USER,
    status: UserStatus = UserStatus.ACTIVE,
    kyc_verified: bool = False,
    actor_user_id: Optional[int] = None,
) -> User:
    """
    Create a user and its wallet in one unit of work.

    Registration passes a password; admins may create users without one.
    """
    email = _normalize_email(email)
    if not (name or "").strip():
        raise ValidationError("Name is required", field="name")
    if get_user_by_email(db, email):
        raise ValidationError("User with this email already exists", field="email")
    if password is not None:
        _validate_password(password)

    user = User(
        name=name.strip(),
        email=email,
        phone=phone,
        password_hash=hash_password(password) if password else None,
        role=role,
        status=status,
        kyc_verified=kyc_verified,
    )
    db.add(user)
    db.flush()
    wallet_ledger.ensure_wallet(db, user.id)

    record_audit(
        db,
        action="USER_CREATED",
        entity_type="User",
        entity_id=user.id,
        actor_user_id=actor_user_id,
        actor_role=Role.ADMIN if actor_user_id else Role.USER,
        after=snapshot(user, USER_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Same error for unknown email and wrong password"""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if user.status != UserStatus.ACTIVE:
        raise UserInactive(f"User account is {user.status.value}")
    return user


def update_user(db: Session, user_id: int, *, actor_user_id: Optional[int] = None, **changes: Any) -> User:
    user = get_user(db, user_id)
    before = snapshot(user, USER_AUDIT_FIELDS)

    password = changes.pop("password", None)
    if password is not None:
        _validate_password(password)
        user.password_hash = hash_password(password)

    email = changes.pop("email", None)
    if email is not None:
        email = _normalize_email(email)
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise ValidationError("User with this email already exists", field="email")
        user.email = email

    for key in ("name", "phone", "role", "status", "kyc_verified"):
        value = changes.get(key)
        if value is not None:
            setattr(user, key, value)

    record_audit(
        db,
        action="USER_UPDATED",
        entity_type="User",
        entity_id=user.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(user, USER_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, *, actor_user_id: Optional[int] = None) -> None:
    """
    Delete a user without financial or audit history, together with its
    empty wallet and team memberships. Users with history are deactivated
    through update_user instead.
    """
    user = get_user(db, user_id)
    if actor_user_id is not None and actor_user_id == user.id:
        raise InvalidStateTransition("You cannot delete your own account", details={"user_id": user.id})

    history = {
        "transactions": db.execute(select(func.count(Transaction.id)).where(Transaction.user_id == user.id)).scalar_one(),
        "investments": db.execute(select(func.count(Investment.id)).where(Investment.user_id == user.id)).scalar_one(),
        "audit_actions": db.execute(select(func.count(AuditLog.id)).where(AuditLog.actor_user_id == user.id)).scalar_one(),
    }
    if any(history.values()):
        raise InvalidStateTransition(
            "User has history and cannot be deleted; deactivate the account instead",
            details={"user_id": user.id, **history},
        )

    record_audit(
        db,
        action="USER_DELETED",
        entity_type="User",
        entity_id=user.id,
        actor_user_id=actor_user_id,
        before=snapshot(user, USER_AUDIT_FIELDS),
    )
    for membership in db.execute(select(TeamMember).where(TeamMember.user_id == user.id)).scalars().all():
        db.delete(membership)
    for team in db.execute(select(Team).where(Team.leader_id == user.id)).scalars().all():
        team.leader_id = None
    if user.wallet is not None:
        db.delete(user.wallet)
    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id, "actor_user_id": actor_user_id})
