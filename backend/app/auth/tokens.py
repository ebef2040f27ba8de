"""
JWT access tokens (HS256, shared secret)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
import jwt as pyjwt

from app.core.security.models import Role
from app.core.users.models import User
from app.infrastructure.settings import get_settings


def roles_for(user: User) -> list:
    """Administrators also carry the USER role so customer endpoints stay reachable"""
    if user.role == Role.ADMIN:
        return [Role.USER.value, Role.ADMIN.value]
    return [user.role.value]


def create_access_token(user: User) -> str:
    """Create JWT access token"""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "roles": roles_for(user),
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
    }
    return pyjwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises pyjwt.ExpiredSignatureError / pyjwt.InvalidTokenError"""
    settings = get_settings()
    return pyjwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
