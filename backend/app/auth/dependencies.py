"""
FastAPI dependencies that turn a Bearer token into a Principal and
enforce roles.

    principal: Principal = Depends(require_admin_role())
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
import jwt as pyjwt

from app.auth.principal import Principal
from app.auth.tokens import decode_access_token
from app.core.security.models import Role
from app.core.users.models import User, UserStatus
from app.infrastructure.database import get_db


class AuthError(HTTPException):
    """Rendered by the HTTP exception handler in the standard error envelope"""

    def __init__(self, code: str, message: str, status_code: int = status.HTTP_401_UNAUTHORIZED):
        challenge = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
        super().__init__(
            status_code=status_code,
            detail={"error": {"code": code, "message": message}},
            headers=challenge,
        )


def decode_bearer(authorization: Optional[str]) -> Dict[str, Any]:
    """Validate an Authorization header value and return the token claims"""
    if not authorization:
        raise AuthError("AUTHORIZATION_MISSING", "Authorization header missing")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("INVALID_AUTHORIZATION", "Expected 'Authorization: Bearer <token>'")

    try:
        return decode_access_token(token.strip())
    except pyjwt.ExpiredSignatureError:
        raise AuthError("TOKEN_EXPIRED", "Token expired")
    except pyjwt.InvalidTokenError as e:
        raise AuthError("INVALID_TOKEN", f"Invalid token: {e}")


async def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Principal:
    """
    Resolve the caller. The token subject must still exist and be active;
    a suspended account is refused even with an unexpired token.
    """
    claims = decode_bearer(authorization)

    subject = str(claims.get("sub") or "")
    user = db.get(User, int(subject)) if subject.isdigit() else None
    if user is None:
        raise AuthError("INVALID_TOKEN", "Token subject does not exist")
    if user.status != UserStatus.ACTIVE:
        raise AuthError("USER_INACTIVE", "User account is not active", status.HTTP_403_FORBIDDEN)

    principal = Principal(
        subject=subject,
        email=claims.get("email") or user.email,
        roles=list(claims.get("roles") or [Role.USER.value]),
        raw_claims=claims,
    )
    # Read by RequestLoggingMiddleware
    request.state.principal = principal
    return principal


def require_roles(*accepted: Role):
    """Dependency factory: the caller needs at least one of ``accepted``"""
    names = [role.value for role in accepted]

    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not any(principal.has_role(name) for name in names):
            raise AuthError(
                "FORBIDDEN",
                f"Requires one of: {', '.join(names)}",
                status.HTTP_403_FORBIDDEN,
            )
        return principal

    return _check


def require_user_role():
    return require_roles(Role.USER, Role.ADMIN)


def require_admin_role():
    return require_roles(Role.ADMIN)


def get_user_id_from_principal(principal: Principal) -> int:
    try:
        return int(principal.subject)
    except (TypeError, ValueError):
        raise AuthError("INVALID_TOKEN", "Token subject is not a user id")
