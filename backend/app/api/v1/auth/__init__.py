"""
Customer registration and login.

Registration opens the wallet in the same commit as the account. Login
returns an HS256 access token; failed attempts are logged as security
events carrying the email only.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.tokens import create_access_token, roles_for
from app.core.security.models import Role
from app.core.users.models import UserStatus
from app.infrastructure.database import get_db
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from app.services import user_service
from app.services.exceptions import AuthenticationError, UserInactive
from app.utils.security_logging import log_security_event

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open an investor account",
)
async def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    user = user_service.create_user(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
        role=Role.USER,
        status=UserStatus.ACTIVE,
    )
    return RegisterResponse(user_id=user.id, wallet_id=user.wallet.id, email=user.email)


@router.post("/login", response_model=LoginResponse, summary="Exchange credentials for an access token")
async def login(payload: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    try:
        user = user_service.authenticate(db, payload.email, payload.password)
    except (AuthenticationError, UserInactive) as e:
        log_security_event("LOGIN_FAILED", {"email": payload.email, "reason": e.code})
        raise

    logger.info("User logged in", extra={"user_id": user.id})
    return LoginResponse(
        access_token=create_access_token(user),
        user_id=user.id,
        email=user.email,
        roles=roles_for(user),
    )
