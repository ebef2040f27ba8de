"""
Customer-facing routes, mounted under API_PREFIX (/api)
"""

from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.investments import router as investments_router
from app.api.v1.wallet import router as wallet_router
from app.infrastructure.settings import get_settings

router = APIRouter(prefix=get_settings().API_PREFIX)

router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(wallet_router)
router.include_router(investments_router)
