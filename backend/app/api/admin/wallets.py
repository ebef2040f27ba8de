"""
Wallets admin endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.wallets.models import WalletStatus
from app.infrastructure.database import get_db
from app.infrastructure.settings import get_settings
from app.schemas.common import MessageResponse
from app.schemas.wallet import (
    WalletResponse,
    WalletListResponse,
    WalletCreateRequest,
    WalletUpdateRequest,
    ReconcileResponse,
)
from app.services import wallet_ledger

router = APIRouter(prefix="/wallets")


@router.get(
    "",
    response_model=WalletListResponse,
    summary="List wallets",
    description="List wallets, optionally by status. Requires ADMIN role.",
)
async def list_wallets(
    status_filter: Optional[WalletStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> WalletListResponse:
    settings = get_settings()
    wallets, total = wallet_ledger.list_wallets(db, status_filter, pagination.limit, pagination.offset)
    return WalletListResponse(
        items=[WalletResponse.from_model(w, settings.CURRENCY) for w in wallets],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.get(
    "/{wallet_id}",
    response_model=WalletResponse,
    summary="Get wallet",
    description="Get wallet balances and totals. Requires ADMIN role.",
)
async def get_wallet(
    wallet_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> WalletResponse:
    return WalletResponse.from_model(wallet_ledger.get_wallet(db, wallet_id), get_settings().CURRENCY)


@router.post(
    "/store",
    response_model=WalletResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create wallet",
    description="Open a wallet for a user that has none. Balances start at zero. Requires ADMIN role.",
)
async def store_wallet(
    request: WalletCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> WalletResponse:
    wallet = wallet_ledger.create_wallet(
        db,
        user_id=request.user_id,
        status=request.status or WalletStatus.ACTIVE,
        notes=request.notes,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return WalletResponse.from_model(wallet, get_settings().CURRENCY)


@router.put(
    "/{wallet_id}/update",
    response_model=WalletResponse,
    summary="Update wallet",
    description="Change wallet status (active, frozen, suspended) or notes. Balances only move through transactions. Requires ADMIN role.",
)
async def update_wallet(
    wallet_id: int,
    request: WalletUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> WalletResponse:
    wallet = wallet_ledger.update_wallet(
        db,
        wallet_id,
        status=request.status,
        notes=request.notes,
        reason=request.reason,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return WalletResponse.from_model(wallet, get_settings().CURRENCY)


@router.delete(
    "/{wallet_id}",
    response_model=MessageResponse,
    summary="Delete wallet",
    description="Delete an empty wallet without transactions. Requires ADMIN role.",
)
async def delete_wallet(
    wallet_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    wallet_ledger.delete_wallet(db, wallet_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"Wallet {wallet_id} deleted")


@router.get(
    "/{wallet_id}/reconcile",
    response_model=ReconcileResponse,
    summary="Reconcile wallet",
    description="Recompute totals and holds from the transaction history and report any drift. Read-only. Requires ADMIN role.",
)
async def reconcile_wallet(
    wallet_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ReconcileResponse:
    return ReconcileResponse(**wallet_ledger.reconcile(db, wallet_id))
