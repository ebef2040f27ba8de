"""
Wallet API endpoints - summary, history, deposits and withdrawals
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api.params import Pagination, client_ip
from app.auth.dependencies import require_user_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.security.models import Role
from app.core.transactions.models import TransactionType, TransactionStatus
from app.infrastructure.database import get_db
from app.infrastructure.settings import get_settings
from app.schemas.payments import PaymentMethodResponse
from app.schemas.transactions import TransactionResponse, TransactionListResponse
from app.schemas.wallet import (
    WalletResponse,
    WalletSummary,
    WalletSummaryResponse,
    DepositRequest,
    WithdrawRequest,
)
from app.services import wallet_ledger, transaction_processor
from app.services.payment_helpers import list_payment_methods

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get(
    "/summary",
    response_model=WalletSummaryResponse,
    summary="Get wallet summary",
    description="Balances, running totals, recent transactions and usable payment methods. Requires USER role.",
)
async def get_wallet_summary(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> WalletSummaryResponse:
    """
    Wallet dashboard data for the authenticated user.

    available_balance = balance - frozen_amount - pending_amount.
    Pending deposits are reported separately and are not part of the balance.
    """
    settings = get_settings()
    user_id = get_user_id_from_principal(principal)
    wallet = wallet_ledger.ensure_wallet(db, user_id)
    db.commit()

    summary = wallet_ledger.get_summary(db, wallet.id)
    recent, _ = transaction_processor.list_transactions(
        db, wallet_id=wallet.id, limit=settings.RECENT_TRANSACTIONS_LIMIT
    )
    return WalletSummaryResponse(
        wallet=WalletResponse.from_model(wallet, settings.CURRENCY),
        recent_transactions=[TransactionResponse.from_model(t) for t in recent],
        summary=WalletSummary.from_summary(summary),
        payment_methods=[PaymentMethodResponse.from_model(pm) for pm in list_payment_methods(db)],
    )


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    summary="List wallet transactions",
    description="Transaction history of the authenticated user, newest first. Requires USER role.",
)
async def list_wallet_transactions(
    type: Optional[TransactionType] = Query(default=None, description="Filter by transaction type"),
    status: Optional[TransactionStatus] = Query(default=None, description="Filter by status"),
    start_date: Optional[datetime] = Query(default=None, description="Created at or after (ISO 8601)"),
    end_date: Optional[datetime] = Query(default=None, description="Created at or before (ISO 8601)"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> TransactionListResponse:
    user_id = get_user_id_from_principal(principal)
    items, total = transaction_processor.list_transactions(
        db,
        user_id=user_id,
        transaction_type=type,
        status=status,
        start_date=start_date,
        end_date=end_date,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return TransactionListResponse(
        items=[TransactionResponse.from_model(t) for t in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.get(
    "/transactions/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get transaction detail",
    description="A single transaction of the authenticated user. Requires USER role.",
)
async def get_wallet_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> TransactionResponse:
    user_id = get_user_id_from_principal(principal)
    transaction = transaction_processor.get_transaction(db, transaction_id, user_id=user_id)
    return TransactionResponse.from_model(transaction)


@router.get(
    "/payment-methods",
    response_model=List[PaymentMethodResponse],
    summary="List payment methods",
    description="Active payment methods with their limits and fees. Requires USER role.",
)
async def get_payment_methods(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> List[PaymentMethodResponse]:
    return [PaymentMethodResponse.from_model(pm) for pm in list_payment_methods(db)]


@router.post(
    "/deposit",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create deposit",
    description=(
        "Create a deposit. Deposits below the auto-approval ceiling are completed immediately when "
        "auto_approve is requested; all others wait for admin approval. Requires USER role."
    ),
)
async def create_deposit(
    request: DepositRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> TransactionResponse:
    user_id = get_user_id_from_principal(principal)
    wallet = wallet_ledger.get_wallet_for_user(db, user_id)
    transaction = transaction_processor.create_deposit(
        db,
        wallet_id=wallet.id,
        amount=request.amount,
        payment_method_id=request.payment_method_id,
        payment_mode=request.payment_mode,
        payment_reference=request.payment_reference,
        notes=request.notes,
        auto_approve=request.auto_approve,
        actor_user_id=user_id,
        actor_role=Role.USER,
        ip_address=client_ip(http_request),
    )
    return TransactionResponse.from_model(transaction)


@router.post(
    "/withdraw",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request withdrawal",
    description=(
        "Request a withdrawal. The amount is frozen until an admin approves or rejects it. "
        "Requests above the available balance are rejected. Requires USER role."
    ),
)
async def create_withdrawal(
    request: WithdrawRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> TransactionResponse:
    user_id = get_user_id_from_principal(principal)
    wallet = wallet_ledger.get_wallet_for_user(db, user_id)
    transaction = transaction_processor.create_withdrawal(
        db,
        wallet_id=wallet.id,
        amount=request.amount,
        payment_method_id=request.payment_method_id,
        payment_mode=request.payment_mode,
        bank_account=request.bank_account,
        upi_id=request.upi_id,
        notes=request.notes,
        actor_user_id=user_id,
        actor_role=Role.USER,
        ip_address=client_ip(http_request),
    )
    return TransactionResponse.from_model(transaction)
