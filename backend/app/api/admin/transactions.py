"""
Transactions admin endpoints - review queue, manual entries and history
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api.params import Pagination, client_ip
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.transactions.models import Transaction, TransactionType, TransactionStatus
from app.infrastructure.database import get_db
from app.schemas.common import MessageResponse, ReasonRequest
from app.schemas.transactions import (
    TransactionResponse,
    TransactionListResponse,
    ManualTransactionRequest,
    TransactionUpdateRequest,
    BulkReviewRequest,
    BulkReviewResponse,
)
from app.services import transaction_processor, investment_service
from app.services.exceptions import ValidationError

router = APIRouter(prefix="/transactions")


def _is_investment_hold(transaction: Transaction) -> bool:
    """Pending investment transactions are reviewed through their investment"""
    return transaction.type == TransactionType.INVESTMENT and transaction.investment_id is not None


@router.get(
    "",
    response_model=TransactionListResponse,
    summary="List transactions",
    description="All transactions with filters (type, status, user, wallet, dates, reference search). Requires ADMIN role.",
)
async def list_transactions(
    type: Optional[TransactionType] = Query(default=None),
    status_filter: Optional[TransactionStatus] = Query(default=None, alias="status"),
    user_id: Optional[int] = Query(default=None),
    wallet_id: Optional[int] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Reference, payment reference or description contains"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TransactionListResponse:
    items, total = transaction_processor.list_transactions(
        db,
        wallet_id=wallet_id,
        user_id=user_id,
        transaction_type=type,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        search=search,
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
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get transaction",
    description="Get transaction detail. Requires ADMIN role.",
)
async def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TransactionResponse:
    return TransactionResponse.from_model(transaction_processor.get_transaction(db, transaction_id))


@router.post(
    "/store",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create manual transaction",
    description=(
        "Record a transaction on a wallet. Pending entries place the usual hold; completed entries "
        "go through the ledger immediately. Requires ADMIN role."
    ),
)
async def store_transaction(
    request: ManualTransactionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TransactionResponse:
    if request.type == TransactionType.INVESTMENT:
        raise ValidationError("Investment transactions are created through investments", field="type")
    transaction = transaction_processor.create_manual(
        db,
        wallet_id=request.wallet_id,
        transaction_type=request.type,
        amount=request.amount,
        status=request.status,
        processing_fee=request.processing_fee,
        payment_mode=request.payment_mode,
        payment_reference=request.payment_reference,
        description=request.description,
        notes=request.notes,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return TransactionResponse.from_model(transaction)


@router.put(
    "/{transaction_id}/update",
    response_model=TransactionResponse,
    summary="Update pending transaction",
    description="Edit a pending transaction. Completed history is immutable. Requires ADMIN role.",
)
async def update_transaction(
    transaction_id: int,
    request: TransactionUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TransactionResponse:
    transaction = transaction_processor.update_pending(
        db,
        transaction_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return TransactionResponse.from_model(transaction)


@router.delete(
    "/{transaction_id}",
    response_model=MessageResponse,
    summary="Delete transaction",
    description="Delete a non-completed transaction; a pending one releases its hold. Requires ADMIN role.",
)
async def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    transaction_processor.delete(db, transaction_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"Transaction {transaction_id} deleted")


@router.post(
    "/{transaction_id}/approve",
    response_model=TransactionResponse,
    summary="Approve transaction",
    description=(
        "Approve a pending transaction and apply it to the wallet. A ledger refusal leaves the "
        "transaction rejected with the reason. Requires ADMIN role."
    ),
)
async def approve_transaction(
    transaction_id: int,
    http_request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TransactionResponse:
    approver_id = get_user_id_from_principal(principal)
    transaction = transaction_processor.get_transaction(db, transaction_id)
    if _is_investment_hold(transaction) and transaction.is_pending:
        investment_service.approve_investment(db, transaction.investment_id, approver_id=approver_id)
        transaction = transaction_processor.get_transaction(db, transaction_id)
    else:
        transaction = transaction_processor.approve(
            db, transaction_id, approver_id=approver_id, ip_address=client_ip(http_request)
        )
    return TransactionResponse.from_model(transaction)


@router.post(
    "/{transaction_id}/reject",
    response_model=TransactionResponse,
    summary="Reject transaction",
    description="Reject a pending transaction with a mandatory reason; any hold is released. Requires ADMIN role.",
)
async def reject_transaction(
    transaction_id: int,
    request: ReasonRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> TransactionResponse:
    approver_id = get_user_id_from_principal(principal)
    transaction = transaction_processor.get_transaction(db, transaction_id)
    if _is_investment_hold(transaction) and transaction.is_pending:
        investment_service.reject_investment(
            db, transaction.investment_id, approver_id=approver_id, reason=request.reason
        )
        transaction = transaction_processor.get_transaction(db, transaction_id)
    else:
        transaction = transaction_processor.reject(
            db, transaction_id, approver_id=approver_id, reason=request.reason, ip_address=client_ip(http_request)
        )
    return TransactionResponse.from_model(transaction)


@router.post(
    "/bulk-review",
    response_model=BulkReviewResponse,
    summary="Approve or reject several transactions",
    description="Each id is reviewed in its own unit of work; one result per id. Requires ADMIN role.",
)
async def bulk_review(
    request: BulkReviewRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> BulkReviewResponse:
    if request.action == "reject" and not (request.reason or "").strip():
        raise ValidationError("Rejection reason is required", field="reason")
    results = transaction_processor.bulk_review(
        db,
        request.transaction_ids,
        action=request.action,
        approver_id=get_user_id_from_principal(principal),
        reason=request.reason,
    )
    return BulkReviewResponse(results=results)
