"""
Investment API endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_user_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.investments.models import InvestmentStatus
from app.infrastructure.database import get_db
from app.schemas.investments import InvestmentRequest, InvestmentResponse, InvestmentListResponse
from app.services import investment_service

router = APIRouter(prefix="/investments", tags=["investments"])


@router.get(
    "",
    response_model=InvestmentListResponse,
    summary="List my investments",
    description="Investments of the authenticated user, newest first. Requires USER role.",
)
async def list_my_investments(
    status_filter: Optional[InvestmentStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> InvestmentListResponse:
    user_id = get_user_id_from_principal(principal)
    items, total = investment_service.list_investments(
        db, user_id=user_id, status=status_filter, limit=pagination.limit, offset=pagination.offset
    )
    return InvestmentListResponse(
        items=[InvestmentResponse.from_model(i) for i in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.post(
    "",
    response_model=InvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invest in a property",
    description=(
        "Create a pending investment. The amount is reserved in the wallet until an admin "
        "approves (funds debited) or rejects (reservation released). Requires USER role."
    ),
)
async def create_investment(
    request: InvestmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_user_role()),
) -> InvestmentResponse:
    """
    Create investment request.

    Raises 422 INSUFFICIENT_FUNDS when the available balance does not cover
    the amount, 409 WALLET_NOT_ACTIVE for a frozen or suspended wallet.
    """
    user_id = get_user_id_from_principal(principal)
    investment = investment_service.create_investment(
        db,
        user_id=user_id,
        amount=request.amount,
        property_id=request.property_id,
        plot_id=request.plot_id,
        expected_return=request.expected_return,
        return_rate=request.return_rate,
        maturity_date=request.maturity_date,
        notes=request.notes,
        actor_user_id=user_id,
    )
    return InvestmentResponse.from_model(investment)
