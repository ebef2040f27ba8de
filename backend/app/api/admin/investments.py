"""
Investments admin endpoints - review and lifecycle
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.investments.models import InvestmentStatus
from app.infrastructure.database import get_db
from app.schemas.common import ReasonRequest, OptionalReasonRequest
from app.schemas.investments import (
    InvestmentResponse,
    InvestmentListResponse,
    CompleteInvestmentRequest,
    ReinvestRequest,
)
from app.services import investment_service

router = APIRouter(prefix="/investments")


@router.get(
    "",
    response_model=InvestmentListResponse,
    summary="List investments",
    description="List investments by user, property or status. Requires ADMIN role.",
)
async def list_investments(
    user_id: Optional[int] = Query(default=None),
    property_id: Optional[int] = Query(default=None),
    status_filter: Optional[InvestmentStatus] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentListResponse:
    items, total = investment_service.list_investments(
        db,
        user_id=user_id,
        status=status_filter,
        property_id=property_id,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return InvestmentListResponse(
        items=[InvestmentResponse.from_model(i) for i in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


@router.get(
    "/{investment_id}",
    response_model=InvestmentResponse,
    summary="Get investment",
)
async def get_investment(
    investment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentResponse:
    return InvestmentResponse.from_model(investment_service.get_investment(db, investment_id))


@router.post(
    "/{investment_id}/approve",
    response_model=InvestmentResponse,
    summary="Approve investment",
    description="Debit the reserved amount and activate the investment. Requires ADMIN role.",
)
async def approve_investment(
    investment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentResponse:
    investment = investment_service.approve_investment(
        db, investment_id, approver_id=get_user_id_from_principal(principal)
    )
    return InvestmentResponse.from_model(investment)


@router.post(
    "/{investment_id}/reject",
    response_model=InvestmentResponse,
    summary="Reject investment",
    description="Reject a pending investment with a reason; the reservation is released. Requires ADMIN role.",
)
async def reject_investment(
    investment_id: int,
    request: ReasonRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentResponse:
    investment = investment_service.reject_investment(
        db, investment_id, approver_id=get_user_id_from_principal(principal), reason=request.reason
    )
    return InvestmentResponse.from_model(investment)


@router.post(
    "/{investment_id}/cancel",
    response_model=InvestmentResponse,
    summary="Cancel investment",
    description="Cancel a pending investment, or refund an active one whose plot is unsold. Requires ADMIN role.",
)
async def cancel_investment(
    investment_id: int,
    request: OptionalReasonRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentResponse:
    investment = investment_service.cancel_investment(
        db, investment_id, actor_user_id=get_user_id_from_principal(principal), reason=request.reason
    )
    return InvestmentResponse.from_model(investment)


@router.post(
    "/{investment_id}/complete",
    response_model=InvestmentResponse,
    summary="Complete investment",
    description="Mark an active investment completed with its actual return. Requires ADMIN role.",
)
async def complete_investment(
    investment_id: int,
    request: CompleteInvestmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentResponse:
    investment = investment_service.complete_investment(
        db,
        investment_id,
        actual_return=request.actual_return,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return InvestmentResponse.from_model(investment)


@router.post(
    "/{investment_id}/reinvest",
    response_model=InvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reinvest earnings",
    description=(
        "Create a pending investment funded from this investment's distributed profit or completed "
        "return. The amount is reserved from the investor's wallet. Requires ADMIN role."
    ),
)
async def reinvest(
    investment_id: int,
    request: ReinvestRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> InvestmentResponse:
    investment = investment_service.reinvest(
        db,
        investment_id,
        amount=request.amount,
        property_id=request.property_id,
        plot_id=request.plot_id,
        notes=request.notes,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return InvestmentResponse.from_model(investment)
