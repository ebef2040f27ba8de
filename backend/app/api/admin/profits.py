"""
Profits admin endpoints - calculation, distribution and reporting
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.core.profits.models import ProfitStatus
from app.infrastructure.database import get_db
from app.schemas.common import MessageResponse, OptionalReasonRequest
from app.schemas.profits import (
    ProfitResponse,
    ProfitListResponse,
    ProfitCreateRequest,
    ProfitUpdateRequest,
    DistributeBulkRequest,
    DistributeBulkResponse,
    ProfitReportResponse,
)
from app.services import profit_distributor

router = APIRouter(prefix="/profits")


@router.get(
    "",
    response_model=ProfitListResponse,
    summary="List profits",
    description="List profit records by status, investor or sale. Requires ADMIN role.",
)
async def list_profits(
    status_filter: Optional[ProfitStatus] = Query(default=None, alias="status"),
    user_id: Optional[int] = Query(default=None),
    sale_id: Optional[int] = Query(default=None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitListResponse:
    items, total = profit_distributor.list_profits(
        db, status=status_filter, user_id=user_id, sale_id=sale_id, limit=pagination.limit, offset=pagination.offset
    )
    return ProfitListResponse(
        items=[ProfitResponse.from_model(p) for p in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


# Declared before /{profit_id} so "report" is not parsed as an id
@router.get(
    "/report",
    response_model=ProfitReportResponse,
    summary="Profit report",
    description="Totals of profit, investor and company shares with a breakdown per status. Requires ADMIN role.",
)
async def profit_report(
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    user_id: Optional[int] = Query(default=None),
    status_filter: Optional[ProfitStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitReportResponse:
    report = profit_distributor.report(
        db, start_date=start_date, end_date=end_date, user_id=user_id, status=status_filter
    )
    return ProfitReportResponse.from_report(report)


@router.get(
    "/{profit_id}",
    response_model=ProfitResponse,
    summary="Get profit",
)
async def get_profit(
    profit_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitResponse:
    return ProfitResponse.from_model(profit_distributor.get_profit(db, profit_id))


@router.post(
    "/store",
    response_model=ProfitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Calculate profit",
    description=(
        "Split a completed sale's profit between investor and company. investor_share is "
        "total_profit x profit_percentage / 100 rounded to 2 decimals; the company keeps the "
        "remainder. The profit stays pending until distributed. Requires ADMIN role."
    ),
)
async def store_profit(
    request: ProfitCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitResponse:
    profit = profit_distributor.calculate(
        db,
        sale_id=request.sale_id,
        profit_percentage=request.profit_percentage,
        total_profit=request.total_profit,
        notes=request.notes,
        actor_user_id=get_user_id_from_principal(principal),
    )
    return ProfitResponse.from_model(profit)


@router.put(
    "/{profit_id}/update",
    response_model=ProfitResponse,
    summary="Update pending profit",
    description="Change percentage, total or notes of a pending profit; shares are recomputed. Requires ADMIN role.",
)
async def update_profit(
    profit_id: int,
    request: ProfitUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitResponse:
    profit = profit_distributor.update_pending(
        db,
        profit_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return ProfitResponse.from_model(profit)


@router.post(
    "/distribute-bulk",
    response_model=DistributeBulkResponse,
    summary="Distribute several profits",
    description="Distribute each profit in its own unit of work; one result per id. Requires ADMIN role.",
)
async def distribute_bulk(
    request: DistributeBulkRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> DistributeBulkResponse:
    result = profit_distributor.distribute_bulk(
        db, request.profit_ids, actor_user_id=get_user_id_from_principal(principal)
    )
    return DistributeBulkResponse(**result)


@router.post(
    "/{profit_id}/distribute",
    response_model=ProfitResponse,
    summary="Distribute profit",
    description=(
        "Credit the investor share to the investor's wallet exactly once. A second call "
        "returns 409 ALREADY_DISTRIBUTED. Requires ADMIN role."
    ),
)
async def distribute_profit(
    profit_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitResponse:
    profit = profit_distributor.distribute(db, profit_id, actor_user_id=get_user_id_from_principal(principal))
    return ProfitResponse.from_model(profit)


@router.post(
    "/{profit_id}/cancel",
    response_model=ProfitResponse,
    summary="Cancel pending profit",
    description="Cancel a pending profit so the sale can be recalculated. Requires ADMIN role.",
)
async def cancel_profit(
    profit_id: int,
    request: OptionalReasonRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> ProfitResponse:
    profit = profit_distributor.cancel(
        db, profit_id, actor_user_id=get_user_id_from_principal(principal), reason=request.reason
    )
    return ProfitResponse.from_model(profit)


@router.delete(
    "/{profit_id}",
    response_model=MessageResponse,
    summary="Delete profit",
    description="Delete a profit that was never distributed. Requires ADMIN role.",
)
async def delete_profit(
    profit_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> MessageResponse:
    profit_distributor.delete(db, profit_id, actor_user_id=get_user_id_from_principal(principal))
    return MessageResponse(message=f"Profit {profit_id} deleted")
