"""
Payment methods admin endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import require_admin_role, get_user_id_from_principal
from app.auth.principal import Principal
from app.infrastructure.database import get_db
from app.schemas.payments import (
    PaymentMethodResponse,
    PaymentMethodListResponse,
    PaymentMethodCreateRequest,
    PaymentMethodUpdateRequest,
)
from app.services import payment_helpers

router = APIRouter(prefix="/payment-methods")


@router.get(
    "",
    response_model=PaymentMethodListResponse,
    summary="List payment methods",
    description="All payment methods, including inactive ones unless active_only is set. Requires ADMIN role.",
)
async def list_payment_methods(
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PaymentMethodListResponse:
    methods = payment_helpers.list_payment_methods(db, active_only=active_only)
    return PaymentMethodListResponse(items=[PaymentMethodResponse.from_model(m) for m in methods])


@router.post(
    "/store",
    response_model=PaymentMethodResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create payment method",
    description="Create a payment method with its amount limits and processing fee. Requires ADMIN role.",
)
async def store_payment_method(
    request: PaymentMethodCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PaymentMethodResponse:
    method = payment_helpers.create_payment_method(
        db, actor_user_id=get_user_id_from_principal(principal), **request.model_dump()
    )
    return PaymentMethodResponse.from_model(method)


@router.put(
    "/{payment_method_id}/update",
    response_model=PaymentMethodResponse,
    summary="Update payment method",
    description="Change limits, fee, type or active flag. Requires ADMIN role.",
)
async def update_payment_method(
    payment_method_id: int,
    request: PaymentMethodUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> PaymentMethodResponse:
    method = payment_helpers.update_payment_method(
        db,
        payment_method_id,
        actor_user_id=get_user_id_from_principal(principal),
        **request.model_dump(exclude_unset=True),
    )
    return PaymentMethodResponse.from_model(method)
