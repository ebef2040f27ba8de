"""
Payment method lookup, validation and admin management
"""

import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from app.core.common.money import to_money
from app.core.payments.models import PaymentMethod, PaymentMethodType, FeeType
from app.services.exceptions import ValidationError, NotFoundError
from app.services.audit import record_audit, snapshot

logger = logging.getLogger(__name__)

PAYMENT_METHOD_AUDIT_FIELDS = (
    "name",
    "code",
    "type",
    "is_active",
    "min_amount",
    "max_amount",
    "processing_fee",
    "processing_fee_type",
)


def list_payment_methods(
    db: Session,
    flow: Optional[PaymentMethodType] = None,
    active_only: bool = True,
) -> List[PaymentMethod]:
    """List payment methods, optionally only those usable for a deposit or withdrawal"""
    query = select(PaymentMethod)
    if active_only:
        query = query.where(PaymentMethod.is_active.is_(True))
    if flow is not None:
        query = query.where(or_(PaymentMethod.type == flow, PaymentMethod.type == PaymentMethodType.BOTH))
    return list(db.execute(query.order_by(PaymentMethod.name)).scalars().all())


def resolve_payment_method(
    db: Session,
    payment_method_id: int,
    flow: PaymentMethodType,
    amount: Decimal,
) -> PaymentMethod:
    """
    Load a payment method and check it can carry this amount for this flow.

    Raises:
        ValidationError: unknown, inactive, wrong flow, or amount outside limits
    """
    payment_method = db.get(PaymentMethod, payment_method_id)
    if not payment_method or not payment_method.is_active:
        raise ValidationError("Selected payment method is not available", field="payment_method_id")
    if not payment_method.supports(flow):
        raise ValidationError(
            f"{payment_method.name} cannot be used for {flow.value}s",
            field="payment_method_id",
        )
    if not payment_method.can_process(amount):
        raise ValidationError(payment_method.limits_message(), field="amount")
    return payment_method


def _validate_limits(min_amount: Decimal, max_amount: Optional[Decimal]) -> None:
    if max_amount is not None and to_money(max_amount) < to_money(min_amount):
        raise ValidationError("max_amount must be greater than or equal to min_amount", field="max_amount")


def create_payment_method(
    db: Session,
    *,
    name: str,
    code: str,
    type: PaymentMethodType = PaymentMethodType.BOTH,
    min_amount: Decimal = Decimal("0"),
    max_amount: Optional[Decimal] = None,
    processing_fee: Decimal = Decimal("0"),
    processing_fee_type: FeeType = FeeType.FIXED,
    is_active: bool = True,
    description: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> PaymentMethod:
    existing = db.execute(select(PaymentMethod).where(PaymentMethod.code == code)).scalar_one_or_none()
    if existing:
        raise ValidationError("Payment method code already exists", field="code")
    _validate_limits(min_amount, max_amount)

    payment_method = PaymentMethod(
        name=name,
        code=code,
        type=type,
        min_amount=to_money(min_amount),
        max_amount=to_money(max_amount) if max_amount is not None else None,
        processing_fee=to_money(processing_fee),
        processing_fee_type=processing_fee_type,
        is_active=is_active,
        description=description,
    )
    db.add(payment_method)
    db.flush()
    record_audit(
        db,
        action="PAYMENT_METHOD_CREATED",
        entity_type="PaymentMethod",
        entity_id=payment_method.id,
        actor_user_id=actor_user_id,
        after=snapshot(payment_method, PAYMENT_METHOD_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(payment_method)
    return payment_method


def update_payment_method(
    db: Session,
    payment_method_id: int,
    *,
    actor_user_id: Optional[int] = None,
    **changes,
) -> PaymentMethod:
    """Apply non-None changes to a payment method"""
    payment_method = db.get(PaymentMethod, payment_method_id)
    if not payment_method:
        raise NotFoundError("PaymentMethod", payment_method_id)

    before = snapshot(payment_method, PAYMENT_METHOD_AUDIT_FIELDS)
    for name, value in changes.items():
        if value is None:
            continue
        if name in ("min_amount", "max_amount", "processing_fee"):
            value = to_money(value)
        setattr(payment_method, name, value)
    _validate_limits(payment_method.min_amount, payment_method.max_amount)

    record_audit(
        db,
        action="PAYMENT_METHOD_UPDATED",
        entity_type="PaymentMethod",
        entity_id=payment_method.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(payment_method, PAYMENT_METHOD_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(payment_method)
    return payment_method
