"""
Investment service - user stakes in properties/plots backed by wallet funds

create      -> PENDING investment + pending investment transaction (funds reserved)
approve     -> transaction approved (ledger debit), investment ACTIVE
reject      -> transaction rejected (reservation released), investment CANCELLED
cancel      -> pending: as reject; active: refund credited, investment CANCELLED
complete    -> ACTIVE -> COMPLETED with the actual return
reinvest    -> new investment funded from a source investment's distributed
               profit or completed return
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.common.money import to_money, ZERO
from app.core.investments.models import Investment, InvestmentStatus
from app.core.properties.models import Property, PropertyStatus, Plot, PlotStatus, Sale
from app.core.profits.models import Profit, ProfitStatus
from app.core.transactions.models import Transaction, TransactionType, TransactionStatus
from app.core.security.models import Role
from app.infrastructure.settings import get_settings
from app.services import wallet_ledger, transaction_processor
from app.services.audit import record_audit, snapshot
from app.services.exceptions import (
    InsufficientFunds,
    WalletNotActive,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from app.utils.metrics import record_wallet_transaction

logger = logging.getLogger(__name__)

INVESTMENT_AUDIT_FIELDS = (
    "amount",
    "status",
    "property_id",
    "plot_id",
    "actual_return",
    "profit_distributed",
    "reinvestment_count",
    "source_investment_id",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_investment(db: Session, investment_id: int, user_id: Optional[int] = None) -> Investment:
    investment = db.get(Investment, investment_id)
    if not investment or (user_id is not None and investment.user_id != user_id):
        raise NotFoundError("Investment", investment_id)
    return investment


def list_investments(
    db: Session,
    *,
    user_id: Optional[int] = None,
    status: Optional[InvestmentStatus] = None,
    property_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Investment], int]:
    conditions = []
    if user_id is not None:
        conditions.append(Investment.user_id == user_id)
    if status is not None:
        conditions.append(Investment.status == status)
    if property_id is not None:
        conditions.append(Investment.property_id == property_id)
    items = db.execute(
        select(Investment).where(*conditions).order_by(Investment.id.desc()).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Investment.id)).where(*conditions)).scalar_one()
    return list(items), total


def _lock_investment(db: Session, investment_id: int) -> Investment:
    db.flush()
    investment = db.execute(
        select(Investment)
        .where(Investment.id == investment_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not investment:
        raise NotFoundError("Investment", investment_id)
    return investment


def _pending_transaction(db: Session, investment: Investment) -> Transaction:
    transaction = db.execute(
        select(Transaction).where(
            Transaction.investment_id == investment.id,
            Transaction.type == TransactionType.INVESTMENT,
            Transaction.status == TransactionStatus.PENDING,
        )
    ).scalar_one_or_none()
    if not transaction:
        raise InvalidStateTransition(
            "Investment has no pending transaction",
            details={"investment_id": investment.id},
        )
    return transaction


def _release_plot(investment: Investment) -> None:
    if investment.plot is not None and investment.plot.status == PlotStatus.HELD:
        investment.plot.status = PlotStatus.AVAILABLE


def create_investment(
    db: Session,
    *,
    user_id: int,
    amount: Decimal,
    property_id: Optional[int] = None,
    plot_id: Optional[int] = None,
    expected_return: Optional[Decimal] = None,
    return_rate: Optional[Decimal] = None,
    maturity_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
    source_investment: Optional[Investment] = None,
) -> Investment:
    """
    Create a pending investment and reserve its amount in the wallet.

    Raises:
        ValidationError: below minimum, no target, plot not available
        NotFoundError: property or plot does not exist
        InsufficientFunds / WalletNotActive: the investment is committed as
            CANCELLED next to its REJECTED transaction, the plot stays available
    """
    settings = get_settings()
    amount = to_money(amount)
    if amount < to_money(settings.MIN_INVESTMENT_AMOUNT):
        raise ValidationError(f"Minimum investment amount is ₹{to_money(settings.MIN_INVESTMENT_AMOUNT)}", field="amount")
    if property_id is None and plot_id is None:
        raise ValidationError("Select a property or a plot to invest in", field="property_id")

    plot = None
    if plot_id is not None:
        plot = db.execute(
            select(Plot).where(Plot.id == plot_id).with_for_update()
        ).scalar_one_or_none()
        if not plot:
            raise NotFoundError("Plot", plot_id)
        if plot.status != PlotStatus.AVAILABLE:
            raise ValidationError(f"Plot {plot.plot_number} is not available", field="plot_id")
        if property_id is not None and property_id != plot.property_id:
            raise ValidationError("Plot does not belong to the selected property", field="plot_id")
        property_id = plot.property_id

    prop = db.get(Property, property_id)
    if not prop:
        raise NotFoundError("Property", property_id)
    if prop.status not in (PropertyStatus.ACTIVE, PropertyStatus.PLANNING):
        raise ValidationError(f"Property is {prop.status.value} and not open for investment", field="property_id")

    wallet = wallet_ledger.get_wallet_for_user(db, user_id)
    actor_role = Role.USER if actor_user_id == user_id else Role.ADMIN

    investment = Investment(
        user_id=user_id,
        property_id=property_id,
        plot_id=plot.id if plot else None,
        amount=amount,
        status=InvestmentStatus.PENDING,
        expected_return=to_money(expected_return) if expected_return is not None else None,
        return_rate=return_rate,
        maturity_date=maturity_date,
        source_investment_id=source_investment.id if source_investment is not None else None,
        notes=notes,
    )
    db.add(investment)
    db.flush()

    try:
        transaction_processor.create_investment_debit(
            db,
            wallet_id=wallet.id,
            investment_id=investment.id,
            amount=amount,
            description=f"Investment in {prop.name}" + (f" plot {plot.plot_number}" if plot else ""),
            notes=notes,
            actor_user_id=actor_user_id,
            actor_role=actor_role,
        )
    except (InsufficientFunds, WalletNotActive) as e:
        investment.status = InvestmentStatus.CANCELLED
        record_audit(
            db,
            action="INVESTMENT_REJECTED",
            entity_type="Investment",
            entity_id=investment.id,
            actor_user_id=actor_user_id,
            actor_role=actor_role,
            after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
            reason=e.message,
        )
        db.commit()
        logger.warning(
            "Investment refused by ledger",
            extra={"investment_id": investment.id, "user_id": user_id, "error_code": e.code},
        )
        raise

    if plot is not None:
        plot.status = PlotStatus.HELD

    if source_investment is not None:
        source_before = snapshot(source_investment, INVESTMENT_AUDIT_FIELDS)
        source_investment.reinvestment_count = (source_investment.reinvestment_count or 0) + 1
        record_audit(
            db,
            action="INVESTMENT_REINVESTED",
            entity_type="Investment",
            entity_id=source_investment.id,
            actor_user_id=actor_user_id,
            actor_role=actor_role,
            before=source_before,
            after=snapshot(source_investment, INVESTMENT_AUDIT_FIELDS),
        )

    record_audit(
        db,
        action="INVESTMENT_CREATED",
        entity_type="Investment",
        entity_id=investment.id,
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(investment)

    record_wallet_transaction(TransactionType.INVESTMENT.value, TransactionStatus.PENDING.value)
    logger.info(
        "Investment created",
        extra={"investment_id": investment.id, "user_id": user_id, "amount": str(amount), "property_id": property_id},
    )
    return investment


def approve_investment(db: Session, investment_id: int, *, approver_id: Optional[int] = None) -> Investment:
    """
    Approve a pending investment: its transaction is approved through the
    processor (ledger debit) and the investment becomes ACTIVE. If the
    ledger refuses, the investment is cancelled and the error re-raised.
    """
    investment = _lock_investment(db, investment_id)
    if investment.status != InvestmentStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending investments can be approved (current status: {investment.status.value})",
            details={"investment_id": investment.id, "status": investment.status.value},
        )
    transaction = _pending_transaction(db, investment)

    try:
        transaction_processor.approve(db, transaction.id, approver_id=approver_id)
    except (InsufficientFunds, WalletNotActive) as e:
        investment = _lock_investment(db, investment_id)
        investment.status = InvestmentStatus.CANCELLED
        _release_plot(investment)
        record_audit(
            db,
            action="INVESTMENT_APPROVAL_FAILED",
            entity_type="Investment",
            entity_id=investment.id,
            actor_user_id=approver_id,
            after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
            reason=e.message,
        )
        db.commit()
        raise

    investment = _lock_investment(db, investment_id)
    before = snapshot(investment, INVESTMENT_AUDIT_FIELDS)
    investment.status = InvestmentStatus.ACTIVE
    investment.investment_date = _now()
    record_audit(
        db,
        action="INVESTMENT_APPROVED",
        entity_type="Investment",
        entity_id=investment.id,
        actor_user_id=approver_id,
        before=before,
        after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(investment)
    logger.info("Investment approved", extra={"investment_id": investment.id, "approver_id": approver_id})
    return investment


def reject_investment(
    db: Session,
    investment_id: int,
    *,
    approver_id: Optional[int] = None,
    reason: str,
) -> Investment:
    """Reject a pending investment; the reserved funds are released"""
    if not (reason or "").strip():
        raise ValidationError("Rejection reason is required", field="reason")
    return _close_pending(db, investment_id, approver_id, reason, reject=True)


def _close_pending(
    db: Session,
    investment_id: int,
    actor_user_id: Optional[int],
    reason: Optional[str],
    reject: bool,
) -> Investment:
    investment = _lock_investment(db, investment_id)
    if investment.status != InvestmentStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending investments can be {'rejected' if reject else 'cancelled'} this way "
            f"(current status: {investment.status.value})",
            details={"investment_id": investment.id, "status": investment.status.value},
        )
    transaction = _pending_transaction(db, investment)
    if reject:
        transaction_processor.reject(db, transaction.id, approver_id=actor_user_id, reason=reason)
    else:
        transaction_processor.cancel(db, transaction.id, actor_user_id=actor_user_id, reason=reason)

    investment = _lock_investment(db, investment_id)
    before = snapshot(investment, INVESTMENT_AUDIT_FIELDS)
    investment.status = InvestmentStatus.CANCELLED
    _release_plot(investment)
    record_audit(
        db,
        action="INVESTMENT_REJECTED" if reject else "INVESTMENT_CANCELLED",
        entity_type="Investment",
        entity_id=investment.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
        reason=reason,
    )
    db.commit()
    db.refresh(investment)
    return investment


def cancel_investment(
    db: Session,
    investment_id: int,
    *,
    actor_user_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> Investment:
    """
    Cancel an investment.

    - pending: the reservation is released (no money moved)
    - active: the invested amount is refunded with a completed REFUND
      transaction; refused once the plot has been sold
    """
    investment = _lock_investment(db, investment_id)
    if investment.status == InvestmentStatus.PENDING:
        return _close_pending(db, investment_id, actor_user_id, reason, reject=False)
    if investment.status != InvestmentStatus.ACTIVE:
        raise InvalidStateTransition(
            f"Investment cannot be cancelled (current status: {investment.status.value})",
            details={"investment_id": investment.id, "status": investment.status.value},
        )
    if investment.plot is not None and investment.plot.status == PlotStatus.SOLD:
        raise InvalidStateTransition(
            "Investment plot has been sold; distribute its profit instead",
            details={"investment_id": investment.id, "plot_id": investment.plot_id},
        )
    sale_id = db.execute(
        select(Sale.id).where(Sale.investment_id == investment.id).limit(1)
    ).scalar_one_or_none()
    if sale_id is not None:
        raise InvalidStateTransition(
            "Investment is linked to a sale and cannot be refunded",
            details={"investment_id": investment.id, "sale_id": sale_id},
        )
    profit_id = db.execute(
        select(Profit.id).where(
            Profit.investment_id == investment.id,
            Profit.status != ProfitStatus.CANCELLED,
        ).limit(1)
    ).scalar_one_or_none()
    if profit_id is not None:
        raise InvalidStateTransition(
            "Investment has profits recorded and cannot be refunded",
            details={"investment_id": investment.id, "profit_id": profit_id},
        )

    before = snapshot(investment, INVESTMENT_AUDIT_FIELDS)
    wallet = wallet_ledger.get_wallet_for_user(db, investment.user_id)
    # An inactive wallet leaves a rejected REFUND and the investment ACTIVE
    transaction_processor.credit_wallet(
        db,
        wallet_id=wallet.id,
        transaction_type=TransactionType.REFUND,
        amount=investment.amount,
        description=f"Refund for cancelled investment #{investment.id}",
        investment_id=investment.id,
        actor_user_id=actor_user_id,
    )

    investment.status = InvestmentStatus.CANCELLED
    _release_plot(investment)
    record_audit(
        db,
        action="INVESTMENT_REFUNDED",
        entity_type="Investment",
        entity_id=investment.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
        reason=reason,
    )
    db.commit()
    db.refresh(investment)
    logger.info("Investment refunded", extra={"investment_id": investment.id, "amount": str(investment.amount)})
    return investment


def complete_investment(
    db: Session,
    investment_id: int,
    *,
    actual_return: Optional[Decimal] = None,
    actor_user_id: Optional[int] = None,
) -> Investment:
    investment = _lock_investment(db, investment_id)
    if investment.status != InvestmentStatus.ACTIVE:
        raise InvalidStateTransition(
            f"Only active investments can be completed (current status: {investment.status.value})",
            details={"investment_id": investment.id, "status": investment.status.value},
        )
    before = snapshot(investment, INVESTMENT_AUDIT_FIELDS)
    investment.status = InvestmentStatus.COMPLETED
    investment.actual_return = to_money(actual_return if actual_return is not None else investment.profit_distributed)
    record_audit(
        db,
        action="INVESTMENT_COMPLETED",
        entity_type="Investment",
        entity_id=investment.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(investment, INVESTMENT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(investment)
    return investment


def reinvestable_amount(db: Session, investment: Investment) -> Decimal:
    """
    What a source investment can still fund: its actual return once
    completed, otherwise the profit distributed to it, less the amounts of
    its non-cancelled reinvestments.
    """
    if investment.status == InvestmentStatus.COMPLETED:
        earned = to_money(investment.actual_return or ZERO)
    elif investment.status == InvestmentStatus.ACTIVE:
        earned = to_money(investment.profit_distributed)
    else:
        return ZERO
    reinvested = db.execute(
        select(func.coalesce(func.sum(Investment.amount), 0)).where(
            Investment.source_investment_id == investment.id,
            Investment.status != InvestmentStatus.CANCELLED,
        )
    ).scalar_one()
    return max(ZERO, earned - to_money(reinvested))


def reinvest(
    db: Session,
    investment_id: int,
    *,
    amount: Optional[Decimal] = None,
    property_id: Optional[int] = None,
    plot_id: Optional[int] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Investment:
    """
    Put a source investment's earnings into a new pending investment.

    The new investment reserves its amount from the investor's wallet like
    any other; amount defaults to everything still reinvestable. On success
    the source's reinvestment_count goes up by one.

    Raises:
        InvalidStateTransition: source is neither active nor completed
        ValidationError: nothing earned yet, or amount above what is left
        InsufficientFunds / WalletNotActive: as create_investment
    """
    source = _lock_investment(db, investment_id)
    if source.status not in (InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED):
        raise InvalidStateTransition(
            f"Only active or completed investments can be reinvested (current status: {source.status.value})",
            details={"investment_id": source.id, "status": source.status.value},
        )
    available = reinvestable_amount(db, source)
    if available <= ZERO:
        raise ValidationError(
            "Investment has no distributed profit or return to reinvest",
            field="amount",
            details={"investment_id": source.id},
        )
    amount = to_money(amount) if amount is not None else available
    if amount > available:
        raise ValidationError(
            f"Reinvestment amount exceeds the ₹{available} available",
            field="amount",
            details={"available": str(available), "requested": str(amount)},
        )

    investment = create_investment(
        db,
        user_id=source.user_id,
        amount=amount,
        property_id=property_id,
        plot_id=plot_id,
        notes=notes or f"Reinvestment from investment #{source.id}",
        actor_user_id=actor_user_id,
        source_investment=source,
    )
    logger.info(
        "Investment reinvested",
        extra={"source_investment_id": source.id, "investment_id": investment.id, "amount": str(amount)},
    )
    return investment
