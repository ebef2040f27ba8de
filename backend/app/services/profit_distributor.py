"""
Profit distributor - split a sale's profit and credit the investor's wallet

calculate() records the split as a PENDING profit. distribute() credits the
investor's share through the transaction processor exactly once: the profit
row is locked for the duration and a second call raises AlreadyDistributed.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.common.money import to_money, ZERO
from app.core.profits.models import Profit, ProfitStatus
from app.core.properties.models import Sale, SaleStatus
from app.core.investments.models import Investment
from app.core.transactions.models import TransactionType
from app.services import wallet_ledger, transaction_processor
from app.services.audit import record_audit, snapshot
from app.services.exceptions import (
    DomainError,
    AlreadyDistributed,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from app.utils.metrics import record_profit_distribution

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

PROFIT_AUDIT_FIELDS = (
    "total_profit",
    "profit_percentage",
    "company_percentage",
    "investor_share",
    "company_share",
    "status",
    "distribution_date",
)


def split_profit(total_profit: Decimal, profit_percentage: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Split total_profit into (investor_share, company_share).

    investor_share = round(total * pct / 100, 2) and company_share takes the
    remainder, so the two always add up to total_profit exactly.
    """
    total_profit = to_money(total_profit)
    investor_share = to_money(total_profit * Decimal(str(profit_percentage)) / HUNDRED)
    return investor_share, total_profit - investor_share


def _validate_percentage(profit_percentage: Decimal) -> Decimal:
    percentage = Decimal(str(profit_percentage))
    if percentage < ZERO or percentage > HUNDRED:
        raise ValidationError("Profit percentage must be between 0 and 100", field="profit_percentage")
    return percentage


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_profit(db: Session, profit_id: int) -> Profit:
    profit = db.get(Profit, profit_id)
    if not profit:
        raise NotFoundError("Profit", profit_id)
    return profit


def lock_profit(db: Session, profit_id: int) -> Profit:
    """Load a profit row with SELECT ... FOR UPDATE"""
    db.flush()
    profit = db.execute(
        select(Profit)
        .where(Profit.id == profit_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not profit:
        raise NotFoundError("Profit", profit_id)
    return profit


def list_profits(
    db: Session,
    *,
    status: Optional[ProfitStatus] = None,
    user_id: Optional[int] = None,
    sale_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Profit], int]:
    conditions = []
    if status is not None:
        conditions.append(Profit.status == status)
    if user_id is not None:
        conditions.append(Profit.user_id == user_id)
    if sale_id is not None:
        conditions.append(Profit.sale_id == sale_id)
    items = db.execute(
        select(Profit).where(*conditions).order_by(Profit.id.desc()).limit(limit).offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Profit.id)).where(*conditions)).scalar_one()
    return list(items), total


def calculate(
    db: Session,
    *,
    sale_id: int,
    profit_percentage: Decimal,
    total_profit: Optional[Decimal] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Profit:
    """
    Record the investor/company split of a sale's profit as a PENDING profit.

    total_profit defaults to the sale's profit_amount (sale_price - original_price).

    Raises:
        NotFoundError: sale does not exist
        ValidationError: percentage outside [0, 100], sale not completed or
            not linked to an investment, non-positive profit, or a
            non-cancelled profit already exists for the sale
    """
    percentage = _validate_percentage(profit_percentage)

    sale = db.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale", sale_id)
    if sale.status != SaleStatus.COMPLETED:
        raise ValidationError("Profit can only be calculated for a completed sale", field="sale_id")
    if sale.investment_id is None:
        raise ValidationError("Sale is not linked to an investment", field="sale_id")

    existing = db.execute(
        select(Profit).where(
            Profit.sale_id == sale.id,
            Profit.status != ProfitStatus.CANCELLED,
        )
    ).scalar_one_or_none()
    if existing:
        raise ValidationError(
            f"Profit already recorded for this sale (profit {existing.id})",
            field="sale_id",
            details={"profit_id": existing.id},
        )

    total = to_money(total_profit if total_profit is not None else sale.profit_amount)
    if total <= ZERO:
        raise ValidationError("Total profit must be greater than 0", field="total_profit")

    investment = db.get(Investment, sale.investment_id)
    investor_share, company_share = split_profit(total, percentage)

    profit = Profit(
        user_id=investment.user_id,
        investment_id=investment.id,
        sale_id=sale.id,
        total_profit=total,
        profit_percentage=percentage,
        company_percentage=HUNDRED - percentage,
        investor_share=investor_share,
        company_share=company_share,
        status=ProfitStatus.PENDING,
        calculation_date=_now(),
        notes=notes,
    )
    db.add(profit)
    db.flush()
    record_audit(
        db,
        action="PROFIT_CALCULATED",
        entity_type="Profit",
        entity_id=profit.id,
        actor_user_id=actor_user_id,
        after=snapshot(profit, PROFIT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(profit)

    logger.info(
        "Profit calculated",
        extra={
            "profit_id": profit.id,
            "sale_id": sale.id,
            "total_profit": str(total),
            "investor_share": str(investor_share),
            "company_share": str(company_share),
        },
    )
    return profit


def distribute(db: Session, profit_id: int, *, actor_user_id: Optional[int] = None) -> Profit:
    """
    Credit the investor's share to their wallet and mark the profit distributed.

    Raises:
        AlreadyDistributed: profit was already distributed (nothing is credited)
        InvalidStateTransition: profit is cancelled
        WalletNotActive: investor's wallet cannot receive credits; the refused
            credit is kept as a REJECTED transaction and the profit stays pending
    """
    try:
        profit = lock_profit(db, profit_id)
        if profit.status == ProfitStatus.DISTRIBUTED:
            raise AlreadyDistributed(
                f"Profit {profit.id} was already distributed",
                details={"profit_id": profit.id, "distribution_date": profit.distribution_date.isoformat() if profit.distribution_date else None},
            )
        if profit.status != ProfitStatus.PENDING:
            raise InvalidStateTransition(
                f"Only pending profits can be distributed (current status: {profit.status.value})",
                details={"profit_id": profit.id, "status": profit.status.value},
            )

        before = snapshot(profit, PROFIT_AUDIT_FIELDS)
        wallet = wallet_ledger.get_wallet_for_user(db, profit.user_id)
        investor_share = to_money(profit.investor_share)

        if investor_share > ZERO:
            transaction_processor.credit_wallet(
                db,
                wallet_id=wallet.id,
                transaction_type=TransactionType.PROFIT,
                amount=investor_share,
                description=f"Profit distribution for sale #{profit.sale_id}",
                profit_id=profit.id,
                investment_id=profit.investment_id,
                actor_user_id=actor_user_id,
            )

        profit.status = ProfitStatus.DISTRIBUTED
        profit.distribution_date = _now()
        profit.distributed_by = actor_user_id

        investment = profit.investment
        investment.profit_distributed = to_money(investment.profit_distributed) + investor_share

        record_audit(
            db,
            action="PROFIT_DISTRIBUTED",
            entity_type="Profit",
            entity_id=profit.id,
            actor_user_id=actor_user_id,
            before=before,
            after=snapshot(profit, PROFIT_AUDIT_FIELDS),
        )
        db.commit()
    except DomainError as e:
        db.rollback()
        record_profit_distribution("failed")
        logger.warning(
            "Profit distribution failed",
            extra={"profit_id": profit_id, "error_code": e.code, "reason": e.message},
        )
        raise

    db.refresh(profit)
    record_profit_distribution("distributed")
    logger.info(
        "Profit distributed",
        extra={
            "profit_id": profit.id,
            "user_id": profit.user_id,
            "investor_share": str(profit.investor_share),
            "actor_user_id": actor_user_id,
        },
    )
    return profit


def distribute_bulk(
    db: Session,
    profit_ids: List[int],
    *,
    actor_user_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Distribute several profits. Each id is its own unit of work, so one
    failure never undoes another id's credit. Returns one result per id in
    request order plus success/failure counts.
    """
    results: List[Dict[str, Any]] = []
    for profit_id in profit_ids:
        try:
            profit = distribute(db, profit_id, actor_user_id=actor_user_id)
            results.append({
                "profit_id": profit_id,
                "success": True,
                "status": profit.status.value,
                "investor_share": str(to_money(profit.investor_share)),
            })
        except DomainError as e:
            results.append({
                "profit_id": profit_id,
                "success": False,
                "error_code": e.code,
                "message": e.message,
            })

    distributed_count = sum(1 for r in results if r["success"])
    logger.info(
        "Bulk profit distribution finished",
        extra={"requested": len(profit_ids), "distributed": distributed_count, "failed": len(results) - distributed_count},
    )
    return {
        "results": results,
        "distributed_count": distributed_count,
        "failed_count": len(results) - distributed_count,
    }


def update_pending(
    db: Session,
    profit_id: int,
    *,
    profit_percentage: Optional[Decimal] = None,
    total_profit: Optional[Decimal] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Profit:
    """Edit a pending profit; the split is recomputed. Distributed profits are immutable."""
    profit = lock_profit(db, profit_id)
    if profit.status != ProfitStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending profits can be edited (current status: {profit.status.value})",
            details={"profit_id": profit.id, "status": profit.status.value},
        )

    before = snapshot(profit, PROFIT_AUDIT_FIELDS)
    percentage = _validate_percentage(profit_percentage if profit_percentage is not None else profit.profit_percentage)
    total = to_money(total_profit if total_profit is not None else profit.total_profit)
    if total <= ZERO:
        raise ValidationError("Total profit must be greater than 0", field="total_profit")

    investor_share, company_share = split_profit(total, percentage)
    profit.total_profit = total
    profit.profit_percentage = percentage
    profit.company_percentage = HUNDRED - percentage
    profit.investor_share = investor_share
    profit.company_share = company_share
    profit.calculation_date = _now()
    if notes is not None:
        profit.notes = notes

    record_audit(
        db,
        action="PROFIT_UPDATED",
        entity_type="Profit",
        entity_id=profit.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(profit, PROFIT_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(profit)
    return profit


def cancel(db: Session, profit_id: int, *, actor_user_id: Optional[int] = None, reason: Optional[str] = None) -> Profit:
    """Cancel a pending profit (the sale can then get a new calculation)"""
    profit = lock_profit(db, profit_id)
    if profit.status != ProfitStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending profits can be cancelled (current status: {profit.status.value})",
            details={"profit_id": profit.id, "status": profit.status.value},
        )
    before = snapshot(profit, PROFIT_AUDIT_FIELDS)
    profit.status = ProfitStatus.CANCELLED
    record_audit(
        db,
        action="PROFIT_CANCELLED",
        entity_type="Profit",
        entity_id=profit.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(profit, PROFIT_AUDIT_FIELDS),
        reason=reason,
    )
    db.commit()
    db.refresh(profit)
    return profit


def delete(db: Session, profit_id: int, *, actor_user_id: Optional[int] = None) -> None:
    """Delete a profit that was never distributed"""
    profit = lock_profit(db, profit_id)
    if profit.status == ProfitStatus.DISTRIBUTED:
        raise InvalidStateTransition(
            "Distributed profits cannot be deleted",
            details={"profit_id": profit.id},
        )
    record_audit(
        db,
        action="PROFIT_DELETED",
        entity_type="Profit",
        entity_id=profit.id,
        actor_user_id=actor_user_id,
        before=snapshot(profit, PROFIT_AUDIT_FIELDS),
    )
    db.delete(profit)
    db.commit()
    logger.info("Profit deleted", extra={"profit_id": profit_id, "actor_user_id": actor_user_id})


def report(
    db: Session,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user_id: Optional[int] = None,
    status: Optional[ProfitStatus] = None,
) -> Dict[str, Any]:
    """Totals of profit, investor and company shares, and counts per status"""
    conditions = []
    if start_date is not None:
        conditions.append(Profit.calculation_date >= start_date)
    if end_date is not None:
        conditions.append(Profit.calculation_date <= end_date)
    if user_id is not None:
        conditions.append(Profit.user_id == user_id)
    if status is not None:
        conditions.append(Profit.status == status)

    rows = db.execute(
        select(
            Profit.status,
            func.count(Profit.id),
            func.coalesce(func.sum(Profit.total_profit), 0),
            func.coalesce(func.sum(Profit.investor_share), 0),
            func.coalesce(func.sum(Profit.company_share), 0),
        )
        .where(*conditions)
        .group_by(Profit.status)
    ).all()

    by_status = {s.value: {"count": 0, "total_profit": ZERO, "investor_share": ZERO, "company_share": ZERO} for s in ProfitStatus}
    for row_status, count, total, investor, company in rows:
        by_status[row_status.value] = {
            "count": count,
            "total_profit": to_money(total),
            "investor_share": to_money(investor),
            "company_share": to_money(company),
        }

    return {
        "total_count": sum(v["count"] for v in by_status.values()),
        "total_profit": sum((v["total_profit"] for v in by_status.values()), ZERO),
        "total_investor_share": sum((v["investor_share"] for v in by_status.values()), ZERO),
        "total_company_share": sum((v["company_share"] for v in by_status.values()), ZERO),
        "by_status": by_status,
    }
