"""
Admin dashboard aggregates
"""

from typing import Any, Dict
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.common.money import to_money
from app.core.investments.models import Investment, InvestmentStatus
from app.core.profits.models import Profit, ProfitStatus
from app.core.properties.models import Property, Sale
from app.core.transactions.models import Transaction, TransactionType, TransactionStatus
from app.core.users.models import User, UserStatus
from app.core.wallets.models import Wallet, WalletStatus
from app.infrastructure.settings import get_settings


def _sum(db: Session, column, *conditions) -> Any:
    return to_money(db.execute(select(func.coalesce(func.sum(column), 0)).where(*conditions)).scalar())


def _count(db: Session, column, *conditions) -> int:
    return db.execute(select(func.count(column)).where(*conditions)).scalar_one()


def _count_sum(db: Session, column) -> int:
    return int(db.execute(select(func.coalesce(func.sum(column), 0))).scalar())


def get_dashboard_stats(db: Session) -> Dict[str, Any]:
    settings = get_settings()
    recent = db.execute(
        select(Transaction)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(settings.RECENT_TRANSACTIONS_LIMIT)
    ).scalars().all()

    return {
        "users": {
            "total": _count(db, User.id),
            "active": _count(db, User.id, User.status == UserStatus.ACTIVE),
        },
        "wallets": {
            "total": _count(db, Wallet.id),
            "active": _count(db, Wallet.id, Wallet.status == WalletStatus.ACTIVE),
            "total_balance": _sum(db, Wallet.balance),
            "total_frozen": _sum(db, Wallet.frozen_amount),
            "total_pending": _sum(db, Wallet.pending_amount),
        },
        "transactions": {
            "pending_count": _count(db, Transaction.id, Transaction.status == TransactionStatus.PENDING),
            "pending_deposits": _sum(
                db, Transaction.amount,
                Transaction.type == TransactionType.DEPOSIT,
                Transaction.status == TransactionStatus.PENDING,
            ),
            "pending_withdrawals": _sum(
                db, Transaction.amount,
                Transaction.type == TransactionType.WITHDRAWAL,
                Transaction.status == TransactionStatus.PENDING,
            ),
            "completed_deposits": _sum(
                db, Transaction.net_amount,
                Transaction.type == TransactionType.DEPOSIT,
                Transaction.status == TransactionStatus.COMPLETED,
            ),
            "completed_withdrawals": _sum(
                db, Transaction.net_amount,
                Transaction.type == TransactionType.WITHDRAWAL,
                Transaction.status == TransactionStatus.COMPLETED,
            ),
        },
        "properties": {
            "total": _count(db, Property.id),
            "plots_total": _count_sum(db, Property.total_plots),
            "plots_sold": _count_sum(db, Property.sold_plots),
            "sales_total": _count(db, Sale.id),
            "sales_value": _sum(db, Sale.sale_price),
        },
        "investments": {
            "active_count": _count(db, Investment.id, Investment.status == InvestmentStatus.ACTIVE),
            "pending_count": _count(db, Investment.id, Investment.status == InvestmentStatus.PENDING),
            "active_amount": _sum(db, Investment.amount, Investment.status == InvestmentStatus.ACTIVE),
        },
        "profits": {
            "pending_count": _count(db, Profit.id, Profit.status == ProfitStatus.PENDING),
            "pending_investor_share": _sum(db, Profit.investor_share, Profit.status == ProfitStatus.PENDING),
            "distributed_investor_share": _sum(db, Profit.investor_share, Profit.status == ProfitStatus.DISTRIBUTED),
            "distributed_company_share": _sum(db, Profit.company_share, Profit.status == ProfitStatus.DISTRIBUTED),
        },
        "recent_transactions": list(recent),
    }
