"""
Wallet ledger - balance, running totals and holds for one wallet

The ledger is the only code that writes Wallet money columns. It never
commits: callers (transaction processor, admin services) own the unit of
work. Every mutation loads the wallet with SELECT ... FOR UPDATE so that
concurrent requests on the same wallet are serialised by the database.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.common.money import to_money, ZERO
from app.core.wallets.models import Wallet, WalletStatus
from app.core.users.models import User
from app.core.transactions.models import (
    Transaction,
    TransactionType,
    TransactionStatus,
    CREDIT_TYPES,
)
from app.services.exceptions import (
    InsufficientFunds,
    WalletNotActive,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from app.services.audit import record_audit, snapshot
from app.utils.metrics import record_ledger_invariant_violation

logger = logging.getLogger(__name__)

WALLET_AUDIT_FIELDS = (
    "balance",
    "total_deposits",
    "total_withdrawals",
    "total_investments",
    "total_profits",
    "frozen_amount",
    "pending_amount",
    "status",
    "notes",
)

# Running total touched by each transaction type (refunds give investments back)
_TOTAL_COLUMN = {
    TransactionType.DEPOSIT: ("total_deposits", Decimal("1")),
    TransactionType.WITHDRAWAL: ("total_withdrawals", Decimal("1")),
    TransactionType.INVESTMENT: ("total_investments", Decimal("1")),
    TransactionType.PROFIT: ("total_profits", Decimal("1")),
    TransactionType.REFUND: ("total_investments", Decimal("-1")),
}


def signed_amount(transaction_type: TransactionType, net_amount: Decimal) -> Decimal:
    """+net_amount for credits, -net_amount for debits"""
    net_amount = to_money(net_amount)
    return net_amount if transaction_type in CREDIT_TYPES else -net_amount


def get_wallet(db: Session, wallet_id: int) -> Wallet:
    wallet = db.get(Wallet, wallet_id)
    if not wallet:
        raise NotFoundError("Wallet", wallet_id)
    return wallet


def get_wallet_for_user(db: Session, user_id: int) -> Wallet:
    wallet = db.execute(
        select(Wallet).where(Wallet.user_id == user_id)
    ).scalar_one_or_none()
    if not wallet:
        raise NotFoundError("Wallet", f"for user {user_id}")
    return wallet


def ensure_wallet(db: Session, user_id: int) -> Wallet:
    """
    Get or create the wallet for a user.

    Idempotent: returns the existing wallet if one exists. Flushes a new
    wallet so its id is available to the caller.
    """
    wallet = db.execute(
        select(Wallet).where(Wallet.user_id == user_id)
    ).scalar_one_or_none()
    if wallet:
        return wallet

    wallet = Wallet(
        user_id=user_id,
        balance=ZERO,
        total_deposits=ZERO,
        total_withdrawals=ZERO,
        total_investments=ZERO,
        total_profits=ZERO,
        frozen_amount=ZERO,
        pending_amount=ZERO,
        status=WalletStatus.ACTIVE,
    )
    db.add(wallet)
    db.flush()
    logger.info("Wallet created", extra={"wallet_id": wallet.id, "user_id": user_id})
    return wallet


def lock_wallet(db: Session, wallet_id: int) -> Wallet:
    """
    Load a wallet row with SELECT ... FOR UPDATE.

    populate_existing refreshes an instance already in the identity map so
    the caller sees the values committed by whoever held the lock before.
    Pending changes are flushed first so the refresh cannot discard them.
    """
    db.flush()
    wallet = db.execute(
        select(Wallet)
        .where(Wallet.id == wallet_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not wallet:
        raise NotFoundError("Wallet", wallet_id)
    return wallet


def ensure_active(wallet: Wallet) -> None:
    if wallet.status != WalletStatus.ACTIVE:
        raise WalletNotActive(
            f"Wallet is {wallet.status.value}; transactions are not allowed",
            details={"wallet_id": wallet.id, "status": wallet.status.value},
        )


def ensure_available(wallet: Wallet, amount: Decimal) -> None:
    """Raise InsufficientFunds if amount exceeds the wallet's available balance"""
    amount = to_money(amount)
    available = wallet.available_balance
    if amount > available:
        raise InsufficientFunds(
            f"Insufficient available balance. Available: ₹{available}, requested: ₹{amount}",
            details={"available_balance": str(available), "requested": str(amount)},
        )


def apply_transaction(db: Session, wallet_id: int, transaction: Transaction) -> Wallet:
    """
    Apply a transaction's net amount to the wallet balance and running totals.

    Credits (deposit, profit, refund) add net_amount; debits (withdrawal,
    investment) subtract it. Stamps balance_before/balance_after on the
    transaction and flushes. Any hold the debit settles (frozen withdrawal,
    reserved investment) must be released before calling.

    Raises:
        WalletNotActive: wallet status is not active
        InsufficientFunds: a debit would leave available balance below zero
    """
    wallet = lock_wallet(db, wallet_id)
    ensure_active(wallet)

    delta = signed_amount(transaction.type, transaction.net_amount)
    if delta < ZERO:
        ensure_available(wallet, -delta)

    balance_before = to_money(wallet.balance)
    balance_after = balance_before + delta

    column, direction = _TOTAL_COLUMN[transaction.type]
    current_total = to_money(getattr(wallet, column))
    setattr(wallet, column, current_total + direction * to_money(transaction.net_amount))

    wallet.balance = balance_after
    wallet.last_transaction_at = datetime.now(timezone.utc)

    transaction.balance_before = balance_before
    transaction.balance_after = balance_after

    db.flush()

    logger.info(
        "Ledger mutation applied",
        extra={
            "wallet_id": wallet.id,
            "transaction_reference": transaction.reference,
            "transaction_type": transaction.type.value,
            "delta": str(delta),
            "balance_after": str(balance_after),
        },
    )
    return wallet


def freeze(wallet: Wallet, amount: Decimal) -> None:
    """Hold amount for a pending withdrawal (requires available balance)"""
    ensure_active(wallet)
    ensure_available(wallet, amount)
    wallet.frozen_amount = to_money(wallet.frozen_amount) + to_money(amount)


def unfreeze(wallet: Wallet, amount: Decimal) -> None:
    wallet.frozen_amount = max(ZERO, to_money(wallet.frozen_amount) - to_money(amount))


def reserve(wallet: Wallet, amount: Decimal) -> None:
    """Hold amount for a pending investment (requires available balance)"""
    ensure_active(wallet)
    ensure_available(wallet, amount)
    wallet.pending_amount = to_money(wallet.pending_amount) + to_money(amount)


def release(wallet: Wallet, amount: Decimal) -> None:
    wallet.pending_amount = max(ZERO, to_money(wallet.pending_amount) - to_money(amount))


def get_summary(db: Session, wallet_id: int) -> Dict[str, Any]:
    """
    Wallet summary: balance, running totals, holds, available balance and
    transaction counts. Read-consistent with the latest committed state.
    """
    wallet = get_wallet(db, wallet_id)
    db.refresh(wallet)

    counts = dict(
        db.execute(
            select(Transaction.status, func.count(Transaction.id))
            .where(Transaction.wallet_id == wallet.id)
            .group_by(Transaction.status)
        ).all()
    )
    pending_deposits = db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.wallet_id == wallet.id,
            Transaction.type == TransactionType.DEPOSIT,
            Transaction.status == TransactionStatus.PENDING,
        )
    ).scalar()

    return {
        "wallet_id": wallet.id,
        "user_id": wallet.user_id,
        "status": wallet.status,
        "balance": to_money(wallet.balance),
        "total_deposits": to_money(wallet.total_deposits),
        "total_withdrawals": to_money(wallet.total_withdrawals),
        "total_investments": to_money(wallet.total_investments),
        "total_profits": to_money(wallet.total_profits),
        "frozen_amount": to_money(wallet.frozen_amount),
        "pending_amount": to_money(wallet.pending_amount),
        "available_balance": wallet.available_balance,
        "pending_deposits": to_money(pending_deposits),
        "total_transactions": sum(counts.values()),
        "completed_transactions": counts.get(TransactionStatus.COMPLETED, 0),
        "pending_transactions": counts.get(TransactionStatus.PENDING, 0),
        "last_transaction_at": wallet.last_transaction_at,
    }


def reconcile(db: Session, wallet_id: int) -> Dict[str, Any]:
    """
    Recompute running totals and holds from the transaction history.

    Expected values:
    - totals: sum of net_amount of completed transactions per type
    - balance: deposits - withdrawals - investments + profits
    - frozen_amount: sum of pending withdrawal amounts
    - pending_amount: sum of pending investment amounts

    Returns a report with stored, expected and drift per field. Records a
    ledger invariant violation metric when any drift is found. Read-only.
    """
    wallet = get_wallet(db, wallet_id)

    rows = db.execute(
        select(Transaction.type, Transaction.status, func.coalesce(func.sum(Transaction.net_amount), 0), func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.wallet_id == wallet.id)
        .group_by(Transaction.type, Transaction.status)
    ).all()

    completed: Dict[TransactionType, Decimal] = {t: ZERO for t in TransactionType}
    pending_gross: Dict[TransactionType, Decimal] = {t: ZERO for t in TransactionType}
    for tx_type, tx_status, net_sum, gross_sum in rows:
        if tx_status == TransactionStatus.COMPLETED:
            completed[tx_type] = to_money(net_sum)
        elif tx_status == TransactionStatus.PENDING:
            pending_gross[tx_type] = to_money(gross_sum)

    expected = {
        "total_deposits": completed[TransactionType.DEPOSIT],
        "total_withdrawals": completed[TransactionType.WITHDRAWAL],
        "total_investments": completed[TransactionType.INVESTMENT] - completed[TransactionType.REFUND],
        "total_profits": completed[TransactionType.PROFIT],
        "frozen_amount": pending_gross[TransactionType.WITHDRAWAL],
        "pending_amount": pending_gross[TransactionType.INVESTMENT],
    }
    expected["balance"] = (
        expected["total_deposits"]
        - expected["total_withdrawals"]
        - expected["total_investments"]
        + expected["total_profits"]
    )

    fields: List[Dict[str, str]] = []
    consistent = True
    for name, expected_value in expected.items():
        stored = to_money(getattr(wallet, name))
        drift = stored - expected_value
        if drift != ZERO:
            consistent = False
        fields.append({
            "field": name,
            "stored": str(stored),
            "expected": str(expected_value),
            "drift": str(drift),
        })

    if not consistent:
        logger.error(
            "Wallet ledger drift detected",
            extra={"wallet_id": wallet.id, "fields": [f for f in fields if f["drift"] != "0.00"]},
        )
        record_ledger_invariant_violation()

    return {"wallet_id": wallet.id, "consistent": consistent, "fields": fields}


# ---------------------------------------------------------------------------
# Admin wallet management (store / update / delete)
# ---------------------------------------------------------------------------

def list_wallets(
    db: Session,
    status: Optional[WalletStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Wallet], int]:
    query = select(Wallet)
    count_query = select(func.count(Wallet.id))
    if status:
        query = query.where(Wallet.status == status)
        count_query = count_query.where(Wallet.status == status)
    wallets = db.execute(query.order_by(Wallet.id.desc()).limit(limit).offset(offset)).scalars().all()
    total = db.execute(count_query).scalar_one()
    return list(wallets), total


def create_wallet(
    db: Session,
    *,
    user_id: int,
    status: WalletStatus = WalletStatus.ACTIVE,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Wallet:
    """Create a wallet for a user that has none. Money columns always start at zero."""
    if not db.get(User, user_id):
        raise NotFoundError("User", user_id)
    existing = db.execute(select(Wallet).where(Wallet.user_id == user_id)).scalar_one_or_none()
    if existing:
        raise ValidationError("User already has a wallet", field="user_id")

    wallet = ensure_wallet(db, user_id)
    wallet.status = status
    wallet.notes = notes
    record_audit(
        db,
        action="WALLET_CREATED",
        entity_type="Wallet",
        entity_id=wallet.id,
        actor_user_id=actor_user_id,
        after=snapshot(wallet, WALLET_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(wallet)
    return wallet


def update_wallet(
    db: Session,
    wallet_id: int,
    *,
    status: Optional[WalletStatus] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> Wallet:
    """
    Update wallet status/notes. Money columns are never edited here: balances
    move only through transactions.
    """
    wallet = lock_wallet(db, wallet_id)
    before = snapshot(wallet, WALLET_AUDIT_FIELDS)

    if status is not None:
        wallet.status = status
    if notes is not None:
        wallet.notes = notes

    record_audit(
        db,
        action="WALLET_UPDATED",
        entity_type="Wallet",
        entity_id=wallet.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(wallet, WALLET_AUDIT_FIELDS),
        reason=reason,
    )
    db.commit()
    db.refresh(wallet)
    logger.info(
        "Wallet updated",
        extra={"wallet_id": wallet.id, "status": wallet.status.value, "actor_user_id": actor_user_id},
    )
    return wallet


def delete_wallet(db: Session, wallet_id: int, *, actor_user_id: Optional[int] = None) -> None:
    """Delete an empty wallet with no transaction history"""
    wallet = lock_wallet(db, wallet_id)
    has_money = any(
        to_money(getattr(wallet, name)) != ZERO
        for name in ("balance", "frozen_amount", "pending_amount")
    )
    has_history = db.execute(
        select(func.count(Transaction.id)).where(Transaction.wallet_id == wallet.id)
    ).scalar_one() > 0
    if has_money or has_history:
        raise InvalidStateTransition(
            "Only an empty wallet without transactions can be deleted",
            details={"wallet_id": wallet.id},
        )

    record_audit(
        db,
        action="WALLET_DELETED",
        entity_type="Wallet",
        entity_id=wallet.id,
        actor_user_id=actor_user_id,
        before=snapshot(wallet, WALLET_AUDIT_FIELDS),
    )
    db.delete(wallet)
    db.commit()
