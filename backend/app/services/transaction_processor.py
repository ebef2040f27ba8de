"""
Transaction processor - the only writer of ledger-affecting transactions

Creates deposits and withdrawals, moves pending transactions to a terminal
status (approve / reject / cancel) and records profit and refund credits.
Each public operation is one unit of work and commits, except the
helpers used by other services (create_investment_debit, credit_wallet)
which flush and leave the commit to the caller.

Failure semantics: when the ledger refuses a mutation (InsufficientFunds,
WalletNotActive) during creation, crediting or approval, the transaction is
kept as REJECTED with the failure in rejection_reason, holds are released
and the domain error is re-raised. The rejection is committed, except in
create_investment_debit where the investment service commits it together
with the cancelled investment.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from app.core.common.money import to_money, ZERO
from app.core.payments.models import PaymentMethodType
from app.core.transactions.models import (
    Transaction,
    TransactionType,
    TransactionStatus,
    PaymentMode,
    REFERENCE_PREFIXES,
)
from app.core.wallets.models import Wallet
from app.core.security.models import Role
from app.infrastructure.settings import get_settings
from app.services import wallet_ledger
from app.services.audit import record_audit, snapshot
from app.services.exceptions import (
    DomainError,
    InsufficientFunds,
    WalletNotActive,
    InvalidStateTransition,
    ValidationError,
    NotFoundError,
)
from app.services.payment_helpers import resolve_payment_method
from app.utils.metrics import record_wallet_transaction

logger = logging.getLogger(__name__)

LEDGER_ERRORS = (InsufficientFunds, WalletNotActive)

TRANSACTION_AUDIT_FIELDS = (
    "reference",
    "type",
    "status",
    "amount",
    "processing_fee",
    "net_amount",
    "balance_before",
    "balance_after",
    "rejection_reason",
)

# Payment modes that need a destination for withdrawals
_BANK_ACCOUNT_MODES = (PaymentMode.BANK_TRANSFER, PaymentMode.CHEQUE)

_PAYMENT_FLOWS = {
    TransactionType.DEPOSIT: PaymentMethodType.DEPOSIT,
    TransactionType.WITHDRAWAL: PaymentMethodType.WITHDRAWAL,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _minimum_amount(transaction_type: TransactionType) -> Optional[Decimal]:
    settings = get_settings()
    if transaction_type == TransactionType.DEPOSIT:
        return to_money(settings.MIN_DEPOSIT_AMOUNT)
    if transaction_type == TransactionType.WITHDRAWAL:
        return to_money(settings.MIN_WITHDRAWAL_AMOUNT)
    return None


def generate_reference(transaction_type: TransactionType) -> str:
    """Human-readable unique reference, e.g. DEP_20250101A1B2C3D4"""
    prefix = REFERENCE_PREFIXES[transaction_type]
    return f"{prefix}_{_now():%Y%m%d}{uuid4().hex[:8].upper()}"


def should_auto_approve(amount: Decimal, auto_approve: bool) -> bool:
    """
    Server-side auto-approval policy for deposits.

    The client flag is only a request: the deposit must also be strictly
    below AUTO_APPROVE_CEILING and auto-approval must be enabled.
    """
    settings = get_settings()
    return (
        bool(auto_approve)
        and settings.AUTO_APPROVE_ENABLED
        and to_money(amount) < to_money(settings.AUTO_APPROVE_CEILING)
    )


def lock_transaction(db: Session, transaction_id: int) -> Transaction:
    """Load a transaction row with SELECT ... FOR UPDATE"""
    db.flush()
    transaction = db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not transaction:
        raise NotFoundError("Transaction", transaction_id)
    return transaction


def get_transaction(db: Session, transaction_id: int, user_id: Optional[int] = None) -> Transaction:
    """Get a transaction; when user_id is given, only the owner's transaction is visible"""
    transaction = db.get(Transaction, transaction_id)
    if not transaction or (user_id is not None and transaction.user_id != user_id):
        raise NotFoundError("Transaction", transaction_id)
    return transaction


def list_transactions(
    db: Session,
    *,
    wallet_id: Optional[int] = None,
    user_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
    status: Optional[TransactionStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Transaction], int]:
    """Filtered, newest-first transaction history with total count"""
    conditions = []
    if wallet_id is not None:
        conditions.append(Transaction.wallet_id == wallet_id)
    if user_id is not None:
        conditions.append(Transaction.user_id == user_id)
    if transaction_type is not None:
        conditions.append(Transaction.type == transaction_type)
    if status is not None:
        conditions.append(Transaction.status == status)
    if start_date is not None:
        conditions.append(Transaction.created_at >= start_date)
    if end_date is not None:
        conditions.append(Transaction.created_at <= end_date)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            Transaction.reference.ilike(pattern),
            Transaction.payment_reference.ilike(pattern),
            Transaction.description.ilike(pattern),
        ))

    items = db.execute(
        select(Transaction)
        .where(*conditions)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .offset(offset)
    ).scalars().all()
    total = db.execute(select(func.count(Transaction.id)).where(*conditions)).scalar_one()
    return list(items), total


def _new_transaction(
    wallet: Wallet,
    transaction_type: TransactionType,
    amount: Decimal,
    processing_fee: Decimal = ZERO,
    status: TransactionStatus = TransactionStatus.PENDING,
    **fields: Any,
) -> Transaction:
    """Build a transaction with projected balance_before/balance_after"""
    amount = to_money(amount)
    processing_fee = to_money(processing_fee)
    net_amount = amount - processing_fee
    if net_amount <= ZERO:
        raise ValidationError("Amount must be greater than the processing fee", field="amount")

    balance_before = to_money(wallet.balance)
    delta = wallet_ledger.signed_amount(transaction_type, net_amount)
    return Transaction(
        reference=generate_reference(transaction_type),
        wallet_id=wallet.id,
        user_id=wallet.user_id,
        type=transaction_type,
        status=status,
        amount=amount,
        processing_fee=processing_fee,
        net_amount=net_amount,
        balance_before=balance_before,
        balance_after=balance_before + delta,
        **fields,
    )


def _release_holds(wallet: Wallet, transaction: Transaction) -> None:
    """Release the hold a pending transaction placed on its wallet"""
    if transaction.type == TransactionType.WITHDRAWAL:
        wallet_ledger.unfreeze(wallet, transaction.amount)
    elif transaction.type == TransactionType.INVESTMENT:
        wallet_ledger.release(wallet, transaction.amount)


def _place_holds(wallet: Wallet, transaction: Transaction) -> None:
    if transaction.type == TransactionType.WITHDRAWAL:
        wallet_ledger.freeze(wallet, transaction.amount)
    elif transaction.type == TransactionType.INVESTMENT:
        wallet_ledger.reserve(wallet, transaction.amount)


def _close(
    transaction: Transaction,
    wallet: Wallet,
    status: TransactionStatus,
    actor_user_id: Optional[int],
    reason: Optional[str],
) -> None:
    """Move a transaction to rejected/cancelled/failed; balances are restamped unchanged"""
    transaction.status = status
    transaction.rejected_by = actor_user_id
    transaction.rejected_at = _now()
    transaction.rejection_reason = reason
    transaction.balance_before = to_money(wallet.balance)
    transaction.balance_after = to_money(wallet.balance)


def _record_ledger_failure(
    db: Session,
    transaction: Transaction,
    wallet: Wallet,
    error: DomainError,
    actor_user_id: Optional[int],
    action: str,
    actor_role: Role = Role.ADMIN,
    commit: bool = True,
) -> None:
    """
    Persist a ledger refusal as a rejected transaction.

    With commit=False the row is only flushed and the caller commits it
    along with its own records.
    """
    before = snapshot(transaction, TRANSACTION_AUDIT_FIELDS) if transaction.id else None
    _close(transaction, wallet, TransactionStatus.REJECTED, actor_user_id, error.message)
    db.add(transaction)
    db.flush()
    record_audit(
        db,
        action=action,
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        before=before,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
        reason=error.message,
    )
    if commit:
        db.commit()
    record_wallet_transaction(transaction.type.value, TransactionStatus.REJECTED.value)
    logger.warning(
        "Transaction rejected by ledger",
        extra={
            "transaction_id": transaction.id,
            "reference": transaction.reference,
            "error_code": error.code,
            "reason": error.message,
        },
    )


def create_deposit(
    db: Session,
    *,
    wallet_id: int,
    amount: Decimal,
    payment_method_id: int,
    payment_mode: PaymentMode,
    payment_reference: Optional[str] = None,
    notes: Optional[str] = None,
    auto_approve: bool = False,
    actor_user_id: Optional[int] = None,
    actor_role: Role = Role.USER,
    ip_address: Optional[str] = None,
) -> Transaction:
    """
    Create a deposit.

    Rules:
    - amount >= MIN_DEPOSIT_AMOUNT
    - payment method active, accepts deposits, amount within its limits
    - auto-approved (COMPLETED, ledger credited +net_amount) only when
      should_auto_approve() allows it; otherwise PENDING until an admin acts
    - a deposit into an inactive wallet is recorded as REJECTED

    Raises:
        ValidationError, WalletNotActive
    """
    settings = get_settings()
    amount = to_money(amount)
    if amount < to_money(settings.MIN_DEPOSIT_AMOUNT):
        raise ValidationError(f"Minimum deposit amount is ₹{to_money(settings.MIN_DEPOSIT_AMOUNT)}", field="amount")

    wallet = wallet_ledger.lock_wallet(db, wallet_id)
    payment_method = resolve_payment_method(db, payment_method_id, PaymentMethodType.DEPOSIT, amount)

    transaction = _new_transaction(
        wallet,
        TransactionType.DEPOSIT,
        amount,
        processing_fee=payment_method.calculate_fee(amount),
        payment_method_id=payment_method.id,
        payment_mode=payment_mode,
        payment_reference=payment_reference,
        description=f"Deposit via {payment_method.name}",
        notes=notes,
        ip_address=ip_address,
    )
    try:
        wallet_ledger.ensure_active(wallet)
    except LEDGER_ERRORS as e:
        _record_ledger_failure(db, transaction, wallet, e, actor_user_id, "DEPOSIT_REJECTED", actor_role=actor_role)
        raise
    db.add(transaction)
    db.flush()

    if should_auto_approve(amount, auto_approve):
        try:
            wallet_ledger.apply_transaction(db, wallet.id, transaction)
        except LEDGER_ERRORS as e:
            _record_ledger_failure(db, transaction, wallet, e, actor_user_id, "DEPOSIT_REJECTED", actor_role=actor_role)
            raise
        transaction.status = TransactionStatus.COMPLETED
        transaction.approved_at = _now()
        transaction.description = f"Deposit via {payment_method.name} (auto-approved)"

    record_audit(
        db,
        action="DEPOSIT_CREATED",
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
        ip=ip_address,
    )
    db.commit()
    db.refresh(transaction)

    record_wallet_transaction(transaction.type.value, transaction.status.value)
    logger.info(
        "Deposit created",
        extra={
            "transaction_id": transaction.id,
            "reference": transaction.reference,
            "wallet_id": wallet.id,
            "amount": str(amount),
            "status": transaction.status.value,
            "auto_approve_requested": bool(auto_approve),
        },
    )
    return transaction


def create_withdrawal(
    db: Session,
    *,
    wallet_id: int,
    amount: Decimal,
    payment_method_id: int,
    payment_mode: PaymentMode,
    bank_account: Optional[str] = None,
    upi_id: Optional[str] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
    actor_role: Role = Role.USER,
    ip_address: Optional[str] = None,
) -> Transaction:
    """
    Create a withdrawal request. Never auto-approved.

    The requested amount is frozen until an admin approves (ledger debit
    -net_amount) or rejects (hold released). An amount above the available
    balance is recorded as REJECTED and InsufficientFunds is raised; the
    balance is not touched.
    """
    settings = get_settings()
    amount = to_money(amount)
    if amount < to_money(settings.MIN_WITHDRAWAL_AMOUNT):
        raise ValidationError(f"Minimum withdrawal amount is ₹{to_money(settings.MIN_WITHDRAWAL_AMOUNT)}", field="amount")
    if payment_mode in _BANK_ACCOUNT_MODES and not (bank_account or "").strip():
        raise ValidationError("Bank account details are required for this payment mode", field="bank_account")
    if payment_mode == PaymentMode.UPI and not (upi_id or "").strip():
        raise ValidationError("UPI ID is required for UPI withdrawals", field="upi_id")

    wallet = wallet_ledger.lock_wallet(db, wallet_id)
    payment_method = resolve_payment_method(db, payment_method_id, PaymentMethodType.WITHDRAWAL, amount)

    transaction = _new_transaction(
        wallet,
        TransactionType.WITHDRAWAL,
        amount,
        processing_fee=payment_method.calculate_fee(amount),
        payment_method_id=payment_method.id,
        payment_mode=payment_mode,
        bank_account=bank_account,
        upi_id=upi_id,
        description=f"Withdrawal via {payment_method.name}",
        notes=notes,
        ip_address=ip_address,
    )

    try:
        wallet_ledger.freeze(wallet, amount)
    except LEDGER_ERRORS as e:
        _record_ledger_failure(db, transaction, wallet, e, actor_user_id, "WITHDRAWAL_REJECTED", actor_role=actor_role)
        raise

    db.add(transaction)
    db.flush()
    record_audit(
        db,
        action="WITHDRAWAL_REQUESTED",
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
        ip=ip_address,
    )
    db.commit()
    db.refresh(transaction)

    record_wallet_transaction(transaction.type.value, transaction.status.value)
    logger.info(
        "Withdrawal requested",
        extra={
            "transaction_id": transaction.id,
            "reference": transaction.reference,
            "wallet_id": wallet.id,
            "amount": str(amount),
        },
    )
    return transaction


def create_investment_debit(
    db: Session,
    *,
    wallet_id: int,
    investment_id: int,
    amount: Decimal,
    description: str,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
    actor_role: Role = Role.USER,
) -> Transaction:
    """
    Pending investment transaction that reserves amount in pending_amount.

    Flushes only; the investment service commits both records together.
    When the reservation is refused the transaction is flushed as REJECTED
    and InsufficientFunds / WalletNotActive is raised, still uncommitted.
    """
    wallet = wallet_ledger.lock_wallet(db, wallet_id)
    transaction = _new_transaction(
        wallet,
        TransactionType.INVESTMENT,
        amount,
        investment_id=investment_id,
        description=description,
        notes=notes,
    )
    try:
        wallet_ledger.reserve(wallet, transaction.amount)
    except LEDGER_ERRORS as e:
        _record_ledger_failure(
            db, transaction, wallet, e, actor_user_id, "INVESTMENT_DEBIT_REJECTED",
            actor_role=actor_role, commit=False,
        )
        raise
    db.add(transaction)
    db.flush()
    return transaction


def credit_wallet(
    db: Session,
    *,
    wallet_id: int,
    transaction_type: TransactionType,
    amount: Decimal,
    description: str,
    profit_id: Optional[int] = None,
    investment_id: Optional[int] = None,
    actor_user_id: Optional[int] = None,
) -> Transaction:
    """
    Completed credit (profit or refund) applied to the ledger immediately.

    Flushes only; the caller commits. An inactive wallet gets a committed
    REJECTED credit and WalletNotActive is raised; the caller's own pending
    changes must not be flushed yet when that can happen.
    """
    if transaction_type not in (TransactionType.PROFIT, TransactionType.REFUND):
        raise ValueError(f"credit_wallet does not handle {transaction_type.value} transactions")

    wallet = wallet_ledger.lock_wallet(db, wallet_id)
    transaction = _new_transaction(
        wallet,
        transaction_type,
        amount,
        status=TransactionStatus.COMPLETED,
        profit_id=profit_id,
        investment_id=investment_id,
        description=description,
    )
    try:
        wallet_ledger.ensure_active(wallet)
    except LEDGER_ERRORS as e:
        _record_ledger_failure(db, transaction, wallet, e, actor_user_id, f"{transaction_type.name}_REJECTED")
        raise
    transaction.approved_by = actor_user_id
    transaction.approved_at = _now()
    db.add(transaction)
    db.flush()
    wallet_ledger.apply_transaction(db, wallet.id, transaction)
    record_wallet_transaction(transaction.type.value, transaction.status.value)
    return transaction


def approve(
    db: Session,
    transaction_id: int,
    *,
    approver_id: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Transaction:
    """
    Approve a pending transaction: release its hold and apply it to the ledger.

    Raises:
        InvalidStateTransition: transaction is not pending
        InsufficientFunds / WalletNotActive: ledger refused (transaction is
            left REJECTED with the reason, then the error is re-raised)
    """
    transaction = lock_transaction(db, transaction_id)
    if transaction.status != TransactionStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending transactions can be approved (current status: {transaction.status.value})",
            details={"transaction_id": transaction.id, "status": transaction.status.value},
        )

    wallet = wallet_ledger.lock_wallet(db, transaction.wallet_id)
    before = snapshot(transaction, TRANSACTION_AUDIT_FIELDS)

    _release_holds(wallet, transaction)
    try:
        wallet_ledger.apply_transaction(db, wallet.id, transaction)
    except LEDGER_ERRORS as e:
        # Hold already released above
        _close(transaction, wallet, TransactionStatus.REJECTED, approver_id, e.message)
        record_audit(
            db,
            action="TRANSACTION_APPROVAL_FAILED",
            entity_type="Transaction",
            entity_id=transaction.id,
            actor_user_id=approver_id,
            before=before,
            after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
            reason=e.message,
            ip=ip_address,
        )
        db.commit()
        record_wallet_transaction(transaction.type.value, TransactionStatus.REJECTED.value)
        logger.warning(
            "Transaction approval refused by ledger",
            extra={"transaction_id": transaction.id, "error_code": e.code, "reason": e.message},
        )
        raise

    transaction.status = TransactionStatus.COMPLETED
    transaction.approved_by = approver_id
    transaction.approved_at = _now()

    record_audit(
        db,
        action="TRANSACTION_APPROVED",
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=approver_id,
        before=before,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
        ip=ip_address,
    )
    db.commit()
    db.refresh(transaction)

    record_wallet_transaction(transaction.type.value, transaction.status.value)
    logger.info(
        "Transaction approved",
        extra={
            "transaction_id": transaction.id,
            "reference": transaction.reference,
            "type": transaction.type.value,
            "approver_id": approver_id,
        },
    )
    return transaction


def _terminate(
    db: Session,
    transaction_id: int,
    status: TransactionStatus,
    action: str,
    actor_user_id: Optional[int],
    reason: Optional[str],
    ip_address: Optional[str],
) -> Transaction:
    transaction = lock_transaction(db, transaction_id)
    if transaction.status != TransactionStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending transactions can be {status.value} (current status: {transaction.status.value})",
            details={"transaction_id": transaction.id, "status": transaction.status.value},
        )

    wallet = wallet_ledger.lock_wallet(db, transaction.wallet_id)
    before = snapshot(transaction, TRANSACTION_AUDIT_FIELDS)
    _release_holds(wallet, transaction)
    _close(transaction, wallet, status, actor_user_id, reason)

    record_audit(
        db,
        action=action,
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
        reason=reason,
        ip=ip_address,
    )
    db.commit()
    db.refresh(transaction)

    record_wallet_transaction(transaction.type.value, transaction.status.value)
    logger.info(
        f"Transaction {status.value}",
        extra={"transaction_id": transaction.id, "reference": transaction.reference, "reason": reason},
    )
    return transaction


def reject(
    db: Session,
    transaction_id: int,
    *,
    approver_id: Optional[int] = None,
    reason: str,
    ip_address: Optional[str] = None,
) -> Transaction:
    """Reject a pending transaction; any hold is released and the balance is untouched"""
    if not (reason or "").strip():
        raise ValidationError("Rejection reason is required", field="reason")
    return _terminate(db, transaction_id, TransactionStatus.REJECTED, "TRANSACTION_REJECTED", approver_id, reason, ip_address)


def cancel(
    db: Session,
    transaction_id: int,
    *,
    actor_user_id: Optional[int] = None,
    reason: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Transaction:
    """Cancel a pending transaction; any hold is released"""
    return _terminate(db, transaction_id, TransactionStatus.CANCELLED, "TRANSACTION_CANCELLED", actor_user_id, reason, ip_address)


def create_manual(
    db: Session,
    *,
    wallet_id: int,
    transaction_type: TransactionType,
    amount: Decimal,
    status: TransactionStatus = TransactionStatus.PENDING,
    processing_fee: Decimal = ZERO,
    payment_mode: Optional[PaymentMode] = None,
    payment_reference: Optional[str] = None,
    description: Optional[str] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Transaction:
    """
    Admin-entered transaction (cash desk, corrections).

    PENDING places the usual hold (withdrawal frozen, investment reserved);
    COMPLETED goes through the ledger immediately. Other statuses are not
    accepted here.
    """
    if status not in (TransactionStatus.PENDING, TransactionStatus.COMPLETED):
        raise ValidationError("Manual transactions start as pending or completed", field="status")
    if to_money(amount) <= ZERO:
        raise ValidationError("Amount must be greater than 0", field="amount")

    wallet = wallet_ledger.lock_wallet(db, wallet_id)
    transaction = _new_transaction(
        wallet,
        transaction_type,
        amount,
        processing_fee=processing_fee,
        payment_mode=payment_mode,
        payment_reference=payment_reference,
        description=description or f"Manual {transaction_type.value}",
        notes=notes,
    )

    try:
        if status == TransactionStatus.PENDING:
            _place_holds(wallet, transaction)
            db.add(transaction)
            db.flush()
        else:
            db.add(transaction)
            db.flush()
            wallet_ledger.apply_transaction(db, wallet.id, transaction)
            transaction.status = TransactionStatus.COMPLETED
            transaction.approved_by = actor_user_id
            transaction.approved_at = _now()
    except LEDGER_ERRORS as e:
        _record_ledger_failure(db, transaction, wallet, e, actor_user_id, "TRANSACTION_REJECTED")
        raise

    record_audit(
        db,
        action="TRANSACTION_CREATED",
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(transaction)
    record_wallet_transaction(transaction.type.value, transaction.status.value)
    return transaction


def update_pending(
    db: Session,
    transaction_id: int,
    *,
    amount: Optional[Decimal] = None,
    payment_mode: Optional[PaymentMode] = None,
    payment_reference: Optional[str] = None,
    description: Optional[str] = None,
    notes: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Transaction:
    """
    Edit a pending transaction. Completed (and any other terminal) history
    is immutable. Changing the amount moves the hold and recomputes the fee.
    A deposit or withdrawal made through a payment method is held to the
    same minimum and method limits as when it was created.
    """
    transaction = lock_transaction(db, transaction_id)
    if transaction.status != TransactionStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending transactions can be edited (current status: {transaction.status.value})",
            details={"transaction_id": transaction.id, "status": transaction.status.value},
        )

    before = snapshot(transaction, TRANSACTION_AUDIT_FIELDS)

    if amount is not None and to_money(amount) != to_money(transaction.amount):
        amount = to_money(amount)
        payment_method = None
        if transaction.payment_method_id is not None:
            flow = _PAYMENT_FLOWS.get(transaction.type)
            minimum = _minimum_amount(transaction.type)
            if minimum is not None and amount < minimum:
                raise ValidationError(
                    f"Minimum {transaction.type.value} amount is ₹{minimum}",
                    field="amount",
                )
            if flow is not None:
                payment_method = resolve_payment_method(db, transaction.payment_method_id, flow, amount)
        wallet = wallet_ledger.lock_wallet(db, transaction.wallet_id)
        fee = (
            payment_method.calculate_fee(amount)
            if payment_method is not None
            else to_money(transaction.processing_fee)
        )
        if amount - fee <= ZERO:
            raise ValidationError("Amount must be greater than the processing fee", field="amount")

        _release_holds(wallet, transaction)
        transaction.amount = amount
        try:
            _place_holds(wallet, transaction)
        except LEDGER_ERRORS:
            db.rollback()
            raise

        transaction.processing_fee = fee
        transaction.net_amount = amount - fee
        transaction.balance_before = to_money(wallet.balance)
        transaction.balance_after = to_money(wallet.balance) + wallet_ledger.signed_amount(transaction.type, transaction.net_amount)

    if payment_mode is not None:
        transaction.payment_mode = payment_mode
    if payment_reference is not None:
        transaction.payment_reference = payment_reference
    if description is not None:
        transaction.description = description
    if notes is not None:
        transaction.notes = notes

    record_audit(
        db,
        action="TRANSACTION_UPDATED",
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        before=before,
        after=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
    )
    db.commit()
    db.refresh(transaction)
    return transaction


def delete(db: Session, transaction_id: int, *, actor_user_id: Optional[int] = None) -> None:
    """
    Delete a non-completed transaction. A pending one releases its hold.
    Pending investment transactions belong to their investment and are
    closed by cancelling the investment instead.
    """
    transaction = lock_transaction(db, transaction_id)
    if transaction.status == TransactionStatus.COMPLETED:
        raise InvalidStateTransition(
            "Completed transactions cannot be deleted",
            details={"transaction_id": transaction.id},
        )
    if transaction.is_pending and transaction.type == TransactionType.INVESTMENT:
        raise InvalidStateTransition(
            "Pending investment transactions are closed by cancelling the investment",
            details={"transaction_id": transaction.id, "investment_id": transaction.investment_id},
        )

    if transaction.is_pending:
        wallet = wallet_ledger.lock_wallet(db, transaction.wallet_id)
        _release_holds(wallet, transaction)

    record_audit(
        db,
        action="TRANSACTION_DELETED",
        entity_type="Transaction",
        entity_id=transaction.id,
        actor_user_id=actor_user_id,
        before=snapshot(transaction, TRANSACTION_AUDIT_FIELDS),
    )
    db.delete(transaction)
    db.commit()
    logger.info("Transaction deleted", extra={"transaction_id": transaction_id, "actor_user_id": actor_user_id})


def bulk_review(
    db: Session,
    transaction_ids: List[int],
    *,
    action: str,
    approver_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Approve or reject many transactions; one result per id, each in its own unit of work"""
    results: List[Dict[str, Any]] = []
    for transaction_id in transaction_ids:
        try:
            linked = get_transaction(db, transaction_id)
            if linked.type == TransactionType.INVESTMENT and linked.investment_id is not None:
                raise ValidationError("Investment transactions are reviewed through their investment", field="transaction_ids")
            if action == "approve":
                transaction = approve(db, transaction_id, approver_id=approver_id)
            else:
                transaction = reject(db, transaction_id, approver_id=approver_id, reason=reason or "")
            results.append({"id": transaction_id, "success": True, "status": transaction.status.value})
        except DomainError as e:
            db.rollback()
            results.append({"id": transaction_id, "success": False, "error_code": e.code, "message": e.message})
    return results
