"""
Transaction model - Every ledger-affecting wallet event with its lifecycle
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Numeric, Text, DateTime, Enum as SQLEnum, CheckConstraint, Index
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel


class TransactionType(str, enum.Enum):
    """Transaction type enum"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"
    PROFIT = "profit"
    REFUND = "refund"


# Credits add net_amount to the balance, debits subtract it
CREDIT_TYPES = frozenset({TransactionType.DEPOSIT, TransactionType.PROFIT, TransactionType.REFUND})
DEBIT_TYPES = frozenset({TransactionType.WITHDRAWAL, TransactionType.INVESTMENT})


class TransactionStatus(str, enum.Enum):
    """Transaction status enum - pending is the only non-terminal state"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PaymentMode(str, enum.Enum):
    """How money moves in or out"""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CHEQUE = "cheque"
    ONLINE = "online"


# Reference prefixes per type (DEP_..., WTH_..., INV_..., PRF_..., REF_...)
REFERENCE_PREFIXES = {
    TransactionType.DEPOSIT: "DEP",
    TransactionType.WITHDRAWAL: "WTH",
    TransactionType.INVESTMENT: "INV",
    TransactionType.PROFIT: "PRF",
    TransactionType.REFUND: "REF",
}


class Transaction(BaseModel):
    """
    Transaction model

    balance_before/balance_after are projected at creation time for pending
    transactions and restamped from the actual ledger mutation on completion.
    Completed transactions are immutable.
    """

    __tablename__ = "transactions"

    reference = Column(String(64), nullable=False, unique=True, index=True)
    wallet_id = Column(Integer, ForeignKey("wallets.id", name="fk_transactions_wallet_id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", name="fk_transactions_user_id"), nullable=False, index=True)

    type = Column(SQLEnum(TransactionType, name="transaction_type", create_constraint=True), nullable=False, index=True)
    status = Column(SQLEnum(TransactionStatus, name="transaction_status", create_constraint=True), nullable=False, default=TransactionStatus.PENDING, index=True)

    amount = Column(Numeric(20, 2), nullable=False)
    processing_fee = Column(Numeric(20, 2), nullable=False, default=0)
    net_amount = Column(Numeric(20, 2), nullable=False)
    balance_before = Column(Numeric(20, 2), nullable=False)
    balance_after = Column(Numeric(20, 2), nullable=False)

    payment_method_id = Column(Integer, ForeignKey("payment_methods.id", name="fk_transactions_payment_method_id"), nullable=True, index=True)
    payment_mode = Column(SQLEnum(PaymentMode, name="payment_mode", create_constraint=True), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    bank_account = Column(String(255), nullable=True)
    upi_id = Column(String(255), nullable=True)

    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    investment_id = Column(Integer, ForeignKey("investments.id", name="fk_transactions_investment_id"), nullable=True, index=True)
    profit_id = Column(Integer, ForeignKey("profits.id", name="fk_transactions_profit_id"), nullable=True, index=True)

    approved_by = Column(Integer, ForeignKey("users.id", name="fk_transactions_approved_by"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(Integer, ForeignKey("users.id", name="fk_transactions_rejected_by"), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    ip_address = Column(String(45), nullable=True)  # IPv6 max length

    # Relationships
    wallet = relationship("Wallet", back_populates="transactions")
    user = relationship("User", foreign_keys=[user_id])
    payment_method = relationship("PaymentMethod", foreign_keys=[payment_method_id])
    investment = relationship("Investment", foreign_keys=[investment_id])
    profit = relationship("Profit", foreign_keys=[profit_id])
    approver = relationship("User", foreign_keys=[approved_by])
    rejecter = relationship("User", foreign_keys=[rejected_by])

    __table_args__ = (
        CheckConstraint('amount > 0', name='check_transactions_amount_positive'),
        CheckConstraint('processing_fee >= 0', name='check_transactions_fee_non_negative'),
        Index('ix_transactions_wallet_status', 'wallet_id', 'status'),
        Index('ix_transactions_user_created', 'user_id', 'created_at'),
    )

    @property
    def is_credit(self) -> bool:
        return self.type in CREDIT_TYPES

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING
