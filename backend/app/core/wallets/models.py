"""
Wallet model - Per-user INR balance with running totals and holds
"""

from decimal import Decimal
from sqlalchemy import Column, Integer, ForeignKey, Numeric, Text, DateTime, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel
from app.core.common.money import to_money


class WalletStatus(str, enum.Enum):
    """Wallet status enum"""
    ACTIVE = "active"
    FROZEN = "frozen"
    SUSPENDED = "suspended"


class Wallet(BaseModel):
    """
    Wallet model - One per user

    balance is the settled amount. It always equals
    total_deposits - total_withdrawals - total_investments + total_profits,
    accumulated over completed transactions only.

    frozen_amount and pending_amount are holds on top of balance:
    - frozen_amount: requested withdrawals awaiting approval
    - pending_amount: investments awaiting approval

    Mutations go through app.services.wallet_ledger, never directly.
    """

    __tablename__ = "wallets"

    user_id = Column(Integer, ForeignKey("users.id", name="fk_wallets_user_id"), nullable=False, unique=True, index=True)

    balance = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    total_deposits = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    total_withdrawals = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    total_investments = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    total_profits = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))

    frozen_amount = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    pending_amount = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))

    status = Column(SQLEnum(WalletStatus, name="wallet_status", create_constraint=True), nullable=False, default=WalletStatus.ACTIVE, index=True)
    notes = Column(Text, nullable=True)
    last_transaction_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="wallet")
    transactions = relationship("Transaction", back_populates="wallet", lazy="select")

    __table_args__ = (
        CheckConstraint('frozen_amount >= 0', name='check_wallets_frozen_non_negative'),
        CheckConstraint('pending_amount >= 0', name='check_wallets_pending_non_negative'),
    )

    @property
    def available_balance(self) -> Decimal:
        """balance - frozen_amount - pending_amount"""
        return to_money(self.balance) - to_money(self.frozen_amount) - to_money(self.pending_amount)

    @property
    def is_active(self) -> bool:
        return self.status == WalletStatus.ACTIVE
