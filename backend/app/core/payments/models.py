"""
PaymentMethod model - Deposit/withdrawal channels with limits and fees
"""

from decimal import Decimal
from typing import Optional
from sqlalchemy import Column, String, Boolean, Numeric, Text, Enum as SQLEnum
import enum
from app.core.common.base_model import BaseModel
from app.core.common.money import to_money, ZERO


class PaymentMethodType(str, enum.Enum):
    """Which flows a payment method may be used for"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    BOTH = "both"


class FeeType(str, enum.Enum):
    """Processing fee type"""
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class PaymentMethod(BaseModel):
    """PaymentMethod model"""

    __tablename__ = "payment_methods"

    name = Column(String(100), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)
    type = Column(SQLEnum(PaymentMethodType, name="payment_method_type", create_constraint=True), nullable=False, default=PaymentMethodType.BOTH)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    min_amount = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    max_amount = Column(Numeric(20, 2), nullable=True)  # NULL = no upper limit
    processing_fee = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    processing_fee_type = Column(SQLEnum(FeeType, name="fee_type", create_constraint=True), nullable=False, default=FeeType.FIXED)
    description = Column(Text, nullable=True)

    def supports(self, flow: PaymentMethodType) -> bool:
        """True if this method accepts the given flow (deposit or withdrawal)"""
        return self.type == PaymentMethodType.BOTH or self.type == flow

    def calculate_fee(self, amount: Decimal) -> Decimal:
        fee = to_money(self.processing_fee)
        if fee <= ZERO:
            return ZERO
        if self.processing_fee_type == FeeType.PERCENTAGE:
            return to_money(to_money(amount) * fee / Decimal("100"))
        return fee

    def can_process(self, amount: Decimal) -> bool:
        amount = to_money(amount)
        if amount < to_money(self.min_amount):
            return False
        if self.max_amount is not None and amount > to_money(self.max_amount):
            return False
        return True

    def limits_message(self) -> str:
        max_part: Optional[str] = f" and at most ₹{to_money(self.max_amount)}" if self.max_amount is not None else ""
        return f"Amount must be at least ₹{to_money(self.min_amount)}{max_part} for {self.name}"
