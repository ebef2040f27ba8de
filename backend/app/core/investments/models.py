"""
Investment model - a user's stake in a property or plot
"""

from decimal import Decimal
from sqlalchemy import Column, Integer, ForeignKey, Numeric, Text, DateTime, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel


class InvestmentStatus(str, enum.Enum):
    """Investment status enum"""
    PENDING = "pending"  # Funds reserved, awaiting admin approval
    ACTIVE = "active"  # Funds debited
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Investment(BaseModel):
    """Investment model"""

    __tablename__ = "investments"

    user_id = Column(Integer, ForeignKey("users.id", name="fk_investments_user_id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", name="fk_investments_property_id"), nullable=True, index=True)
    plot_id = Column(Integer, ForeignKey("plots.id", name="fk_investments_plot_id"), nullable=True, index=True)

    amount = Column(Numeric(20, 2), nullable=False)
    status = Column(SQLEnum(InvestmentStatus, name="investment_status", create_constraint=True), nullable=False, default=InvestmentStatus.PENDING, index=True)

    expected_return = Column(Numeric(20, 2), nullable=True)
    actual_return = Column(Numeric(20, 2), nullable=True)
    return_rate = Column(Numeric(5, 2), nullable=True)  # Percent
    profit_distributed = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))

    investment_date = Column(DateTime(timezone=True), nullable=True)  # Set on approval
    maturity_date = Column(DateTime(timezone=True), nullable=True)
    reinvestment_count = Column(Integer, nullable=False, default=0)
    source_investment_id = Column(Integer, ForeignKey("investments.id", name="fk_investments_source_investment_id"), nullable=True, index=True)  # Set on reinvestments
    notes = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="investments")
    property = relationship("Property", foreign_keys=[property_id])
    plot = relationship("Plot", foreign_keys=[plot_id])
    profits = relationship("Profit", back_populates="investment", lazy="select")
    source_investment = relationship("Investment", remote_side="Investment.id", foreign_keys=[source_investment_id])

    __table_args__ = (
        CheckConstraint('amount > 0', name='check_investments_amount_positive'),
    )
