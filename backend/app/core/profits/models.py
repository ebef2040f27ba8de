"""
Profit model - a sale's realised profit split between investor and company
"""

from sqlalchemy import Column, Integer, ForeignKey, Numeric, Text, DateTime, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel


class ProfitStatus(str, enum.Enum):
    """Profit status enum"""
    PENDING = "pending"
    DISTRIBUTED = "distributed"
    CANCELLED = "cancelled"


class Profit(BaseModel):
    """
    Profit model

    investor_share + company_share == total_profit, exactly.
    profit_percentage + company_percentage == 100.
    At most one non-cancelled Profit per Sale.
    """

    __tablename__ = "profits"

    user_id = Column(Integer, ForeignKey("users.id", name="fk_profits_user_id"), nullable=False, index=True)
    investment_id = Column(Integer, ForeignKey("investments.id", name="fk_profits_investment_id"), nullable=False, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", name="fk_profits_sale_id"), nullable=False, index=True)

    total_profit = Column(Numeric(20, 2), nullable=False)
    profit_percentage = Column(Numeric(5, 2), nullable=False)  # Investor's percent
    company_percentage = Column(Numeric(5, 2), nullable=False)
    investor_share = Column(Numeric(20, 2), nullable=False)
    company_share = Column(Numeric(20, 2), nullable=False)

    status = Column(SQLEnum(ProfitStatus, name="profit_status", create_constraint=True), nullable=False, default=ProfitStatus.PENDING, index=True)
    calculation_date = Column(DateTime(timezone=True), nullable=False)
    distribution_date = Column(DateTime(timezone=True), nullable=True)
    distributed_by = Column(Integer, ForeignKey("users.id", name="fk_profits_distributed_by"), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="profits")
    investment = relationship("Investment", back_populates="profits")
    sale = relationship("Sale", back_populates="profits")

    __table_args__ = (
        CheckConstraint('profit_percentage >= 0 AND profit_percentage <= 100', name='check_profits_percentage_range'),
    )
