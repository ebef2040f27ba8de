"""
Property, Plot and Sale models
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Numeric, Text, DateTime, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from app.core.common.base_model import BaseModel


class PropertyStatus(str, enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    SOLD_OUT = "sold_out"
    INACTIVE = "inactive"


class PlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    HELD = "held"  # Reserved by a pending/active investment
    SOLD = "sold"


class SaleStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Property(BaseModel):
    """
    Property model - a land parcel split into plots

    Counter invariant: total_plots = available_plots + sold_plots
    (held plots count as available until sold).
    """

    __tablename__ = "properties"

    name = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=False, default="residential")
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    total_area = Column(Numeric(20, 2), nullable=True)
    purchase_cost = Column(Numeric(20, 2), nullable=True)
    status = Column(SQLEnum(PropertyStatus, name="property_status", create_constraint=True), nullable=False, default=PropertyStatus.ACTIVE, index=True)

    total_plots = Column(Integer, nullable=False, default=0)
    available_plots = Column(Integer, nullable=False, default=0)
    sold_plots = Column(Integer, nullable=False, default=0)

    # Relationships
    plots = relationship("Plot", back_populates="property", lazy="select", order_by="Plot.id")
    sales = relationship("Sale", back_populates="property", lazy="select")


class Plot(BaseModel):
    """Plot model"""

    __tablename__ = "plots"

    property_id = Column(Integer, ForeignKey("properties.id", name="fk_plots_property_id"), nullable=False, index=True)
    plot_number = Column(String(50), nullable=False)
    area = Column(Numeric(20, 2), nullable=True)
    price = Column(Numeric(20, 2), nullable=False)
    status = Column(SQLEnum(PlotStatus, name="plot_status", create_constraint=True), nullable=False, default=PlotStatus.AVAILABLE, index=True)
    description = Column(Text, nullable=True)

    # Relationships
    property = relationship("Property", back_populates="plots")
    sale = relationship("Sale", back_populates="plot", uselist=False)

    __table_args__ = (
        UniqueConstraint('property_id', 'plot_number', name='uq_plots_property_plot_number'),
    )


class Sale(BaseModel):
    """Sale model - realised sale of one plot; profit_amount = sale_price - original_price"""

    __tablename__ = "sales"

    plot_id = Column(Integer, ForeignKey("plots.id", name="fk_sales_plot_id"), nullable=False, unique=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", name="fk_sales_property_id"), nullable=False, index=True)
    investment_id = Column(Integer, ForeignKey("investments.id", name="fk_sales_investment_id"), nullable=True, index=True)

    buyer_name = Column(String(255), nullable=False)
    buyer_phone = Column(String(50), nullable=True)
    buyer_email = Column(String(255), nullable=True)

    sale_price = Column(Numeric(20, 2), nullable=False)
    original_price = Column(Numeric(20, 2), nullable=False)
    profit_amount = Column(Numeric(20, 2), nullable=False)

    status = Column(SQLEnum(SaleStatus, name="sale_status", create_constraint=True), nullable=False, default=SaleStatus.COMPLETED, index=True)
    sale_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    plot = relationship("Plot", back_populates="sale")
    property = relationship("Property", back_populates="sales")
    investment = relationship("Investment", foreign_keys=[investment_id])
    profits = relationship("Profit", back_populates="sale", lazy="select")
