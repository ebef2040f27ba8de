"""
Investment API schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.core.investments.models import Investment
from app.schemas.common import iso, money, positive_amount


class InvestmentRequest(BaseModel):
    """Investment request schema"""
    amount: Decimal = Field(..., description="Investment amount in INR (minimum 500)")
    property_id: Optional[int] = Field(None, description="Property to invest in")
    plot_id: Optional[int] = Field(None, description="Specific plot (must be available)")
    expected_return: Optional[Decimal] = Field(None, ge=0)
    return_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    maturity_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Ensure amount is positive"""
        return positive_amount(v)

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "450000.00",
                "property_id": 2,
                "plot_id": 14,
            }
        }


class InvestmentResponse(BaseModel):
    """Investment response schema"""
    id: int
    user_id: int
    property_id: Optional[int] = None
    property_name: Optional[str] = None
    plot_id: Optional[int] = None
    plot_number: Optional[str] = None
    amount: str
    status: str = Field(..., description="pending, active, completed, cancelled")
    expected_return: Optional[str] = None
    actual_return: Optional[str] = None
    return_rate: Optional[str] = None
    profit_distributed: str
    reinvestment_count: int = 0
    source_investment_id: Optional[int] = None
    investment_date: Optional[str] = None
    maturity_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_model(cls, investment: Investment) -> "InvestmentResponse":
        return cls(
            id=investment.id,
            user_id=investment.user_id,
            property_id=investment.property_id,
            property_name=investment.property.name if investment.property else None,
            plot_id=investment.plot_id,
            plot_number=investment.plot.plot_number if investment.plot else None,
            amount=money(investment.amount),
            status=investment.status.value,
            expected_return=money(investment.expected_return),
            actual_return=money(investment.actual_return),
            return_rate=money(investment.return_rate),
            profit_distributed=money(investment.profit_distributed),
            reinvestment_count=investment.reinvestment_count or 0,
            source_investment_id=investment.source_investment_id,
            investment_date=iso(investment.investment_date),
            maturity_date=iso(investment.maturity_date),
            notes=investment.notes,
            created_at=iso(investment.created_at),
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 12,
                "user_id": 7,
                "property_id": 2,
                "property_name": "Green Valley Phase 1",
                "plot_id": 14,
                "plot_number": "A-12",
                "amount": "450000.00",
                "status": "pending",
                "profit_distributed": "0.00",
            }
        }


class InvestmentListResponse(BaseModel):
    items: List[InvestmentResponse]
    total: int
    page: int
    per_page: int


class CompleteInvestmentRequest(BaseModel):
    actual_return: Optional[Decimal] = Field(None, ge=0, description="Defaults to the profit distributed so far")


class ReinvestRequest(BaseModel):
    """Reinvestment request schema"""
    amount: Optional[Decimal] = Field(None, description="Defaults to everything still reinvestable")
    property_id: Optional[int] = Field(None, description="Property to invest in")
    plot_id: Optional[int] = Field(None, description="Specific plot (must be available)")
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_amount(v) if v is not None else v
