"""
Profit distribution schemas
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.core.profits.models import Profit
from app.schemas.common import iso, money


class ProfitResponse(BaseModel):
    """Profit record (investor/company split of a sale's profit)"""
    id: int
    user_id: int
    user_name: Optional[str] = None
    investment_id: int
    sale_id: int
    total_profit: str
    profit_percentage: str = Field(..., description="Investor's percent")
    company_percentage: str
    investor_share: str
    company_share: str
    status: str = Field(..., description="pending, distributed, cancelled")
    calculation_date: str
    distribution_date: Optional[str] = None
    distributed_by: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, profit: Profit) -> "ProfitResponse":
        return cls(
            id=profit.id,
            user_id=profit.user_id,
            user_name=profit.user.name if profit.user else None,
            investment_id=profit.investment_id,
            sale_id=profit.sale_id,
            total_profit=money(profit.total_profit),
            profit_percentage=money(profit.profit_percentage),
            company_percentage=money(profit.company_percentage),
            investor_share=money(profit.investor_share),
            company_share=money(profit.company_share),
            status=profit.status.value,
            calculation_date=iso(profit.calculation_date),
            distribution_date=iso(profit.distribution_date),
            distributed_by=profit.distributed_by,
            notes=profit.notes,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 3,
                "user_id": 7,
                "investment_id": 12,
                "sale_id": 5,
                "total_profit": "2000.00",
                "profit_percentage": "80.00",
                "company_percentage": "20.00",
                "investor_share": "1600.00",
                "company_share": "400.00",
                "status": "pending",
                "calculation_date": "2025-03-01T09:30:00+00:00",
            }
        }


class ProfitListResponse(BaseModel):
    items: List[ProfitResponse]
    total: int
    page: int
    per_page: int


class ProfitCreateRequest(BaseModel):
    """Calculate the profit of a completed sale"""
    sale_id: int
    profit_percentage: Decimal = Field(..., ge=0, le=100, description="Investor's percent of the profit")
    total_profit: Optional[Decimal] = Field(None, gt=0, description="Defaults to the sale's profit amount")
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"sale_id": 5, "profit_percentage": "80", "total_profit": "2000.00"}
        }


class ProfitUpdateRequest(BaseModel):
    """Edit a pending profit; the split is recomputed"""
    profit_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    total_profit: Optional[Decimal] = Field(None, gt=0)
    notes: Optional[str] = None


class DistributeBulkRequest(BaseModel):
    profit_ids: List[int] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {"example": {"profit_ids": [3, 4, 9]}}


class DistributionResult(BaseModel):
    """Outcome for one profit id (tagged success/failure)"""
    profit_id: int
    success: bool
    status: Optional[str] = None
    investor_share: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None


class DistributeBulkResponse(BaseModel):
    results: List[DistributionResult]
    distributed_count: int
    failed_count: int


class ProfitStatusTotals(BaseModel):
    count: int
    total_profit: str
    investor_share: str
    company_share: str


class ProfitReportResponse(BaseModel):
    """Totals over the selected profits"""
    total_count: int
    total_profit: str
    total_investor_share: str
    total_company_share: str
    by_status: Dict[str, ProfitStatusTotals]

    @classmethod
    def from_report(cls, report: Dict[str, Any]) -> "ProfitReportResponse":
        return cls(
            total_count=report["total_count"],
            total_profit=money(report["total_profit"]),
            total_investor_share=money(report["total_investor_share"]),
            total_company_share=money(report["total_company_share"]),
            by_status={
                status: ProfitStatusTotals(
                    count=totals["count"],
                    total_profit=money(totals["total_profit"]),
                    investor_share=money(totals["investor_share"]),
                    company_share=money(totals["company_share"]),
                )
                for status, totals in report["by_status"].items()
            },
        )
