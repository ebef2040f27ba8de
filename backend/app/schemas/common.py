"""
Common Pydantic schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field

from app.core.common.money import format_money


def iso(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 rendering used in all responses"""
    return value.isoformat() if value is not None else None


def money(value: Optional[Decimal]) -> Optional[str]:
    """Money fields are serialized as strings ("1600.00")"""
    return format_money(value) if value is not None else None


def enum_value(value: Any) -> Optional[str]:
    return value.value if hasattr(value, "value") else value


def positive_amount(value: Decimal) -> Decimal:
    """Shared validator body for request amounts"""
    if value <= 0:
        raise ValueError("Amount must be greater than 0")
    return value


class HealthResponse(BaseModel):
    """Health check response"""
    status: str


class ReadyResponse(BaseModel):
    """Readiness check response"""
    status: str
    database: str
    redis: str


class MessageResponse(BaseModel):
    """Plain acknowledgement (deletes, bulk actions)"""
    message: str = Field(..., description="Human readable result")


class ReasonRequest(BaseModel):
    """Body carrying a mandatory reason (rejections)"""
    reason: str = Field(..., min_length=1, description="Mandatory reason (audit trail)")

    class Config:
        json_schema_extra = {"example": {"reason": "Payment reference not found in bank statement"}}


class OptionalReasonRequest(BaseModel):
    """Body carrying an optional reason (cancellations)"""
    reason: Optional[str] = Field(None, description="Optional reason (audit trail)")
