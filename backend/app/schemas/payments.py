"""
Payment method schemas
"""

from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from app.core.payments.models import PaymentMethod, PaymentMethodType, FeeType
from app.schemas.common import money


class PaymentMethodResponse(BaseModel):
    """Payment method as shown in the deposit/withdraw forms"""
    id: int
    name: str
    code: str
    type: str = Field(..., description="deposit, withdrawal or both")
    is_active: bool
    min_amount: str
    max_amount: Optional[str] = Field(None, description="No upper limit when null")
    processing_fee: str
    processing_fee_type: str = Field(..., description="fixed or percentage")
    limits: str = Field(..., description="Human readable limits message")
    description: Optional[str] = None

    @classmethod
    def from_model(cls, payment_method: PaymentMethod) -> "PaymentMethodResponse":
        return cls(
            id=payment_method.id,
            name=payment_method.name,
            code=payment_method.code,
            type=payment_method.type.value,
            is_active=payment_method.is_active,
            min_amount=money(payment_method.min_amount),
            max_amount=money(payment_method.max_amount),
            processing_fee=money(payment_method.processing_fee),
            processing_fee_type=payment_method.processing_fee_type.value,
            limits=payment_method.limits_message(),
            description=payment_method.description,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "name": "UPI",
                "code": "upi",
                "type": "both",
                "is_active": True,
                "min_amount": "500.00",
                "max_amount": "100000.00",
                "processing_fee": "0.00",
                "processing_fee_type": "fixed",
                "limits": "Amount must be at least ₹500.00 and at most ₹100000.00 for UPI",
            }
        }


class PaymentMethodListResponse(BaseModel):
    items: List[PaymentMethodResponse]


class PaymentMethodCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9_\-]+$")
    type: PaymentMethodType = PaymentMethodType.BOTH
    min_amount: Decimal = Field(Decimal("0"), ge=0)
    max_amount: Optional[Decimal] = Field(None, gt=0)
    processing_fee: Decimal = Field(Decimal("0"), ge=0)
    processing_fee_type: FeeType = FeeType.FIXED
    is_active: bool = True
    description: Optional[str] = None


class PaymentMethodUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[PaymentMethodType] = None
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, gt=0)
    processing_fee: Optional[Decimal] = Field(None, ge=0)
    processing_fee_type: Optional[FeeType] = None
    is_active: Optional[bool] = None
    description: Optional[str] = None
