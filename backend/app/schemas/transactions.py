"""
Transaction API request/response schemas
"""

from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.core.transactions.models import Transaction, TransactionType, TransactionStatus, PaymentMode
from app.schemas.common import iso, money, enum_value, positive_amount


class TransactionResponse(BaseModel):
    """Transaction response schema (customer and admin views)"""
    id: int = Field(..., description="Transaction id")
    reference: str = Field(..., description="Human readable reference (DEP_/WTH_/INV_/PRF_/REF_)")
    wallet_id: int
    user_id: int
    type: str = Field(..., description="deposit, withdrawal, investment, profit, refund")
    status: str = Field(..., description="pending, completed, failed, rejected, cancelled")
    amount: str = Field(..., description="Gross amount")
    processing_fee: str
    net_amount: str = Field(..., description="Amount applied to the balance (amount - processing_fee)")
    balance_before: str
    balance_after: str
    payment_method_id: Optional[int] = None
    payment_method: Optional[str] = Field(None, description="Payment method name")
    payment_mode: Optional[str] = None
    payment_reference: Optional[str] = None
    bank_account: Optional[str] = None
    upi_id: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    investment_id: Optional[int] = None
    profit_id: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[str] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: str = Field(..., description="ISO 8601 timestamp")

    @classmethod
    def from_model(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            reference=transaction.reference,
            wallet_id=transaction.wallet_id,
            user_id=transaction.user_id,
            type=transaction.type.value,
            status=transaction.status.value,
            amount=money(transaction.amount),
            processing_fee=money(transaction.processing_fee),
            net_amount=money(transaction.net_amount),
            balance_before=money(transaction.balance_before),
            balance_after=money(transaction.balance_after),
            payment_method_id=transaction.payment_method_id,
            payment_method=transaction.payment_method.name if transaction.payment_method else None,
            payment_mode=enum_value(transaction.payment_mode),
            payment_reference=transaction.payment_reference,
            bank_account=transaction.bank_account,
            upi_id=transaction.upi_id,
            description=transaction.description,
            notes=transaction.notes,
            investment_id=transaction.investment_id,
            profit_id=transaction.profit_id,
            approved_by=transaction.approved_by,
            approved_at=iso(transaction.approved_at),
            rejected_by=transaction.rejected_by,
            rejected_at=iso(transaction.rejected_at),
            rejection_reason=transaction.rejection_reason,
            created_at=iso(transaction.created_at),
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 41,
                "reference": "DEP_20250101A1B2C3D4",
                "wallet_id": 7,
                "user_id": 7,
                "type": "deposit",
                "status": "completed",
                "amount": "5000.00",
                "processing_fee": "0.00",
                "net_amount": "5000.00",
                "balance_before": "0.00",
                "balance_after": "5000.00",
                "payment_method_id": 1,
                "payment_method": "UPI",
                "payment_mode": "upi",
                "payment_reference": "UPI-88231",
                "created_at": "2025-01-01T10:00:00+00:00",
            }
        }


class TransactionListResponse(BaseModel):
    """Paginated transaction list"""
    items: List[TransactionResponse]
    total: int
    page: int
    per_page: int


class ManualTransactionRequest(BaseModel):
    """Admin-entered transaction"""
    wallet_id: int = Field(..., description="Target wallet id")
    type: TransactionType = Field(..., description="Transaction type")
    amount: Decimal = Field(..., description="Gross amount")
    status: TransactionStatus = Field(TransactionStatus.PENDING, description="pending or completed")
    processing_fee: Decimal = Field(Decimal("0"), ge=0)
    payment_mode: Optional[PaymentMode] = None
    payment_reference: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return positive_amount(v)


class TransactionUpdateRequest(BaseModel):
    """Edit a pending transaction; omitted fields are left unchanged"""
    amount: Optional[Decimal] = None
    payment_mode: Optional[PaymentMode] = None
    payment_reference: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_amount(v) if v is not None else v


class BulkReviewRequest(BaseModel):
    """Approve or reject several pending transactions"""
    transaction_ids: List[int] = Field(..., min_length=1)
    action: str = Field(..., pattern="^(approve|reject)$")
    reason: Optional[str] = Field(None, description="Required when rejecting")


class BulkReviewResult(BaseModel):
    id: int
    success: bool
    status: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None


class BulkReviewResponse(BaseModel):
    results: List[BulkReviewResult]
