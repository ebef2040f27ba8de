"""
Wallet API request/response schemas
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from app.core.transactions.models import PaymentMode
from app.core.wallets.models import Wallet, WalletStatus
from app.schemas.common import iso, money, positive_amount
from app.schemas.payments import PaymentMethodResponse
from app.schemas.transactions import TransactionResponse


class WalletResponse(BaseModel):
    """Wallet balances and running totals"""
    id: int
    user_id: int
    currency: str = Field(..., description="ISO 4217 currency code (INR)")
    status: str = Field(..., description="active, frozen or suspended")
    balance: str
    available_balance: str = Field(..., description="balance - frozen_amount - pending_amount")
    frozen_amount: str = Field(..., description="Held by pending withdrawals")
    pending_amount: str = Field(..., description="Reserved by pending investments")
    total_deposits: str
    total_withdrawals: str
    total_investments: str
    total_profits: str
    notes: Optional[str] = None
    last_transaction_at: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_model(cls, wallet: Wallet, currency: str) -> "WalletResponse":
        return cls(
            id=wallet.id,
            user_id=wallet.user_id,
            currency=currency,
            status=wallet.status.value,
            balance=money(wallet.balance),
            available_balance=money(wallet.available_balance),
            frozen_amount=money(wallet.frozen_amount),
            pending_amount=money(wallet.pending_amount),
            total_deposits=money(wallet.total_deposits),
            total_withdrawals=money(wallet.total_withdrawals),
            total_investments=money(wallet.total_investments),
            total_profits=money(wallet.total_profits),
            notes=wallet.notes,
            last_transaction_at=iso(wallet.last_transaction_at),
            created_at=iso(wallet.created_at),
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 7,
                "user_id": 7,
                "currency": "INR",
                "status": "active",
                "balance": "15000.00",
                "available_balance": "12000.00",
                "frozen_amount": "3000.00",
                "pending_amount": "0.00",
                "total_deposits": "15000.00",
                "total_withdrawals": "0.00",
                "total_investments": "0.00",
                "total_profits": "0.00",
            }
        }


class WalletSummary(BaseModel):
    """Counters shown on the wallet dashboard"""
    total_transactions: int
    completed_transactions: int
    pending_transactions: int
    pending_deposits: str = Field(..., description="Deposits awaiting approval (not yet in the balance)")
    last_transaction_at: Optional[str] = None

    @classmethod
    def from_summary(cls, summary: Dict[str, Any]) -> "WalletSummary":
        return cls(
            total_transactions=summary["total_transactions"],
            completed_transactions=summary["completed_transactions"],
            pending_transactions=summary["pending_transactions"],
            pending_deposits=money(summary["pending_deposits"]),
            last_transaction_at=iso(summary["last_transaction_at"]),
        )


class WalletSummaryResponse(BaseModel):
    """GET /api/wallet/summary"""
    wallet: WalletResponse
    recent_transactions: List[TransactionResponse]
    summary: WalletSummary
    payment_methods: List[PaymentMethodResponse]


class DepositRequest(BaseModel):
    """Deposit request"""
    amount: Decimal = Field(..., description="Deposit amount in INR (minimum 500)")
    payment_method_id: int = Field(..., description="Payment method id")
    payment_mode: PaymentMode = Field(..., description="cash, bank_transfer, upi, cheque, online")
    payment_reference: Optional[str] = Field(None, max_length=255, description="UTR / cheque number / receipt")
    notes: Optional[str] = Field(None, max_length=1000)
    auto_approve: bool = Field(False, description="Request auto-approval (honoured only below the ceiling)")

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Ensure amount is positive"""
        return positive_amount(v)

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "5000.00",
                "payment_method_id": 1,
                "payment_mode": "upi",
                "payment_reference": "UPI-88231",
                "auto_approve": True,
            }
        }


class WithdrawRequest(BaseModel):
    """Withdrawal request"""
    amount: Decimal = Field(..., description="Withdrawal amount in INR (minimum 1000)")
    payment_method_id: int = Field(..., description="Payment method id")
    payment_mode: PaymentMode = Field(..., description="cash, bank_transfer, upi, cheque, online")
    bank_account: Optional[str] = Field(None, max_length=255, description="Required for bank_transfer and cheque")
    upi_id: Optional[str] = Field(None, max_length=255, description="Required for upi")
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Ensure amount is positive"""
        return positive_amount(v)

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "2000.00",
                "payment_method_id": 2,
                "payment_mode": "bank_transfer",
                "bank_account": "HDFC 50100012345678 / HDFC0001234",
            }
        }


class WalletCreateRequest(BaseModel):
    """Admin: open a wallet for a user without one"""
    user_id: int
    status: Optional[WalletStatus] = None
    notes: Optional[str] = None


class WalletUpdateRequest(BaseModel):
    """Admin: status/notes only; balances move through transactions"""
    status: Optional[WalletStatus] = None
    notes: Optional[str] = None
    reason: Optional[str] = Field(None, description="Recorded in the audit trail")


class WalletListResponse(BaseModel):
    items: List[WalletResponse]
    total: int
    page: int
    per_page: int


class ReconcileField(BaseModel):
    field: str
    stored: str
    expected: str
    drift: str


class ReconcileResponse(BaseModel):
    wallet_id: int
    consistent: bool
    fields: List[ReconcileField]