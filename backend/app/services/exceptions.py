"""
Domain exceptions raised by the service layer

Each exception carries a machine code, a human message and the HTTP status
the API layer renders it with. A field name is attached when the failure
belongs to a single request field (rendered in error.fields).
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for service-layer errors"""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Raised when input violates a business rule (minimums, limits, required fields)"""
    code = "VALIDATION_ERROR"
    status_code = 422


class InsufficientFunds(DomainError):
    """Raised when a debit exceeds the wallet's available balance"""
    code = "INSUFFICIENT_FUNDS"
    status_code = 422

    def __init__(self, message: str = "Insufficient available balance", **kwargs):
        kwargs.setdefault("field", "amount")
        super().__init__(message, **kwargs)


class WalletNotActive(DomainError):
    """Raised when a ledger mutation targets a frozen or suspended wallet"""
    code = "WALLET_NOT_ACTIVE"
    status_code = 409


class InvalidStateTransition(DomainError):
    """Raised when an action is not allowed from the record's current status"""
    code = "INVALID_STATE_TRANSITION"
    status_code = 409


class AlreadyDistributed(DomainError):
    """Raised when a profit that was already credited is distributed again"""
    code = "ALREADY_DISTRIBUTED"
    status_code = 409

    def __init__(self, message: str = "Profit already distributed", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist"""
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", details={"entity": entity, "id": entity_id})


class AuthenticationError(DomainError):
    """Raised when login credentials do not match"""
    code = "INVALID_CREDENTIALS"
    status_code = 401


class UserInactive(DomainError):
    """Raised when an inactive or suspended user tries to log in"""
    code = "USER_INACTIVE"
    status_code = 403
