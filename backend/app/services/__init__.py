"""
Services layer - Application business logic
"""

from app.services.exceptions import (
    DomainError,
    ValidationError,
    InsufficientFunds,
    WalletNotActive,
    InvalidStateTransition,
    AlreadyDistributed,
    NotFoundError,
    AuthenticationError,
    UserInactive,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "InsufficientFunds",
    "WalletNotActive",
    "InvalidStateTransition",
    "AlreadyDistributed",
    "NotFoundError",
    "AuthenticationError",
    "UserInactive",
]
