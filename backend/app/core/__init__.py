"""
Core domain models - Export all models for Alembic
"""

from app.core.users.models import User
from app.core.wallets.models import Wallet
from app.core.payments.models import PaymentMethod
from app.core.properties.models import Property, Plot, Sale
from app.core.investments.models import Investment
from app.core.profits.models import Profit
from app.core.transactions.models import Transaction
from app.core.teams.models import Team, TeamMember
from app.core.compliance.models import AuditLog

__all__ = [
    "User",
    "Wallet",
    "PaymentMethod",
    "Property",
    "Plot",
    "Sale",
    "Investment",
    "Profit",
    "Transaction",
    "Team",
    "TeamMember",
    "AuditLog",
]
