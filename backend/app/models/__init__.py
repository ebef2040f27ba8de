"""
Imports every mapped class so Base.metadata knows all tables.

Alembic's env.py and the test suite import this module before touching
the schema. Order follows foreign keys: users, then wallets, then the
property side, then the records that point at all of them.
"""

from app.infrastructure.database import Base
from app.core.security.models import Role
from app.core.users.models import User, UserStatus
from app.core.wallets.models import Wallet, WalletStatus
from app.core.payments.models import PaymentMethod, PaymentMethodType, FeeType
from app.core.properties.models import Property, PropertyStatus, Plot, PlotStatus, Sale, SaleStatus
from app.core.investments.models import Investment, InvestmentStatus
from app.core.profits.models import Profit, ProfitStatus
from app.core.transactions.models import Transaction, TransactionType, TransactionStatus, PaymentMode
from app.core.teams.models import Team, TeamMember, TeamStatus, TeamMemberRole
from app.core.compliance.models import AuditLog

__all__ = [
    "Base",
    "Role",
    "User", "UserStatus",
    "Wallet", "WalletStatus",
    "PaymentMethod", "PaymentMethodType", "FeeType",
    "Property", "PropertyStatus", "Plot", "PlotStatus", "Sale", "SaleStatus",
    "Investment", "InvestmentStatus",
    "Profit", "ProfitStatus",
    "Transaction", "TransactionType", "TransactionStatus", "PaymentMode",
    "Team", "TeamMember", "TeamStatus", "TeamMemberRole",
    "AuditLog",
]
