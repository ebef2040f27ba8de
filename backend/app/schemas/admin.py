"""
Admin dashboard, settings and audit log schemas
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field

from app.core.compliance.models import AuditLog
from app.schemas.common import iso, money
from app.schemas.transactions import TransactionResponse


def _render(section: Dict[str, Any]) -> Dict[str, Union[int, str]]:
    return {key: money(value) if isinstance(value, Decimal) else value for key, value in section.items()}


class DashboardResponse(BaseModel):
    """Headline counters and amounts for the admin dashboard"""
    users: Dict[str, Union[int, str]]
    wallets: Dict[str, Union[int, str]]
    transactions: Dict[str, Union[int, str]]
    properties: Dict[str, Union[int, str]]
    investments: Dict[str, Union[int, str]]
    profits: Dict[str, Union[int, str]]
    recent_transactions: List[TransactionResponse]

    @classmethod
    def from_stats(cls, stats: Dict[str, Any]) -> "DashboardResponse":
        return cls(
            **{
                name: _render(stats[name])
                for name in ("users", "wallets", "transactions", "properties", "investments", "profits")
            },
            recent_transactions=[TransactionResponse.from_model(t) for t in stats["recent_transactions"]],
        )


class SettingsResponse(BaseModel):
    """Effective wallet policy (read-only; configured through the environment)"""
    currency: str
    min_deposit_amount: str
    min_withdrawal_amount: str
    min_investment_amount: str
    auto_approve_enabled: bool
    auto_approve_ceiling: str = Field(..., description="Deposits strictly below this amount may auto-approve")
    high_value_threshold: str
    recent_transactions_limit: int
    rate_limit_enabled: bool


class AuditLogResponse(BaseModel):
    id: int
    created_at: Optional[str] = None
    actor_user_id: Optional[int] = None
    actor_role: str
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    ip: Optional[str] = None

    @classmethod
    def from_model(cls, audit_log: AuditLog) -> "AuditLogResponse":
        return cls(
            id=audit_log.id,
            created_at=iso(audit_log.created_at),
            actor_user_id=audit_log.actor_user_id,
            actor_role=audit_log.actor_role.value,
            action=audit_log.action,
            entity_type=audit_log.entity_type,
            entity_id=audit_log.entity_id,
            before=audit_log.before,
            after=audit_log.after,
            reason=audit_log.reason,
            ip=audit_log.ip,
        )


class AuditLogListResponse(BaseModel):
    items: List[AuditLogResponse]
    total: int
    page: int
    per_page: int
