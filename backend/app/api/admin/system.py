"""
Admin API - dashboard, effective settings and audit trail
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.api.params import Pagination
from app.auth.dependencies import require_admin_role
from app.auth.principal import Principal
from app.core.common.money import format_money
from app.core.compliance.models import AuditLog
from app.infrastructure.database import get_db
from app.infrastructure.settings import get_settings
from app.schemas.admin import DashboardResponse, SettingsResponse, AuditLogResponse, AuditLogListResponse
from app.services.dashboard import get_dashboard_stats

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Admin dashboard",
    description="Users, wallets, pending reviews, properties, investments and profits at a glance. Requires ADMIN role.",
)
async def get_dashboard(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> DashboardResponse:
    return DashboardResponse.from_stats(get_dashboard_stats(db))


@router.get(
    "/settings",
    response_model=SettingsResponse,
    summary="Get wallet policy settings",
    description="Effective thresholds enforced server-side. Read-only; configured through the environment. Requires ADMIN role.",
)
async def get_policy_settings(
    principal: Principal = Depends(require_admin_role()),
) -> SettingsResponse:
    settings = get_settings()
    return SettingsResponse(
        currency=settings.CURRENCY,
        min_deposit_amount=format_money(settings.MIN_DEPOSIT_AMOUNT),
        min_withdrawal_amount=format_money(settings.MIN_WITHDRAWAL_AMOUNT),
        min_investment_amount=format_money(settings.MIN_INVESTMENT_AMOUNT),
        auto_approve_enabled=settings.AUTO_APPROVE_ENABLED,
        auto_approve_ceiling=format_money(settings.AUTO_APPROVE_CEILING),
        high_value_threshold=format_money(settings.HIGH_VALUE_THRESHOLD),
        recent_transactions_limit=settings.RECENT_TRANSACTIONS_LIMIT,
        rate_limit_enabled=settings.RATE_LIMIT_ENABLED,
    )


@router.get(
    "/security/audit-logs",
    response_model=AuditLogListResponse,
    summary="List audit logs",
    description="Audit trail of approvals, rejections, distributions and admin changes, newest first. Requires ADMIN role.",
)
async def list_audit_logs(
    action: Optional[str] = Query(default=None, description="Exact action, e.g. TRANSACTION_APPROVED"),
    entity_type: Optional[str] = Query(default=None, description="Transaction, Wallet, Profit, ..."),
    entity_id: Optional[int] = Query(default=None),
    actor_user_id: Optional[int] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_role()),
) -> AuditLogListResponse:
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if entity_type:
        conditions.append(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        conditions.append(AuditLog.entity_id == entity_id)
    if actor_user_id is not None:
        conditions.append(AuditLog.actor_user_id == actor_user_id)
    if start_date is not None:
        conditions.append(AuditLog.created_at >= start_date)
    if end_date is not None:
        conditions.append(AuditLog.created_at <= end_date)

    items = db.execute(
        select(AuditLog)
        .where(*conditions)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(pagination.limit)
        .offset(pagination.offset)
    ).scalars().all()
    total = db.execute(select(func.count(AuditLog.id)).where(*conditions)).scalar_one()

    return AuditLogListResponse(
        items=[AuditLogResponse.from_model(a) for a in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )
