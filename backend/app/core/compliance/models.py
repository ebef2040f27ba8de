"""
Audit trail rows.

One row per money-moving or administrative action, with JSON snapshots of
the record before and after. Rows are append-only.
"""

from sqlalchemy import Column, ForeignKey, Integer, JSON, String, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship

from app.core.common.base_model import BaseModel
from app.core.security.models import Role


class AuditLog(BaseModel):
    __tablename__ = "audit_logs"

    # Null for automated actions (auto-approved deposits, OPS reconciliation)
    actor_user_id = Column(
        Integer, ForeignKey("users.id", name="fk_audit_logs_actor_user_id", ondelete="SET NULL"), nullable=True, index=True
    )
    actor_role = Column(SQLEnum(Role, name="actor_role", create_constraint=True), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. DEPOSIT_APPROVED, PROFIT_DISTRIBUTED
    entity_type = Column(String(50), nullable=False, index=True)  # model class name
    entity_id = Column(Integer, nullable=True, index=True)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    reason = Column(Text, nullable=True)
    ip = Column(String(45), nullable=True)

    actor = relationship("User", foreign_keys=[actor_user_id])
