"""
Audit trail helpers - one AuditLog row per state-changing action
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional
from sqlalchemy.orm import Session

from app.core.compliance.models import AuditLog
from app.core.security.models import Role


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def snapshot(obj: Any, fields: Iterable[str]) -> Dict[str, Any]:
    """JSON-safe dict of selected model attributes (for AuditLog before/after)"""
    return {name: _jsonable(getattr(obj, name, None)) for name in fields}


def record_audit(
    db: Session,
    *,
    action: str,
    entity_type: str,
    entity_id: Optional[int],
    actor_user_id: Optional[int] = None,
    actor_role: Role = Role.ADMIN,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
    ip: Optional[str] = None,
) -> AuditLog:
    """
    Add an AuditLog row to the session.

    Does not commit: the row is written in the same unit of work as the
    action it describes.
    """
    audit_log = AuditLog(
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before=before,
        after=after,
        reason=reason,
        ip=ip,
    )
    db.add(audit_log)
    return audit_log
