from datetime import date
from typing import Optional

from app.core.auth import User
from app.models.audit_log import AuditLog
from sqlalchemy.orm import Session


def _compute_risk_level(
    entity_type: str,
    status: Optional[str],
    explicit: Optional[str] = None,
) -> str:
    # overdue is whatever reconciliation stored, never recomputed from due_date
    if explicit:
        return explicit
    if entity_type == "payment" and (status or "").lower() == "overdue":
        return "high"
    return "low"


def log_audit(
    db: Session,
    *,
    actor: User,
    action: str,
    entity_type: str,
    entity_id: str,
    source: str = "api",
    status: Optional[str] = None,
    due_date: Optional[date] = None,
    property_id: Optional[str] = None,
    description: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> AuditLog:
    log = AuditLog(
        actor_id=actor.id,
        actor_email=actor.email,
        actor_role=actor.role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        source=source,
        status=status,
        due_date=due_date,
        property_id=property_id,
        description=description,
        risk_level=_compute_risk_level(entity_type, status, risk_level),
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log
