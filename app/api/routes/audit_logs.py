from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import get_current_user, User
from app.models.audit_log import AuditLog
from app.schemas.audit_log import AuditLogOut

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


def _is_overdue(log: AuditLog) -> bool:
    return log.entity_type == "payment" and (log.status or "").lower() == "overdue"


def _parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@router.get("", response_model=List[AuditLogOut])
def list_audit_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    start_date: Optional[str] = Query(None, description="ISO date-time"),
    end_date: Optional[str] = Query(None, description="ISO date-time"),
    entity_type: Optional[str] = Query(None, description="property|tenant|payment"),
    action: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    risk_level: Optional[str] = Query(None, description="low|high"),
    high_risk_only: Optional[bool] = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    # each landlord only sees their own trail
    q = db.query(AuditLog).filter(AuditLog.actor_id == current_user.id)

    if start_date:
        q = q.filter(AuditLog.created_at >= _parse_iso(start_date))
    if end_date:
        q = q.filter(AuditLog.created_at <= _parse_iso(end_date))
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if action:
        q = q.filter(AuditLog.action == action)
    if source:
        q = q.filter(AuditLog.source == source)
    if risk_level:
        q = q.filter(AuditLog.risk_level == risk_level)

    logs = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()

    if high_risk_only:
        logs = [l for l in logs if _is_overdue(l) or l.risk_level == "high"]
    return logs


@router.get("/stats")
def audit_log_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    now = datetime.now(timezone.utc)
    start_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    mine = db.query(AuditLog).filter(AuditLog.actor_id == current_user.id)
    total = mine.count()
    today = mine.filter(AuditLog.created_at >= start_today).count()
    deletions = mine.filter(AuditLog.action == "deleted").count()

    high_risk = sum(1 for l in mine.all() if _is_overdue(l) or l.risk_level == "high")

    return {
        "total": total,
        "today": today,
        "high_risk": high_risk,
        "deletions": deletions,
        "retention_days": 90,
    }
