from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import get_current_member
from app.db.session import get_db
from app.models.audit_event import AuditEvent

router = APIRouter(prefix="/audit", tags=["audit"])


def to_out(e: AuditEvent) -> dict:
    return {
        "id": str(e.id),
        "actor_id": e.actor_id,
        "action": e.action,
        "entity_type": e.entity_type,
        "entity_id": e.entity_id,
        "metadata": e.event_metadata,
        "created_at": e.created_at,
    }


@router.get("")
def list_audit_events(
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None, description="Group id for release_cycle events"),
    action: str | None = Query(default=None, description="e.g. CYCLE_OPENED, NEWSLETTER_GENERATED"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: str = Depends(get_current_member),
):
    """Newest first. Any member may read the trail; there are no admin roles."""
    filters = {"entity_type": entity_type, "entity_id": entity_id, "action": action}

    q = db.query(AuditEvent)
    for column, value in filters.items():
        if value:
            q = q.filter(getattr(AuditEvent, column) == value)

    rows = q.order_by(AuditEvent.created_at.desc()).offset(offset).limit(limit).all()
    return [to_out(r) for r in rows]
