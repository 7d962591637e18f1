import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models.audit_event import AuditEvent

logger = logging.getLogger(__name__)


def log_event(
    *,
    db: Session,
    actor: str | None,
    action: str,
    entity_type: str,
    entity_id: str,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """Stage an audit row in the caller's transaction; it is only kept if that commits."""
    event = AuditEvent(
        actor_id=actor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        event_metadata=metadata,
    )
    db.add(event)
    logger.debug("audit %s %s/%s by %s", action, entity_type, entity_id, actor or "system")
    return event
