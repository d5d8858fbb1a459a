from typing import Optional

from ebook_service.extensions import db
from ebook_service.models.audit_log import AuditLog


def log_action(
    *,
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    actor_id: Optional[str] = None,
    payload: dict | None = None
):
    """Stage an audit row in the current transaction; it commits or rolls back with it."""
    log = AuditLog()

    log.actor_id = actor_id
    log.action = action
    log.entity_type = entity_type
    log.entity_id = entity_id
    log.payload = payload or {}

    db.session.add(log)
    return log
