"""
Append-only audit trail. Services call `record_event` inside the transaction
that makes the change, so the event commits or rolls back with it.
"""
import json
from typing import Any

from flask import g, has_request_context, request
from sqlalchemy.orm import Session

from app.vendorhub.models import AuditEvent, Profile


def _request_context() -> tuple[str | None, str | None]:
    """(request_id, client_ip); both None outside a request (scripts)."""
    if not has_request_context():
        return None, None
    return getattr(g, "request_id", None), request.remote_addr


def record_event(
    s: Session,
    *,
    actor: Profile | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    request_id, client_ip = _request_context()
    ev = AuditEvent(
        request_id=request_id,
        actor_profile_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
        client_ip=client_ip,
    )
    s.add(ev)
    return ev
