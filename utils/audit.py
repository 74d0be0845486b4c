import json
from flask import has_request_context
from models import db
from models.audit_log import AuditLog
from utils.request_meta import client_ip

def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None, commit=True):
    """Append an audit row. Works outside a request (CLI, scheduler) with no IP."""
    ip = client_ip() if has_request_context() else None

    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip[:64] if ip else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    if commit:
        db.session.commit()
