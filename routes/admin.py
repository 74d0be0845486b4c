from flask import Blueprint, jsonify, g

from security.cors import cors_protected
from security.rate_limit import rate_limited
from security.rbac import require_admin
from utils.audit import log_event

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("/guard", methods=["GET", "POST", "OPTIONS"])
@cors_protected(methods=("GET", "POST"))
@rate_limited("admin_guard")
@require_admin
def guard():
    principal = g.admin_principal
    log_event("ADMIN_GUARD_PASS", user_id=principal.id, entity="user", entity_id=principal.id)
    return jsonify(ok=True, principal={"id": principal.id, "email": principal.email}), 200
