from flask import Blueprint, jsonify

from security.cors import cors_protected
from security.rbac import require_service_key
from services.reminders import run_daily

reminders_bp = Blueprint("reminders", __name__, url_prefix="/reminders")


@reminders_bp.route("/daily", methods=["POST", "OPTIONS"])
@cors_protected(methods=("POST",), require_browser_origin=False)
@require_service_key
def daily():
    summary = run_daily()
    return jsonify(success=True, **summary.to_dict()), 200
