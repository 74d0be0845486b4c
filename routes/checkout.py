from flask import Blueprint, jsonify

from security.cors import cors_protected
from security.rate_limit import rate_limited
from security.rbac import require_service_key
from services.reconcile import reconcile_checkout
from utils.request_meta import request_payload

checkout_bp = Blueprint("checkout", __name__, url_prefix="/checkout")


@checkout_bp.route("/reconcile", methods=["POST", "OPTIONS"])
@cors_protected(methods=("POST",), require_browser_origin=False)
@require_service_key
@rate_limited("checkout_reconcile")
def reconcile():
    data = request_payload()
    # accept {"session": {...}} as sent by the backfill tool, or the bare session
    session = data.get("session") if isinstance(data.get("session"), dict) else data

    result = reconcile_checkout(session)
    return jsonify(
        success=True,
        bookingId=result.booking_id,
        sessionId=result.session_id,
        paymentIntentId=result.payment_intent_id,
    ), 200
