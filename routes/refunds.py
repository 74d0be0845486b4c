from flask import Blueprint, jsonify, g

from security.cors import cors_protected
from security.rate_limit import rate_limited
from services.refunds import issue_refund
from utils.auth_context import login_required
from utils.request_meta import request_payload, text_field

refunds_bp = Blueprint("refunds", __name__)


@refunds_bp.route("/refunds", methods=["POST", "OPTIONS"])
@cors_protected(methods=("POST",))
@login_required
@rate_limited("refund", per_principal=True)
def create_refund():
    data = request_payload()
    result = issue_refund(
        g.user,
        booking_id=text_field(data, "booking_id"),
        amount_cents=data.get("amount_cents"),
        reason=text_field(data, "reason"),
        payment_intent_id=text_field(data, "payment_intent_id"),
    )
    return jsonify(
        success=True,
        refundId=result.refund_id,
        amountCents=result.amount_cents,
        fullyRefunded=result.fully_refunded,
        remainingCents=result.remaining_cents,
        replayed=result.replayed,
    ), 200
