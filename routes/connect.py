from flask import Blueprint, jsonify, g

from security.cors import cors_protected
from security.rate_limit import rate_limited
from services.onboarding import check_account_status, start_onboarding
from utils.auth_context import login_required
from utils.request_meta import request_payload, text_field

connect_bp = Blueprint("connect", __name__, url_prefix="/connect")


@connect_bp.route("/onboarding", methods=["POST", "OPTIONS"])
@cors_protected(methods=("POST",))
@login_required
@rate_limited("connect_onboarding", per_principal=True)
def onboarding():
    data = request_payload()
    hints = {k: text_field(data, k) for k in ("userEmail", "userName", "businessName")}

    result = start_onboarding(g.user, hints)
    return jsonify(success=True, url=result.url, accountId=result.account_id), 200


@connect_bp.route("/status", methods=["GET", "OPTIONS"])
@cors_protected(methods=("GET",))
@login_required
@rate_limited("connect_status", per_principal=True)
def status():
    st = check_account_status(g.user)
    return jsonify(
        success=True,
        accountId=st.account_id,
        chargesEnabled=st.charges_enabled,
        payoutsEnabled=st.payouts_enabled,
        status=st.status.value,
        currentlyDue=st.currently_due,
    ), 200
