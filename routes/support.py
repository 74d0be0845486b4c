import re

from flask import Blueprint, current_app, jsonify, g

from models import db
from models.status import SupportCategory
from models.support_message import SupportMessage
from security.cors import cors_protected
from security.rate_limit import rate_limited
from utils.audit import log_event
from utils.emailer import send_email
from utils.errors import ValidationError
from utils.request_meta import request_payload

support_bp = Blueprint("support", __name__, url_prefix="/support")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TAG_RE = re.compile(r"<[^>]*>")
MAX_LENGTHS = {"name": 100, "subject": 200, "message": 2000}


def _clean(value) -> str:
    return TAG_RE.sub("", str(value or "")).strip()


@support_bp.route("/requests", methods=["POST", "OPTIONS"])
@cors_protected(methods=("POST",))
@rate_limited("support_request")
def create_support_request():
    data = request_payload()
    fields = {k: _clean(data.get(k)) for k in ("name", "email", "category", "subject", "message")}

    if not all(fields.values()):
        raise ValidationError("All fields are required: name, email, category, subject, message")
    for field, limit in MAX_LENGTHS.items():
        if len(fields[field]) > limit:
            raise ValidationError("Input too long. Name: 100 chars, Subject: 200 chars, Message: 2000 chars max.")
    if not EMAIL_RE.match(fields["email"]):
        raise ValidationError("Invalid email format")
    try:
        category = SupportCategory(fields["category"].lower())
    except ValueError:
        raise ValidationError("Unknown support category")

    user = getattr(g, "user", None)
    msg = SupportMessage(
        user_id=user.id if user else None,
        name=fields["name"],
        email=fields["email"],
        category=category,
        subject=fields["subject"],
        message=fields["message"],
        status="OPEN",
    )
    db.session.add(msg)
    db.session.commit()

    # support inbox copy is best effort; the request is already saved
    send_email(
        current_app.config.get("SUPPORT_INBOX"),
        f"Support Request: {msg.subject}",
        f"From: {msg.name} ({msg.email})\nCategory: {category.value}\n\n{msg.message}\n\n"
        f"Request ID: {msg.id}\nUser ID: {msg.user_id or 'Anonymous'}",
    )

    log_event("SUPPORT_REQUEST_CREATE", user_id=msg.user_id, entity="support_message", entity_id=msg.id)
    return jsonify(
        success=True,
        supportRequestId=msg.id,
        message="Support request submitted successfully. We will respond within 24 hours.",
    ), 201
