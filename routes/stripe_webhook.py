import logging

import stripe
from flask import Blueprint, current_app, request, jsonify

from services.onboarding import apply_account_update
from services.reconcile import reconcile_checkout, record_failed_payment
from services.stripe_client import object_id
from utils.errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.get_data()

    if not endpoint_secret:
        raise InternalError("Webhook secret not configured")
    if not sig_header:
        raise ValidationError("Missing Stripe signature")

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except (ValueError, stripe.SignatureVerificationError):
        raise ValidationError("Invalid webhook signature")

    event_type = event["type"]
    obj = event["data"]["object"]
    logger.info("stripe_event", extra={"event_type": event_type})

    if event_type == "checkout.session.completed":
        if not object_id(obj.get("payment_intent")):
            # setup and subscription sessions carry no booking payment
            logger.info(
                "checkout_session_without_payment_intent",
                extra={"session_id": obj.get("id"), "event_type": event_type},
            )
            return jsonify(received=True), 200
        result = reconcile_checkout(obj)
        return jsonify(received=True, bookingId=result.booking_id), 200

    if event_type == "payment_intent.payment_failed":
        record_failed_payment(obj)
        return jsonify(received=True, paymentIntentId=obj["id"]), 200

    if event_type == "account.updated":
        apply_account_update(obj)
        return jsonify(received=True), 200

    logger.info("stripe_event_ignored", extra={"event_type": event_type})
    return jsonify(received=True), 200
