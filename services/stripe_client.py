import logging
from contextlib import contextmanager

import stripe
from flask import current_app

from utils.errors import InternalError, UpstreamError

logger = logging.getLogger(__name__)


def configure_stripe():
    key = current_app.config.get("STRIPE_SECRET_KEY")
    if not key:
        raise InternalError("Stripe secret key missing (STRIPE_SECRET_KEY)")
    stripe.api_key = key
    return stripe


def object_id(value):
    """Stripe fields may hold an id or an expanded object."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value.get("id")


@contextmanager
def stripe_errors(fallback_message: str, status_code=None):
    """
    Re-raise processor failures as UpstreamError, keeping Stripe's message,
    error type and code. status_code overrides Stripe's HTTP status.
    """
    try:
        yield
    except stripe.StripeError as exc:
        error_obj = getattr(exc, "error", None)
        error_type = getattr(error_obj, "type", None) if error_obj is not None else None
        logger.error(
            "stripe_request_failed",
            extra={"error": str(exc), "status_code": getattr(exc, "http_status", None)},
        )
        raise UpstreamError(
            exc.user_message or fallback_message,
            status_code=status_code or getattr(exc, "http_status", None) or 502,
            type=error_type,
            code=getattr(exc, "code", None),
        ) from exc
