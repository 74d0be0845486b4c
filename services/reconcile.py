"""
Checkout reconciliation: turn a completed Checkout Session into booking and
payment rows. Every write is a keyed upsert, so replaying the same event any
number of times, in any order, converges on the same two rows.
"""
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime

from flask import current_app
from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import Booking
from models.payment import Payment
from models.status import BookingStatus, NotificationEvent, PaymentStatus
from services.stripe_client import object_id
from utils.audit import log_event
from utils.errors import InternalError, ValidationError
from utils.notify import notify_best_effort
from utils.upsert import dialect_insert

logger = logging.getLogger(__name__)

# Namespace for booking ids derived from a payment intent when metadata has none
BOOKING_ID_NAMESPACE = uuid.UUID("6f1c7e0a-3b8e-4f7d-9a51-0c2d8e4b7a19")


@dataclass
class ReconcileResult:
    booking_id: str
    payment_intent_id: str
    session_id: str
    booking_id_derived: bool = False


def platform_fee_cents(gross_cents: int, fee_bps: int) -> int:
    """Marketplace cut, floored to whole cents."""
    return (gross_cents * fee_bps) // 10_000


def _cents(value, field):
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer amount in cents")
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be an integer amount in cents")
    return value


def _optional_int(value, field):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"metadata.{field} must be numeric")


def _optional_date(value):
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("metadata.appointmentDate must be YYYY-MM-DD")


def derive_booking_id(metadata: dict, payment_intent_id: str):
    booking_id = (metadata.get("bookingId") or "").strip()
    if booking_id:
        return booking_id, False
    return str(uuid.uuid5(BOOKING_ID_NAMESPACE, payment_intent_id)), True


def _upsert_booking(values: dict):
    table = Booking.__table__
    stmt = dialect_insert(table).values(**values)
    refreshed = {
        col: stmt.excluded[col]
        for col in (
            "barber_id", "client_id", "service_id", "appointment_date", "appointment_time",
            "total_amount_cents", "platform_fee_cents", "notes", "payment_intent_id", "updated_at",
        )
    }
    # a replay may confirm a pending booking but never revive a cancelled/completed one
    refreshed["status"] = case(
        (table.c.status == BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value),
        else_=table.c.status,
    )
    db.session.execute(stmt.on_conflict_do_update(index_elements=["id"], set_=refreshed))


def _upsert_payment(values: dict, success: bool):
    table = Payment.__table__
    stmt = dialect_insert(table).values(**values)
    refreshed = {
        col: stmt.excluded[col]
        for col in ("booking_id", "barber_id", "user_id", "currency", "gross_amount_cents",
                    "application_fee_cents", "raw_json", "updated_at")
    }
    refreshed["session_id"] = db.func.coalesce(stmt.excluded.session_id, table.c.session_id)
    if success:
        # refunded stays refunded; a failed attempt followed by success becomes succeeded
        refreshed["status"] = case(
            (table.c.status == PaymentStatus.REFUNDED.value, table.c.status),
            else_=PaymentStatus.SUCCEEDED.value,
        )
        db.session.execute(stmt.on_conflict_do_update(index_elements=["payment_intent_id"], set_=refreshed))
        return

    # a late failure event never overwrites a payment that went through
    db.session.execute(stmt.on_conflict_do_update(
        index_elements=["payment_intent_id"],
        set_=refreshed,
        where=table.c.status == PaymentStatus.FAILED.value,
    ))


def reconcile_checkout(session: dict, notify: bool = True) -> ReconcileResult:
    if not isinstance(session, dict):
        raise ValidationError("Provide full Checkout Session JSON with id and payment_intent")
    session_id = session.get("id")
    payment_intent_id = object_id(session.get("payment_intent"))
    if not session_id or not payment_intent_id:
        raise ValidationError("Provide full Checkout Session JSON with id and payment_intent")

    metadata = session.get("metadata") or {}
    gross = _cents(session.get("amount_total"), "amount_total")
    fee = platform_fee_cents(gross, current_app.config.get("PLATFORM_FEE_BPS", 100))
    currency = (session.get("currency") or current_app.config.get("DEFAULT_CURRENCY", "usd")).lower()

    booking_id, derived = derive_booking_id(metadata, payment_intent_id)
    if derived:
        logger.warning(
            "booking_id_missing_from_metadata",
            extra={"session_id": session_id, "payment_intent_id": payment_intent_id, "booking_id": booking_id},
        )

    barber_id = _optional_int(metadata.get("barberId"), "barberId")
    client_id = _optional_int(metadata.get("clientId"), "clientId")
    now = datetime.utcnow()

    previous = db.session.get(Booking, booking_id)
    was_confirmed = previous is not None and previous.status != BookingStatus.PENDING

    try:
        _upsert_booking({
            "id": booking_id,
            "barber_id": barber_id,
            "client_id": client_id,
            "service_id": metadata.get("serviceId"),
            "appointment_date": _optional_date(metadata.get("appointmentDate")),
            "appointment_time": metadata.get("appointmentTime"),
            "total_amount_cents": gross,
            "deposit_amount_cents": 0,
            "platform_fee_cents": fee,
            "notes": metadata.get("notes") or None,
            "status": BookingStatus.CONFIRMED,
            "payment_intent_id": payment_intent_id,
            "created_at": now,
            "updated_at": now,
        })
        _upsert_payment({
            "booking_id": booking_id,
            "barber_id": barber_id,
            "user_id": client_id,
            "payment_intent_id": payment_intent_id,
            "session_id": session_id,
            "currency": currency,
            "gross_amount_cents": gross,
            "application_fee_cents": fee,
            "refunded_cents": 0,
            "status": PaymentStatus.SUCCEEDED,
            "raw_json": json.dumps(session, default=str),
            "created_at": now,
            "updated_at": now,
        }, success=True)
        log_event(
            "CHECKOUT_RECONCILED",
            entity="booking",
            entity_id=booking_id,
            metadata={"session_id": session_id, "payment_intent_id": payment_intent_id, "replay": previous is not None},
            commit=False,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("checkout_reconcile_failed", extra={"booking_id": booking_id, "error": str(exc)})
        raise InternalError("Failed to create booking") from exc

    logger.info(
        "checkout_reconciled",
        extra={"booking_id": booking_id, "payment_intent_id": payment_intent_id, "session_id": session_id},
    )

    if notify and not was_confirmed:
        notify_best_effort(booking_id, NotificationEvent.BOOKING_CONFIRMED)

    return ReconcileResult(
        booking_id=booking_id,
        payment_intent_id=payment_intent_id,
        session_id=session_id,
        booking_id_derived=derived,
    )


def record_failed_payment(payment_intent: dict):
    """payment_intent.payment_failed: keep a failed payment row and release a still-pending booking."""
    payment_intent_id = payment_intent["id"]
    metadata = payment_intent.get("metadata") or {}
    booking_id = (metadata.get("bookingId") or "").strip() or None
    now = datetime.utcnow()

    booking = db.session.get(Booking, booking_id) if booking_id else None
    try:
        _upsert_payment({
            "booking_id": booking.id if booking else None,
            "barber_id": _optional_int(metadata.get("barberId"), "barberId"),
            "user_id": _optional_int(metadata.get("clientId") or metadata.get("userId"), "clientId"),
            "payment_intent_id": payment_intent_id,
            "session_id": None,
            "currency": (payment_intent.get("currency") or "usd").lower(),
            "gross_amount_cents": _cents(payment_intent.get("amount"), "amount"),
            "application_fee_cents": 0,
            "refunded_cents": 0,
            "status": PaymentStatus.FAILED,
            "raw_json": json.dumps(payment_intent, default=str),
            "created_at": now,
            "updated_at": now,
        }, success=False)
        if booking is not None and booking.status == BookingStatus.PENDING:
            booking.advance_to(BookingStatus.CANCELLED)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("failed_payment_record_error", extra={"payment_intent_id": payment_intent_id, "error": str(exc)})
        raise InternalError("Failed to record payment failure") from exc

    logger.info("payment_failed_recorded", extra={"payment_intent_id": payment_intent_id, "booking_id": booking_id})
