"""
Barber-initiated refunds against Stripe Connect destination charges.

The Stripe call carries an idempotency key derived from (booking, amount),
so a retried request gets the original refund back from Stripe. Every
refund Stripe returns is recorded once in payment_refunds, keyed on its
refund id, and payments.refunded_cents is advanced with an atomic
increment, never a read-modify-write.
"""
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import stripe
from sqlalchemy import case, update

from models import db
from models.barber_profile import BarberProfile
from models.booking import Booking
from models.payment import Payment
from models.refund import PaymentRefund
from models.status import BookingStatus, NotificationEvent, PaymentStatus
from services.stripe_client import configure_stripe, object_id, stripe_errors
from utils.audit import log_event
from utils.errors import Conflict, Forbidden, NotFound, ValidationError
from utils.notify import notify_best_effort
from utils.upsert import dialect_insert

logger = logging.getLogger(__name__)

STRIPE_REFUND_REASONS = {"duplicate", "fraudulent", "requested_by_customer"}
ALREADY_REFUNDED = "Payment has already been refunded"


@dataclass
class RefundResult:
    refund_id: str
    amount_cents: int
    fully_refunded: bool
    remaining_cents: int
    status: Optional[str] = None
    replayed: bool = False


def parse_amount_cents(value):
    """None means "refund everything left"; anything else must be whole cents."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("amount_cents must be an integer number of cents")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError("amount_cents must be an integer number of cents")
        value = int(stripped)
    if not isinstance(value, int):
        raise ValidationError("amount_cents must be an integer number of cents")
    return value


def refund_idempotency_key(booking_id: str, amount_cents: int) -> str:
    """Same booking + amount -> same key, so client retries replay the original Stripe refund."""
    raw = f"refund|{booking_id}|{amount_cents}"
    return "refund-" + hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


def _load_payment(booking_id: str, profile: BarberProfile) -> Payment:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    if booking.barber_id is not None and booking.barber_id != profile.id:
        raise Forbidden("You can only refund your own bookings")

    if Payment.query.filter_by(booking_id=booking_id, status=PaymentStatus.REFUNDED).first():
        raise Conflict(ALREADY_REFUNDED)

    payment = (
        Payment.query
        .filter_by(booking_id=booking_id, barber_id=profile.id, status=PaymentStatus.SUCCEEDED)
        .order_by(Payment.id.asc())
        .first()
    )
    if payment is None:
        foreign = (
            Payment.query
            .filter(Payment.booking_id == booking_id, Payment.barber_id != profile.id)
            .first()
        )
        if foreign is not None:
            raise Forbidden("You can only refund your own bookings")
        raise NotFound("No successful payment found for this booking")
    return payment


def _resolve_charge_id(payment: Payment, booking_id: str, payment_intent_id: Optional[str]) -> Optional[str]:
    if payment.charge_id:
        return payment.charge_id

    ref = payment.payment_intent_id
    if ref.startswith("ch_"):
        return ref
    intent_ref = ref if ref.startswith("pi_") else payment_intent_id
    if not intent_ref:
        return None

    with stripe_errors("Could not load payment from Stripe"):
        intent = stripe.PaymentIntent.retrieve(intent_ref)

    if intent_ref != ref:
        # caller-supplied intent: it must have been created for this booking
        metadata = intent.get("metadata") or {}
        if metadata.get("bookingId") != booking_id:
            logger.warning(
                "refund_intent_mismatch",
                extra={"booking_id": booking_id, "payment_intent_id": intent_ref},
            )
            raise Forbidden("Payment intent does not belong to this booking")
    return object_id(intent.get("latest_charge"))


def _recorded_refunds(payment_id: int) -> dict:
    rows = PaymentRefund.query.filter_by(payment_id=payment_id).all()
    return {row.stripe_refund_id: row.amount_cents for row in rows}


def _record_refund(payment: Payment, booking_id: str, refund_id: str, amount: int, key: str, user_id) -> bool:
    """Insert the ledger row; False when another request already recorded this refund."""
    table = PaymentRefund.__table__
    stmt = dialect_insert(table).values(
        payment_id=payment.id,
        booking_id=booking_id,
        stripe_refund_id=refund_id,
        amount_cents=amount,
        idempotency_key=key,
        created_by=user_id,
        created_at=datetime.utcnow(),
    ).on_conflict_do_nothing(index_elements=["stripe_refund_id"]).returning(table.c.id)
    return db.session.execute(stmt).first() is not None


def _apply_refund(payment: Payment, refund_id: str, charge_id: str, amount: int):
    """
    Atomically add amount to refunded_cents and mark the payment refunded once
    it reaches gross. Returns (refunded_total, gross).
    """
    table = Payment.__table__
    new_total = table.c.refunded_cents + amount
    stmt = (
        update(table)
        .where(table.c.id == payment.id)
        .values(
            refunded_cents=case(
                (new_total > table.c.gross_amount_cents, table.c.gross_amount_cents),
                else_=new_total,
            ),
            status=case(
                (new_total >= table.c.gross_amount_cents, PaymentStatus.REFUNDED.value),
                else_=table.c.status,
            ),
            last_refund_id=refund_id,
            charge_id=charge_id,
            updated_at=datetime.utcnow(),
        )
        .returning(table.c.refunded_cents, table.c.gross_amount_cents)
    )
    refunded_total, gross = db.session.execute(stmt).one()
    return refunded_total, gross


def issue_refund(user, booking_id: str, amount_cents=None, reason=None, payment_intent_id=None) -> RefundResult:
    if not booking_id:
        raise ValidationError("booking_id is required")
    requested = parse_amount_cents(amount_cents)

    profile = BarberProfile.query.filter_by(user_id=user.id).first()
    if profile is None:
        raise Forbidden("Only barbers can issue refunds")

    payment = _load_payment(booking_id, profile)
    remaining = payment.remaining_cents
    if remaining <= 0:
        raise Conflict(ALREADY_REFUNDED)

    if requested is not None and requested <= 0:
        raise ValidationError("Refund amount must be greater than zero")
    refund_amount = min(requested if requested is not None else payment.gross_amount_cents, remaining)
    if refund_amount <= 0:
        raise ValidationError("Refund amount must be greater than zero")

    recorded = _recorded_refunds(payment.id)

    configure_stripe()
    charge_id = _resolve_charge_id(payment, booking_id, payment_intent_id)
    if not charge_id:
        raise NotFound("No charge found for this payment")

    stripe_reason = reason if reason in STRIPE_REFUND_REASONS else "requested_by_customer"
    metadata = {"bookingId": booking_id, "barberId": str(profile.id)}
    if reason and reason not in STRIPE_REFUND_REASONS:
        metadata["note"] = str(reason)[:500]

    key = refund_idempotency_key(booking_id, refund_amount)
    with stripe_errors("Refund processing failed"):
        refund = stripe.Refund.create(
            charge=charge_id,
            amount=refund_amount,
            reason=stripe_reason,
            # claw back the marketplace fee and the barber's transfer together
            refund_application_fee=True,
            reverse_transfer=True,
            metadata=metadata,
            idempotency_key=key,
        )
    refund_id = refund["id"]

    if refund_id in recorded:
        # retry of a refund that already committed; Stripe replayed it
        logger.info("refund_replayed", extra={"booking_id": booking_id, "refund_id": refund_id})
        return RefundResult(
            refund_id=refund_id,
            amount_cents=recorded[refund_id],
            fully_refunded=payment.status == PaymentStatus.REFUNDED,
            remaining_cents=payment.remaining_cents,
            status=refund.get("status"),
            replayed=True,
        )

    if not _record_refund(payment, booking_id, refund_id, refund_amount, key, user.id):
        # a concurrent duplicate got the same refund back and recorded it first
        db.session.rollback()
        logger.warning("refund_duplicate", extra={"booking_id": booking_id, "refund_id": refund_id})
        raise Conflict(ALREADY_REFUNDED)

    refunded_total, gross = _apply_refund(payment, refund_id, charge_id, refund_amount)
    ledger_total = (
        db.session.query(db.func.coalesce(db.func.sum(PaymentRefund.amount_cents), 0))
        .filter(PaymentRefund.payment_id == payment.id)
        .scalar()
    )
    if ledger_total > gross:
        # refunds recorded for this charge exceed what we collected
        logger.error(
            "refund_exceeds_gross",
            extra={"booking_id": booking_id, "refund_id": refund_id, "amount_cents": refund_amount},
        )
    fully_refunded = refunded_total >= gross

    if fully_refunded:
        booking = db.session.get(Booking, booking_id)
        booking.advance_to(BookingStatus.CANCELLED)

    log_event(
        "REFUND_ISSUED",
        user_id=user.id,
        entity="booking",
        entity_id=booking_id,
        metadata={
            "refund_id": refund_id,
            "amount_cents": refund_amount,
            "fully_refunded": fully_refunded,
            "charge_id": charge_id,
        },
        commit=False,
    )
    db.session.commit()

    logger.info(
        "refund_issued",
        extra={"booking_id": booking_id, "refund_id": refund_id, "amount_cents": refund_amount},
    )

    notify_best_effort(
        booking_id,
        NotificationEvent.BOOKING_CANCELLED if fully_refunded else NotificationEvent.BOOKING_UPDATED,
    )

    return RefundResult(
        refund_id=refund_id,
        amount_cents=refund_amount,
        fully_refunded=fully_refunded,
        remaining_cents=gross - refunded_total,
        status=refund.get("status"),
    )
