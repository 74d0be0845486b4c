import uuid

import pytest

from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from models.payment import Payment
from models.status import BookingStatus, NotificationEvent, PaymentStatus
from services.reconcile import derive_booking_id, platform_fee_cents, reconcile_checkout


@pytest.fixture
def checkout_session(make_barber, make_user):
    _, profile = make_barber()
    client_user = make_user()
    booking_id = str(uuid.uuid4())
    return {
        "id": "cs_test_abc",
        "payment_intent": "pi_test_abc",
        "amount_total": 5000,
        "currency": "usd",
        "metadata": {
            "bookingId": booking_id,
            "barberId": str(profile.id),
            "clientId": str(client_user.id),
            "serviceId": "svc_fade",
            "appointmentDate": "2026-11-02",
            "appointmentTime": "10:30",
            "notes": "",
        },
    }


def test_replays_converge_on_one_booking_and_one_payment(app, checkout_session, mocker):
    notify = mocker.patch("services.reconcile.notify_best_effort")

    results = [reconcile_checkout(checkout_session) for _ in range(3)]

    booking_id = checkout_session["metadata"]["bookingId"]
    assert {r.booking_id for r in results} == {booking_id}
    assert Booking.query.count() == 1
    assert Payment.query.count() == 1

    booking = db.session.get(Booking, booking_id)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.total_amount_cents == 5000
    assert booking.platform_fee_cents == 50

    payment = Payment.query.one()
    assert payment.payment_intent_id == "pi_test_abc"
    assert payment.session_id == "cs_test_abc"
    assert payment.status == PaymentStatus.SUCCEEDED
    # only the first pass confirms the booking
    notify.assert_called_once_with(booking_id, NotificationEvent.BOOKING_CONFIRMED)
    assert AuditLog.query.filter_by(action="CHECKOUT_RECONCILED").count() == 3


def test_platform_fee_is_floored():
    assert platform_fee_cents(5000, 100) == 50
    assert platform_fee_cents(199, 100) == 1
    assert platform_fee_cents(99, 100) == 0


@pytest.mark.parametrize("session", [
    {"payment_intent": "pi_1"},
    {"id": "cs_1"},
    {"id": "cs_1", "payment_intent": None},
])
def test_missing_identifiers_rejected(app, session):
    from utils.errors import ValidationError

    with pytest.raises(ValidationError):
        reconcile_checkout(session)
    assert Booking.query.count() == 0


def test_derived_booking_id_is_stable_per_payment_intent():
    first, derived = derive_booking_id({}, "pi_same")
    second, _ = derive_booking_id({"bookingId": "  "}, "pi_same")
    other, _ = derive_booking_id({}, "pi_other")

    assert derived is True
    assert first == second
    assert first != other
    assert derive_booking_id({"bookingId": "b-1"}, "pi_same") == ("b-1", False)


def test_replay_without_booking_id_does_not_duplicate(app, checkout_session, mocker):
    mocker.patch("services.reconcile.notify_best_effort")
    del checkout_session["metadata"]["bookingId"]

    first = reconcile_checkout(checkout_session)
    second = reconcile_checkout(checkout_session)

    assert first.booking_id_derived is True
    assert first.booking_id == second.booking_id
    assert Booking.query.count() == 1


def test_replay_never_revives_cancelled_booking(app, checkout_session, mocker):
    notify = mocker.patch("services.reconcile.notify_best_effort")
    reconcile_checkout(checkout_session)
    booking = db.session.get(Booking, checkout_session["metadata"]["bookingId"])
    booking.status = BookingStatus.CANCELLED
    db.session.commit()

    reconcile_checkout(checkout_session)

    db.session.expire_all()
    assert db.session.get(Booking, booking.id).status == BookingStatus.CANCELLED
    assert notify.call_count == 1


def test_replay_keeps_refunded_payment_refunded(app, checkout_session, mocker):
    mocker.patch("services.reconcile.notify_best_effort")
    reconcile_checkout(checkout_session)
    payment = Payment.query.one()
    payment.status = PaymentStatus.REFUNDED
    payment.refunded_cents = 5000
    db.session.commit()

    reconcile_checkout(checkout_session)

    db.session.expire_all()
    payment = Payment.query.one()
    assert payment.status == PaymentStatus.REFUNDED
    assert payment.refunded_cents == 5000


def test_endpoint_requires_service_key(client, checkout_session):
    resp = client.post("/checkout/reconcile", json={"session": checkout_session})
    assert resp.status_code == 401

    resp = client.post(
        "/checkout/reconcile",
        json={"session": checkout_session},
        headers={"Authorization": "Bearer wrong"},
    )
    assert resp.status_code == 401
    assert Booking.query.count() == 0


def test_endpoint_accepts_wrapped_session(client, checkout_session, service_headers):
    resp = client.post("/checkout/reconcile", json={"session": checkout_session}, headers=service_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["bookingId"] == checkout_session["metadata"]["bookingId"]
    assert body["paymentIntentId"] == "pi_test_abc"


def test_endpoint_accepts_form_encoded_session(client, checkout_session, service_headers):
    form = {"id": "cs_form", "payment_intent": "pi_form", "amount_total": "2500"}
    for key, value in checkout_session["metadata"].items():
        form[f"metadata[{key}]"] = value

    resp = client.post("/checkout/reconcile", data=form, headers=service_headers)

    assert resp.status_code == 200
    payment = Payment.query.filter_by(payment_intent_id="pi_form").one()
    assert payment.gross_amount_cents == 2500
    assert payment.application_fee_cents == 25


def test_endpoint_missing_fields_is_400(client, service_headers):
    resp = client.post("/checkout/reconcile", json={"session": {"id": "cs_1"}}, headers=service_headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Provide full Checkout Session JSON with id and payment_intent"
