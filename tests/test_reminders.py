from datetime import date, datetime, timedelta

from models import db
from models.booking import Booking
from models.reminder import BookingReminder
from models.status import BookingStatus, NotificationEvent
from services.reminders import run_daily

NOW = datetime(2026, 11, 1, 9, 0, 0)
TOMORROW = date(2026, 11, 2)


def _ok(booking_id, event):
    return True, None


def test_sends_one_reminder_per_booking_per_day(app, make_barber, make_paid_booking, mocker):
    _, profile = make_barber()
    booking, _ = make_paid_booking(profile, appointment_date=TOMORROW)
    send = mocker.Mock(side_effect=_ok)

    first = run_daily(now=NOW, send=send)
    second = run_daily(now=NOW + timedelta(hours=3), send=send)

    assert first.sent == 1
    assert first.date == "2026-11-02"
    assert second.sent == 0
    assert second.skipped == 1
    send.assert_called_once_with(booking.id, NotificationEvent.APPOINTMENT_REMINDER)
    assert BookingReminder.query.count() == 1


def test_only_tomorrows_active_bookings_are_reminded(app, make_barber, make_paid_booking, mocker):
    _, profile = make_barber()
    due, _ = make_paid_booking(profile, charge_id="ch_a", appointment_date=TOMORROW)
    make_paid_booking(profile, charge_id="ch_b", appointment_date=TOMORROW, status=BookingStatus.CANCELLED)
    make_paid_booking(profile, charge_id="ch_c", appointment_date=TOMORROW + timedelta(days=1))
    send = mocker.Mock(side_effect=_ok)

    summary = run_daily(now=NOW, send=send)

    assert summary.checked == 1
    send.assert_called_once_with(due.id, NotificationEvent.APPOINTMENT_REMINDER)


def test_failed_send_is_retried_on_next_run(app, make_barber, make_paid_booking, mocker):
    _, profile = make_barber()
    make_paid_booking(profile, appointment_date=TOMORROW)

    failed = run_daily(now=NOW, send=mocker.Mock(return_value=(False, "smtp down")))
    retried = run_daily(now=NOW + timedelta(hours=1), send=mocker.Mock(side_effect=_ok))

    assert failed.failed == 1
    assert failed.sent == 0
    assert retried.sent == 1
    assert BookingReminder.query.count() == 1


def test_old_reminders_are_pruned(app, make_barber, make_paid_booking, mocker):
    _, profile = make_barber()
    booking, _ = make_paid_booking(profile, appointment_date=date(2026, 9, 1))
    db.session.add(BookingReminder(booking_id=booking.id, sent_at=NOW - timedelta(days=31)))
    db.session.add(BookingReminder(booking_id=booking.id, sent_at=NOW - timedelta(days=2)))
    db.session.commit()

    summary = run_daily(now=NOW, send=mocker.Mock(side_effect=_ok))

    assert summary.pruned == 1
    assert BookingReminder.query.count() == 1


def test_default_sender_reports_undeliverable_without_smtp(app, make_barber, make_paid_booking):
    _, profile = make_barber()
    make_paid_booking(profile, appointment_date=TOMORROW)

    summary = run_daily(now=NOW)

    assert summary.failed == 1
    assert BookingReminder.query.count() == 0


def test_endpoint_requires_service_key(client):
    assert client.post("/reminders/daily").status_code == 401


def test_endpoint_returns_summary(client, service_headers):
    resp = client.post("/reminders/daily", headers=service_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    for key in ("date", "checked", "sent", "skipped", "failed", "pruned"):
        assert key in body
    assert Booking.query.count() == 0
