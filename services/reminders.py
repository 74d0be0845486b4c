import logging
from dataclasses import dataclass, asdict
from datetime import datetime, time, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import Booking
from models.reminder import BookingReminder
from models.status import REMINDABLE_BOOKING_STATUSES, NotificationEvent, ReminderType
from utils.errors import InternalError
from utils.notify import notify_booking

logger = logging.getLogger(__name__)


@dataclass
class ReminderRunSummary:
    date: str
    checked: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    pruned: int = 0

    def to_dict(self):
        return asdict(self)


def _already_reminded(booking_id: str, since: datetime) -> bool:
    return (
        BookingReminder.query
        .filter(
            BookingReminder.booking_id == booking_id,
            BookingReminder.reminder_type == ReminderType.APPOINTMENT_REMINDER,
            BookingReminder.sent_at >= since,
        )
        .first()
        is not None
    )


def prune_reminders(now: datetime, retention_days: int) -> int:
    cutoff = now - timedelta(days=retention_days)
    deleted = BookingReminder.query.filter(BookingReminder.sent_at < cutoff).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def run_daily(now=None, send=None) -> ReminderRunSummary:
    """
    Remind every confirmed/pending booking scheduled for tomorrow (UTC).
    Safe to re-run the same day: a reminder row dated today suppresses a
    second send, and a row is only written after the send succeeded.
    """
    now = now or datetime.utcnow()
    send = send or notify_booking
    today_start = datetime.combine(now.date(), time.min)
    tomorrow = now.date() + timedelta(days=1)
    summary = ReminderRunSummary(date=tomorrow.isoformat())

    try:
        bookings = (
            Booking.query
            .filter(
                Booking.appointment_date == tomorrow,
                Booking.status.in_(REMINDABLE_BOOKING_STATUSES),
            )
            .order_by(Booking.appointment_time.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.error("reminder_query_failed", extra={"error": str(exc)})
        raise InternalError("Reminder scheduling failed") from exc

    summary.checked = len(bookings)
    for booking in bookings:
        try:
            if _already_reminded(booking.id, today_start):
                summary.skipped += 1
                continue

            delivered, error = send(booking.id, NotificationEvent.APPOINTMENT_REMINDER)
            if not delivered:
                summary.failed += 1
                logger.error("reminder_not_delivered", extra={"booking_id": booking.id, "error": error})
                continue

            db.session.add(BookingReminder(
                booking_id=booking.id,
                reminder_type=ReminderType.APPOINTMENT_REMINDER,
                sent_at=now,
            ))
            db.session.commit()
            summary.sent += 1
        except SQLAlchemyError as exc:
            db.session.rollback()
            summary.failed += 1
            logger.error("reminder_processing_failed", extra={"booking_id": booking.id, "error": str(exc)})

    try:
        summary.pruned = prune_reminders(now, current_app.config.get("REMINDER_RETENTION_DAYS", 30))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("reminder_prune_failed", extra={"error": str(exc)})

    logger.info(
        "reminders_run: checked=%d sent=%d skipped=%d failed=%d",
        summary.checked, summary.sent, summary.skipped, summary.failed,
    )
    return summary
