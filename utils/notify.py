import logging

from models import db
from models.booking import Booking
from models.status import NotificationEvent
from models.user import User
from utils.emailer import send_email

logger = logging.getLogger(__name__)

_SUBJECTS = {
    NotificationEvent.BOOKING_CONFIRMED: "Your appointment is confirmed",
    NotificationEvent.BOOKING_CANCELLED: "Your appointment was cancelled and refunded",
    NotificationEvent.BOOKING_UPDATED: "A refund was issued for your appointment",
    NotificationEvent.APPOINTMENT_REMINDER: "Reminder: your appointment is tomorrow",
}


def _body(booking: Booking, event: NotificationEvent) -> str:
    when = f"{booking.appointment_date or 'TBD'} {booking.appointment_time or ''}".strip()
    lines = [_SUBJECTS[event] + ".", "", f"Booking: {booking.id}", f"When: {when}"]
    if event in (NotificationEvent.BOOKING_CANCELLED, NotificationEvent.BOOKING_UPDATED):
        lines.append("Refunds usually appear on your statement within 5-10 business days.")
    return "\n".join(lines)


def notify_booking(booking_id: str, event: NotificationEvent):
    """Send a booking notification to the client. Returns (delivered, error)."""
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        return False, "Booking not found"
    client = db.session.get(User, booking.client_id) if booking.client_id else None
    if client is None or not client.email:
        return False, "Client has no email on file"
    return send_email(client.email, _SUBJECTS[event], _body(booking, event))


def notify_best_effort(booking_id: str, event: NotificationEvent) -> bool:
    """Fire-and-forget variant for flows whose financial write already succeeded."""
    try:
        delivered, error = notify_booking(booking_id, event)
    except Exception:
        logger.exception("notification_failed", extra={"booking_id": booking_id, "action": event.value})
        return False
    if not delivered:
        logger.warning("notification_not_delivered", extra={"booking_id": booking_id, "action": event.value, "error": error})
    return delivered
