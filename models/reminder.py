from datetime import datetime
from models.db import db
from models.status import ReminderType, enum_column


class BookingReminder(db.Model):
    __tablename__ = "booking_reminders"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.String(36), db.ForeignKey("bookings.id"), nullable=False, index=True)
    reminder_type = db.Column(enum_column(ReminderType), nullable=False, default=ReminderType.APPOINTMENT_REMINDER)
    sent_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
