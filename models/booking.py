from datetime import datetime
from models.db import db
from models.status import BookingStatus, enum_column

class Booking(db.Model):
    __tablename__ = "bookings"

    # UUID string; carried through Stripe metadata as bookingId
    id = db.Column(db.String(36), primary_key=True)

    barber_id = db.Column(db.Integer, db.ForeignKey("barber_profiles.id"), nullable=True, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    service_id = db.Column(db.String(64), nullable=True)

    appointment_date = db.Column(db.Date, nullable=True, index=True)
    appointment_time = db.Column(db.String(8), nullable=True)  # HH:MM

    # Money is integer minor units (cents) throughout
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    deposit_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    platform_fee_cents = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    status = db.Column(enum_column(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    payment_intent_id = db.Column(db.String(255), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def advance_to(self, target: BookingStatus) -> bool:
        """Move forward in the lifecycle; returns False (and changes nothing) on a regression."""
        if self.status == target:
            return False
        if not BookingStatus(self.status).can_advance_to(target):
            return False
        self.status = target
        return True
