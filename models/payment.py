from datetime import datetime
from models.db import db
from models.status import PaymentStatus, enum_column

class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.String(36), db.ForeignKey("bookings.id"), nullable=True, index=True)
    barber_id = db.Column(db.Integer, db.ForeignKey("barber_profiles.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # Processor natural key: every upsert is keyed on this, never on a local id
    payment_intent_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    session_id = db.Column(db.String(255), nullable=True, index=True)
    charge_id = db.Column(db.String(255), nullable=True)

    currency = db.Column(db.String(10), nullable=False, default="usd")
    gross_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    application_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    refunded_cents = db.Column(db.Integer, nullable=False, default=0)
    last_refund_id = db.Column(db.String(255), nullable=True)

    status = db.Column(enum_column(PaymentStatus), nullable=False, default=PaymentStatus.SUCCEEDED)
    raw_json = db.Column(db.Text, nullable=True)  # event snapshot

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("refunded_cents >= 0 AND refunded_cents <= gross_amount_cents", name="ck_payment_refund_bounds"),
    )

    @property
    def remaining_cents(self) -> int:
        return max(self.gross_amount_cents - self.refunded_cents, 0)
