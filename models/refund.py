from datetime import datetime
from models.db import db


class PaymentRefund(db.Model):
    """One row per processor refund; the unique refund id keeps a retried refund from being counted twice."""
    __tablename__ = "payment_refunds"

    id = db.Column(db.Integer, primary_key=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"), nullable=False, index=True)
    booking_id = db.Column(db.String(36), db.ForeignKey("bookings.id"), nullable=True, index=True)
    stripe_refund_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    idempotency_key = db.Column(db.String(64), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_payment_refund_positive"),
    )
