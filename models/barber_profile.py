from datetime import datetime
from models.db import db


class BarberProfile(db.Model):
    __tablename__ = "barber_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)

    business_name = db.Column(db.String(160), nullable=True)
    owner_name = db.Column(db.String(120), nullable=True)

    # Set exactly once, by the first onboarding call
    stripe_account_id = db.Column(db.String(64), nullable=True, unique=True, index=True)
    stripe_onboarding_completed = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship("User", back_populates="barber_profile")
