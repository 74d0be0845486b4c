from datetime import datetime
from models.db import db
from models.status import ConnectAccountStatus, enum_column


class ConnectAccount(db.Model):
    __tablename__ = "connect_accounts"

    id = db.Column(db.Integer, primary_key=True)
    barber_id = db.Column(db.Integer, db.ForeignKey("barber_profiles.id"), nullable=False, unique=True, index=True)
    stripe_account_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    charges_enabled = db.Column(db.Boolean, default=False, nullable=False)
    payouts_enabled = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(enum_column(ConnectAccountStatus), nullable=False, default=ConnectAccountStatus.PENDING)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
