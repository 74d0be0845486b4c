from datetime import datetime
from models.db import db

class RateLimitCounter(db.Model):
    __tablename__ = "rate_limit_counters"

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(64), nullable=False)
    identifier = db.Column(db.String(255), nullable=False)
    # start of the fixed window bucket (epoch seconds, aligned to the window size)
    window_start = db.Column(db.BigInteger, nullable=False, index=True)

    count = db.Column(db.Integer, default=0, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("action", "identifier", "window_start", name="uq_rate_limit_bucket"),
    )
