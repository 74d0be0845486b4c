from .health import health_bp
from .connect import connect_bp
from .checkout import checkout_bp
from .refunds import refunds_bp
from .reminders import reminders_bp
from .admin import admin_bp
from .support import support_bp
from .stripe_webhook import webhook_bp

ALL_BLUEPRINTS = (
    health_bp,
    connect_bp,
    checkout_bp,
    refunds_bp,
    reminders_bp,
    admin_bp,
    support_bp,
    webhook_bp,
)
