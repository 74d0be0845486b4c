import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _csv(value, lower=False):
    items = [v.strip() for v in (value or "").split(",") if v.strip()]
    return [v.lower() for v in items] if lower else items


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as kutable.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "kutable.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer session lifetime: 8 hours
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 2 hours
    IDLE_TIMEOUT_SECONDS = 2 * 60 * 60

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_CONNECT_COUNTRY = os.getenv("STRIPE_CONNECT_COUNTRY", "US")
    STRIPE_BARBER_MCC = "7230"  # barber and beauty shops

    # Public site + Connect onboarding redirects (fixed, never client supplied)
    SITE_URL = os.getenv("SITE_URL", "https://kutable.com").rstrip("/")
    CONNECT_REFRESH_URL = os.getenv("CONNECT_REFRESH_URL", SITE_URL + "/onboarding/barber")
    CONNECT_RETURN_URL = os.getenv(
        "CONNECT_RETURN_URL",
        SITE_URL + "/dashboard/barber/profile?stripe_setup=complete",
    )

    # Marketplace cut in basis points (100 = 1%)
    PLATFORM_FEE_BPS = int(os.getenv("PLATFORM_FEE_BPS", "100"))
    DEFAULT_CURRENCY = "usd"

    # CORS
    ALLOWED_ORIGINS = _csv(os.getenv("ALLOWED_ORIGINS"))
    ALLOWED_ORIGIN_SUFFIXES = _csv(os.getenv("ALLOWED_ORIGIN_SUFFIXES"))
    PRODUCTION_ORIGINS = ["https://kutable.com", "https://www.kutable.com"]
    # Server-to-server callers only; browser endpoints always need an Origin
    ALLOW_NO_ORIGIN = os.getenv("ALLOW_NO_ORIGIN", "true").lower() == "true"

    # Admin allowlists (deployment config only)
    ADMIN_UIDS = _csv(os.getenv("ADMIN_UIDS"))
    ADMIN_EMAILS = _csv(os.getenv("ADMIN_EMAILS"), lower=True)

    # Shared secret for scheduler / backfill callers
    SERVICE_API_KEY = os.getenv("SERVICE_API_KEY")

    # Rate limiting. Fail-open keeps endpoints available when the counter
    # store is down; pending product/security sign-off before changing.
    RATE_LIMIT_FAIL_OPEN = os.getenv("RATE_LIMIT_FAIL_OPEN", "true").lower() == "true"
    RATE_LIMITS = {
        # action: (limit, window_seconds)
        "connect_onboarding": (10, 60),
        "connect_status": (30, 60),
        "checkout_reconcile": (30, 60),
        "refund": (30, 60),
        "admin_guard": (30, 60),
        "support_request": (5, 60 * 60),
    }

    # Reminders
    REMINDER_RETENTION_DAYS = int(os.getenv("REMINDER_RETENTION_DAYS", "30"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    SUPPORT_INBOX = os.getenv("SUPPORT_INBOX", "info@kutable.com")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE = os.getenv("LOG_FILE")
    LOG_MAX_BYTES = 10 * 1024 * 1024
    LOG_BACKUP_COUNT = 5

    # Basic app settings
    DEBUG = False
