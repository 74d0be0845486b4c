import uuid
from datetime import date

import pytest

from app import create_app
from config import Config
from models import db
from models.barber_profile import BarberProfile
from models.booking import Booking
from models.payment import Payment
from models.status import BookingStatus, PaymentStatus
from models.user import User
from security.session import create_session

APP_ORIGIN = "https://app.kutable.test"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    SITE_URL = "https://kutable.test"
    CONNECT_REFRESH_URL = "https://kutable.test/onboarding/barber"
    CONNECT_RETURN_URL = "https://kutable.test/dashboard/barber/profile?stripe_setup=complete"
    ALLOWED_ORIGINS = [APP_ORIGIN]
    ALLOWED_ORIGIN_SUFFIXES = ["preview.netlify.app"]
    ALLOW_NO_ORIGIN = True
    ADMIN_UIDS = []
    ADMIN_EMAILS = ["boss@kutable.com"]
    SERVICE_API_KEY = "svc-secret"
    RATE_LIMIT_FAIL_OPEN = True
    RATE_LIMITS = dict(Config.RATE_LIMITS)
    SMTP_HOST = None
    LOG_FILE = None


# --- App / DB ---
@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


# --- Factories ---
@pytest.fixture
def make_user(app):
    def _make(email=None, verified=True, full_name="Test User"):
        user = User(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            email_verified=verified,
            full_name=full_name,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_barber(make_user):
    def _make(email=None, stripe_account_id=None, business_name="Fade Factory"):
        user = make_user(email=email, full_name="Sam Barber")
        profile = BarberProfile(
            user_id=user.id,
            business_name=business_name,
            owner_name="Sam Barber",
            stripe_account_id=stripe_account_id,
        )
        db.session.add(profile)
        db.session.commit()
        return user, profile
    return _make


@pytest.fixture
def make_paid_booking(make_user):
    """A confirmed booking with one succeeded payment for the given barber profile."""
    def _make(profile, gross=5000, charge_id="ch_test_1", appointment_date=None, status=BookingStatus.CONFIRMED):
        client_user = make_user()
        booking = Booking(
            id=str(uuid.uuid4()),
            barber_id=profile.id,
            client_id=client_user.id,
            appointment_date=appointment_date or date(2026, 11, 2),
            appointment_time="10:30",
            total_amount_cents=gross,
            platform_fee_cents=gross // 100,
            status=status,
            payment_intent_id=f"pi_{uuid.uuid4().hex[:12]}",
        )
        db.session.add(booking)
        payment = Payment(
            booking_id=booking.id,
            barber_id=profile.id,
            user_id=client_user.id,
            payment_intent_id=booking.payment_intent_id,
            charge_id=charge_id,
            gross_amount_cents=gross,
            application_fee_cents=gross // 100,
            status=PaymentStatus.SUCCEEDED,
        )
        db.session.add(payment)
        db.session.commit()
        return booking, payment
    return _make


# --- Headers ---
@pytest.fixture
def auth_headers(app):
    def _headers(user, origin=APP_ORIGIN):
        headers = {"Authorization": f"Bearer {create_session(user.id)}"}
        if origin:
            headers["Origin"] = origin
        return headers
    return _headers


@pytest.fixture
def service_headers():
    return {"Authorization": "Bearer svc-secret"}
