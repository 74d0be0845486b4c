"""Stripe Connect onboarding for barbers."""
import logging
from dataclasses import dataclass
from datetime import datetime

import stripe
from flask import current_app

from models import db
from models.barber_profile import BarberProfile
from models.connect_account import ConnectAccount
from models.status import ConnectAccountStatus
from services.stripe_client import configure_stripe, stripe_errors
from utils.audit import log_event
from utils.errors import ValidationError
from utils.upsert import dialect_insert
from utils.urls import append_query

logger = logging.getLogger(__name__)


@dataclass
class OnboardingResult:
    url: str
    account_id: str
    created: bool


@dataclass
class AccountStatus:
    account_id: str
    charges_enabled: bool
    payouts_enabled: bool
    status: ConnectAccountStatus
    currently_due: list


def _split_name(full_name: str):
    first, _, rest = (full_name or "").strip().partition(" ")
    return first or "Barber", rest.strip() or first or "Professional"


def build_account_params(user, profile: BarberProfile, hints: dict) -> dict:
    config = current_app.config
    email = hints.get("userEmail") or user.email or None
    params = {
        "type": "express",
        "country": config.get("STRIPE_CONNECT_COUNTRY", "US"),
        "email": email,
        "capabilities": {
            "transfers": {"requested": True},
            "card_payments": {"requested": True},
        },
        "business_type": "individual",
        "metadata": {
            "barber_id": str(profile.id),
            "user_id": str(user.id),
            "kutable_user": "true",
        },
    }

    owner_name = hints.get("userName") or profile.owner_name or user.full_name
    business_name = hints.get("businessName") or profile.business_name
    if business_name:
        params["business_profile"] = {
            "name": business_name,
            "mcc": config.get("STRIPE_BARBER_MCC", "7230"),
            "url": f"{config['SITE_URL']}/barber/{profile.id}",
        }
    if owner_name:
        first, last = _split_name(owner_name)
        params["individual"] = {"first_name": first, "last_name": last, "email": email}
    return {k: v for k, v in params.items() if v is not None}


def _store_account_id(profile: BarberProfile, account_id: str):
    """
    Persist the new account id unless a concurrent call already stored one.
    Returns (winning account id, stored by this call).
    """
    now = datetime.utcnow()
    updated = (
        BarberProfile.query
        .filter(BarberProfile.id == profile.id, BarberProfile.stripe_account_id.is_(None))
        .update({"stripe_account_id": account_id, "updated_at": now}, synchronize_session=False)
    )
    if not updated:
        db.session.rollback()
        db.session.refresh(profile)
        return profile.stripe_account_id, False

    stmt = dialect_insert(ConnectAccount.__table__).values(
        barber_id=profile.id,
        stripe_account_id=account_id,
        status=ConnectAccountStatus.PENDING,
        charges_enabled=False,
        payouts_enabled=False,
        created_at=now,
        updated_at=now,
    ).on_conflict_do_nothing(index_elements=["barber_id"])
    db.session.execute(stmt)
    db.session.commit()
    return account_id, True


def start_onboarding(user, hints=None) -> OnboardingResult:
    hints = hints or {}
    profile = BarberProfile.query.filter_by(user_id=user.id).first()
    if profile is None:
        raise ValidationError("Barber profile not found")

    configure_stripe()
    config = current_app.config
    account_id = profile.stripe_account_id
    created = False

    if not account_id:
        logger.info("connect_account_create", extra={"barber_id": profile.id, "user_id": user.id})
        with stripe_errors("Could not start Stripe onboarding", status_code=500):
            account = stripe.Account.create(
                **build_account_params(user, profile, hints),
                # concurrent first calls for one barber collapse onto one account
                idempotency_key=f"connect-account-barber-{profile.id}",
            )
        account_id, created = _store_account_id(profile, account["id"])

    with stripe_errors("Could not start Stripe onboarding", status_code=500):
        link = stripe.AccountLink.create(
            account=account_id,
            type="account_onboarding",
            refresh_url=config["CONNECT_REFRESH_URL"],
            return_url=append_query(config["CONNECT_RETURN_URL"], {"account_id": account_id}),
        )

    log_event(
        "CONNECT_ONBOARDING_LINK",
        user_id=user.id,
        entity="barber_profile",
        entity_id=profile.id,
        metadata={"account_id": account_id, "account_created": created},
    )
    return OnboardingResult(url=link["url"], account_id=account_id, created=created)


def apply_account_update(account) -> ConnectAccount:
    """Sync a Stripe Account object (from account.updated or a retrieve) into our rows."""
    account_id = account["id"]
    details_submitted = bool(account.get("details_submitted"))
    charges_enabled = bool(account.get("charges_enabled"))
    payouts_enabled = bool(account.get("payouts_enabled"))

    profile = BarberProfile.query.filter_by(stripe_account_id=account_id).first()
    row = ConnectAccount.query.filter_by(stripe_account_id=account_id).first()
    if row is None:
        if profile is None:
            logger.warning("connect_account_unknown", extra={"account_id": account_id})
            return None
        row = ConnectAccount(barber_id=profile.id, stripe_account_id=account_id)
        db.session.add(row)

    row.charges_enabled = charges_enabled
    row.payouts_enabled = payouts_enabled
    row.status = ConnectAccountStatus.ACTIVE if details_submitted else ConnectAccountStatus.PENDING
    if profile is not None:
        profile.stripe_onboarding_completed = details_submitted and charges_enabled and payouts_enabled
    db.session.commit()
    return row


def check_account_status(user) -> AccountStatus:
    profile = BarberProfile.query.filter_by(user_id=user.id).first()
    if profile is None:
        raise ValidationError("Barber profile not found")
    if not profile.stripe_account_id:
        raise ValidationError("Stripe onboarding has not been started")

    configure_stripe()
    with stripe_errors("Could not check Stripe account status"):
        account = stripe.Account.retrieve(profile.stripe_account_id)

    row = apply_account_update(account)
    requirements = account.get("requirements") or {}
    return AccountStatus(
        account_id=profile.stripe_account_id,
        charges_enabled=row.charges_enabled,
        payouts_enabled=row.payouts_enabled,
        status=ConnectAccountStatus(row.status),
        currently_due=list(requirements.get("currently_due") or [])[:20],
    )
