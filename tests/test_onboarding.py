import stripe

from models import db
from models.barber_profile import BarberProfile
from models.connect_account import ConnectAccount
from models.status import ConnectAccountStatus


def _patch_stripe(mocker, account_id="acct_123"):
    create = mocker.patch("stripe.Account.create", return_value={"id": account_id})
    link = mocker.patch(
        "stripe.AccountLink.create",
        side_effect=[{"url": "https://connect.stripe.test/setup/1"}, {"url": "https://connect.stripe.test/setup/2"}],
    )
    return create, link


def test_requires_authentication(client):
    resp = client.post("/connect/onboarding", json={}, headers={"Origin": "https://kutable.com"})
    assert resp.status_code == 401


def test_user_without_barber_profile_gets_400(client, make_user, auth_headers, mocker):
    create, _ = _patch_stripe(mocker)
    user = make_user()

    resp = client.post("/connect/onboarding", json={}, headers=auth_headers(user))

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Barber profile not found"
    create.assert_not_called()


def test_account_created_once_and_reused(client, make_barber, auth_headers, mocker):
    create, link = _patch_stripe(mocker)
    user, profile = make_barber()

    first = client.post("/connect/onboarding", json={"businessName": "Sharp Cuts"}, headers=auth_headers(user))
    second = client.post("/connect/onboarding", json={}, headers=auth_headers(user))

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.get_json()["accountId"] == second.get_json()["accountId"] == "acct_123"
    assert first.get_json()["url"] != second.get_json()["url"]
    assert create.call_count == 1
    assert link.call_count == 2

    kwargs = create.call_args.kwargs
    assert kwargs["type"] == "express"
    assert kwargs["capabilities"]["transfers"] == {"requested": True}
    assert kwargs["business_profile"]["name"] == "Sharp Cuts"
    assert kwargs["business_profile"]["mcc"] == "7230"
    assert kwargs["idempotency_key"] == f"connect-account-barber-{profile.id}"

    link_kwargs = link.call_args.kwargs
    assert link_kwargs["type"] == "account_onboarding"
    assert link_kwargs["refresh_url"] == "https://kutable.test/onboarding/barber"
    assert link_kwargs["return_url"].startswith("https://kutable.test/dashboard/barber/profile?")
    assert "account_id=acct_123" in link_kwargs["return_url"]

    db.session.expire_all()
    assert db.session.get(BarberProfile, profile.id).stripe_account_id == "acct_123"
    row = ConnectAccount.query.filter_by(barber_id=profile.id).one()
    assert row.status == ConnectAccountStatus.PENDING


def test_existing_account_only_gets_new_link(client, make_barber, auth_headers, mocker):
    create, link = _patch_stripe(mocker)
    user, _ = make_barber(stripe_account_id="acct_existing")

    resp = client.post("/connect/onboarding", json={}, headers=auth_headers(user))

    assert resp.status_code == 200
    assert resp.get_json()["accountId"] == "acct_existing"
    create.assert_not_called()
    assert link.call_args.kwargs["account"] == "acct_existing"


def test_processor_error_returns_500_with_processor_message(client, make_barber, auth_headers, mocker):
    mocker.patch(
        "stripe.Account.create",
        side_effect=stripe.InvalidRequestError("Connect is not enabled for this platform", "type"),
    )
    user, profile = make_barber()

    resp = client.post("/connect/onboarding", json={}, headers=auth_headers(user))

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "Connect is not enabled for this platform"
    db.session.expire_all()
    assert db.session.get(BarberProfile, profile.id).stripe_account_id is None


def test_lost_creation_race_keeps_first_account(app, make_barber, mocker):
    from services.onboarding import _store_account_id

    _, profile = make_barber()
    assert _store_account_id(profile, "acct_first") == ("acct_first", True)
    assert _store_account_id(profile, "acct_second") == ("acct_first", False)


def test_status_syncs_capabilities(client, make_barber, auth_headers, mocker):
    mocker.patch("stripe.Account.retrieve", return_value={
        "id": "acct_live",
        "details_submitted": True,
        "charges_enabled": True,
        "payouts_enabled": True,
        "requirements": {"currently_due": []},
    })
    user, profile = make_barber(stripe_account_id="acct_live")

    resp = client.get("/connect/status", headers=auth_headers(user))

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["chargesEnabled"] is True
    assert body["status"] == "active"
    db.session.expire_all()
    assert db.session.get(BarberProfile, profile.id).stripe_onboarding_completed is True


def test_status_before_onboarding_is_400(client, make_barber, auth_headers):
    user, _ = make_barber()
    resp = client.get("/connect/status", headers=auth_headers(user))
    assert resp.status_code == 400


def test_non_string_hint_is_400(client, make_barber, auth_headers, mocker):
    create, _ = _patch_stripe(mocker)
    user, _ = make_barber()

    resp = client.post("/connect/onboarding", json={"businessName": 42}, headers=auth_headers(user))

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "businessName must be a string"
    create.assert_not_called()
