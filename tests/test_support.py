import pytest

from models.audit_log import AuditLog
from models.support_message import SupportMessage
from tests.conftest import APP_ORIGIN

VALID = {
    "name": "Ana Client",
    "email": "ana@example.com",
    "category": "billing",
    "subject": "Double charge",
    "message": "I was charged twice for my fade.",
}


def _post(client, body, **headers):
    return client.post("/support/requests", json=body, headers={"Origin": APP_ORIGIN, **headers})


def test_creates_support_request(client, mocker):
    send = mocker.patch("routes.support.send_email", return_value=(True, None))

    resp = _post(client, VALID)

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    msg = SupportMessage.query.one()
    assert body["supportRequestId"] == msg.id
    assert msg.user_id is None
    assert send.call_args.args[0] == "info@kutable.com"
    assert AuditLog.query.filter_by(action="SUPPORT_REQUEST_CREATE").count() == 1


def test_links_authenticated_user(client, make_user, auth_headers):
    user = make_user()
    resp = client.post("/support/requests", json=VALID, headers=auth_headers(user))
    assert resp.status_code == 201
    assert SupportMessage.query.one().user_id == user.id


def test_strips_markup(client):
    _post(client, {**VALID, "subject": "<b>Help</b> me", "message": "<script>x</script>hi"})
    msg = SupportMessage.query.one()
    assert msg.subject == "Help me"
    assert msg.message == "xhi"


@pytest.mark.parametrize("override", [
    {"name": ""},
    {"email": "not-an-email"},
    {"category": "spam"},
    {"subject": "x" * 201},
    {"message": "x" * 2001},
])
def test_rejects_invalid_input(client, override):
    resp = _post(client, {**VALID, **override})
    assert resp.status_code == 400
    assert SupportMessage.query.count() == 0


def test_email_outage_does_not_lose_request(client, mocker):
    mocker.patch("routes.support.send_email", return_value=(False, "Email not configured"))
    resp = _post(client, VALID)
    assert resp.status_code == 201
    assert SupportMessage.query.count() == 1
