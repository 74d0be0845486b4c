from security.cors import OriginPolicy
from tests.conftest import APP_ORIGIN


def test_policy_reflects_exact_origin():
    policy = OriginPolicy(["https://kutable.com"], [])
    assert policy.resolve("https://kutable.com") == "https://kutable.com"
    assert policy.resolve("https://evil.example") is None


def test_policy_suffix_match_requires_label_boundary():
    policy = OriginPolicy([], ["preview.netlify.app"])
    assert policy.resolve("https://pr-12.preview.netlify.app") == "https://pr-12.preview.netlify.app"
    assert policy.resolve("https://evilpreview.netlify.app") is None
    assert policy.resolve("ftp://pr-12.preview.netlify.app") is None


def test_policy_never_allows_null_origin():
    policy = OriginPolicy(["https://kutable.com"], [])
    assert policy.resolve("null") is None
    assert policy.resolve(None) is None


def test_production_origins_are_always_allowed(app):
    policy = OriginPolicy.from_config(app.config)
    assert policy.resolve("https://kutable.com") == "https://kutable.com"
    assert policy.resolve(APP_ORIGIN) == APP_ORIGIN


def test_preflight_answered_before_auth(client):
    resp = client.options("/refunds", headers={"Origin": APP_ORIGIN})
    assert resp.status_code == 204
    assert resp.headers["Access-Control-Allow-Origin"] == APP_ORIGIN
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]
    assert resp.headers["Vary"] == "Origin"


def test_disallowed_origin_rejected(client):
    resp = client.post("/refunds", json={}, headers={"Origin": "https://evil.example"})
    assert resp.status_code == 403
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"] == "Origin not allowed"
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_browser_endpoint_requires_origin(client):
    resp = client.post("/refunds", json={})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Origin required"


def test_machine_endpoint_without_origin_gets_no_wildcard(client, service_headers):
    resp = client.post("/checkout/reconcile", json={}, headers=service_headers)
    # passes the origin gate, fails validation
    assert resp.status_code == 400
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_error_responses_still_carry_cors_headers(client):
    resp = client.post("/refunds", json={}, headers={"Origin": APP_ORIGIN})
    assert resp.status_code == 401
    assert resp.headers["Access-Control-Allow-Origin"] == APP_ORIGIN
