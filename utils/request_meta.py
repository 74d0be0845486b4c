from flask import request

from utils.errors import ValidationError


def client_ip() -> str:
    """First hop of X-Forwarded-For, then the usual proxy headers, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in ("CF-Connecting-IP", "X-Real-IP"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    if request.remote_addr:
        return request.remote_addr
    return "ua:" + (request.headers.get("User-Agent") or "unknown")[:200]


def bearer_token():
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def request_payload() -> dict:
    """
    JSON body, or a form body with Stripe-style bracketed keys
    (metadata[bookingId]=...) folded into nested dicts.
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    if not request.form:
        return {}

    out = {}
    for key, value in request.form.items():
        base, sep, rest = key.partition("[")
        if sep and rest.endswith("]"):
            out.setdefault(base, {})[rest[:-1]] = value
        else:
            out[key] = value
    return out


def text_field(data: dict, key: str):
    """Stripped string value of an optional body field; non-strings are a 400."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() or None
