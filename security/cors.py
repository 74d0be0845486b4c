from functools import wraps
from urllib.parse import urlsplit

from flask import current_app, g, request

from utils.errors import Forbidden

ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type, stripe-signature"


class OriginPolicy:
    """Exact allowlist plus host-suffix matching (e.g. preview deploys under .netlify.app)."""

    def __init__(self, exact, suffixes=(), allow_no_origin=True):
        self.exact = set(exact)
        self.suffixes = [s.lstrip(".") for s in suffixes if s.strip(".")]
        self.allow_no_origin = allow_no_origin

    @classmethod
    def from_config(cls, config):
        exact = list(config.get("ALLOWED_ORIGINS") or []) + list(config.get("PRODUCTION_ORIGINS") or [])
        return cls(
            exact=exact,
            suffixes=config.get("ALLOWED_ORIGIN_SUFFIXES") or [],
            allow_no_origin=config.get("ALLOW_NO_ORIGIN", True),
        )

    def resolve(self, origin):
        """Returns the exact origin to reflect, or None if it is not allowed."""
        if not origin or origin == "null":
            return None
        if origin in self.exact:
            return origin

        parts = urlsplit(origin)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            return None
        host = parts.hostname
        for suffix in self.suffixes:
            if host == suffix or host.endswith("." + suffix):
                return f"{parts.scheme}://{parts.netloc}"
        return None


def base_headers(methods):
    return {
        "Access-Control-Allow-Methods": ", ".join(list(methods) + ["OPTIONS"]),
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Vary": "Origin",
    }


def check_origin(methods, require_browser_origin=True):
    """
    Returns the CORS headers for this request or raises Forbidden.
    A wildcard is never emitted; machine callers with no Origin get no
    Allow-Origin header at all.
    """
    policy = OriginPolicy.from_config(current_app.config)
    headers = base_headers(methods)
    origin = request.headers.get("Origin")

    if not origin or origin == "null":
        if not require_browser_origin and policy.allow_no_origin:
            return headers
        raise Forbidden("Origin required")

    allowed = policy.resolve(origin)
    if not allowed:
        raise Forbidden("Origin not allowed", origin=origin)

    headers["Access-Control-Allow-Origin"] = allowed
    return headers


def cors_protected(methods=("POST",), require_browser_origin=True):
    """
    Outermost decorator on every public view. Answers OPTIONS before any
    auth, rate limiting or business logic runs.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.cors_headers = check_origin(methods, require_browser_origin)
            if request.method == "OPTIONS":
                return "", 204
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def apply_cors_headers(resp):
    for key, value in (getattr(g, "cors_headers", None) or {}).items():
        resp.headers[key] = value
    return resp
