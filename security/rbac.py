import hmac
import logging
from dataclasses import dataclass
from functools import wraps
from flask import current_app, g

from utils.auth_context import current_user, login_required
from utils.errors import Forbidden, InternalError, Unauthorized
from utils.request_meta import bearer_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminPrincipal:
    """Request-scoped authorization fact; never persisted."""
    id: int
    email: str


def admin_allowlists(config):
    ids = {str(v) for v in (config.get("ADMIN_UIDS") or [])}
    emails = {v.lower() for v in (config.get("ADMIN_EMAILS") or [])}
    return ids, emails


def is_admin(user, ids, emails) -> bool:
    if str(user.id) in ids:
        return True
    return bool(user.email and user.email_verified and user.email.lower() in emails)


def require_admin(fn):
    """
    Usage: @require_admin
    An empty allowlist is a deployment error: refuse with 500 instead of
    letting nobody (or everybody) in.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        ids, emails = admin_allowlists(current_app.config)
        if not ids and not emails:
            logger.error("admin_allowlist_missing")
            raise InternalError("Admin access is not configured")

        @login_required
        def _guarded():
            user = current_user()
            if not is_admin(user, ids, emails):
                raise Forbidden("Forbidden")
            g.admin_principal = AdminPrincipal(id=user.id, email=user.email)
            return fn(*args, **kwargs)

        return _guarded()
    return wrapper


def require_service_key(fn):
    """Scheduler and backfill callers authenticate with the shared SERVICE_API_KEY."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("SERVICE_API_KEY")
        if not expected:
            raise InternalError("Service credential is not configured")
        supplied = bearer_token()
        if not supplied:
            raise Unauthorized("Missing Authorization")
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            raise Unauthorized("Invalid service credential")
        return fn(*args, **kwargs)
    return wrapper
