import logging
import time
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from typing import Optional

from flask import current_app, g
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.rate_limit_counter import RateLimitCounter
from utils.errors import RateLimited
from utils.request_meta import client_ip
from utils.upsert import dialect_insert

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    used: int
    remaining: int
    limit: int
    retry_after: int = 0
    identifier: Optional[str] = None
    degraded: bool = False  # counter store unavailable


def _window_start(now: int, window_seconds: int) -> int:
    return now - (now % window_seconds)


def consume(action: str, identifier: str, limit: int, window_seconds: int, now=None) -> RateLimitResult:
    """
    Atomically increments the (action, identifier, window) counter and reads it back
    in one statement, so concurrent instances never lose an update.

    On a store error the request is ALLOWED (fail-open) unless
    RATE_LIMIT_FAIL_OPEN is switched off. This is an availability-over-strictness
    choice awaiting product/security sign-off; do not change it silently.
    """
    now = int(time.time() if now is None else now)
    start = _window_start(now, window_seconds)
    retry_after = max(start + window_seconds - now, 1)

    table = RateLimitCounter.__table__
    stmt = dialect_insert(table).values(
        action=action,
        identifier=identifier,
        window_start=start,
        count=1,
        updated_at=datetime.utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["action", "identifier", "window_start"],
        set_={"count": table.c.count + 1, "updated_at": datetime.utcnow()},
    ).returning(table.c.count)

    try:
        used = int(db.session.execute(stmt).scalar_one())
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        fail_open = current_app.config.get("RATE_LIMIT_FAIL_OPEN", True)
        logger.error(
            "rate_limit_store_error",
            extra={"action": action, "identifier": identifier, "error": str(exc)},
        )
        if fail_open:
            return RateLimitResult(True, 0, limit, limit, identifier=identifier, degraded=True)
        return RateLimitResult(False, 0, 0, limit, retry_after=retry_after, identifier=identifier, degraded=True)

    allowed = used <= limit
    return RateLimitResult(
        allowed=allowed,
        used=used,
        remaining=max(limit - used, 0),
        limit=limit,
        retry_after=0 if allowed else retry_after,
        identifier=identifier,
    )


def prune_counters(older_than_seconds: int, now=None) -> int:
    now = int(time.time() if now is None else now)
    deleted = RateLimitCounter.query.filter(
        RateLimitCounter.window_start < now - older_than_seconds
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def rate_limited(action: str, per_principal: bool = False):
    """
    Usage: @rate_limited("refund", per_principal=True)
    Limits come from config RATE_LIMITS[action]. The identifier is the caller IP,
    or the authenticated user id when per_principal is set and a user is loaded.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            limit, window = current_app.config["RATE_LIMITS"][action]
            user = getattr(g, "user", None)
            identifier = f"user:{user.id}" if per_principal and user is not None else client_ip()

            result = consume(action, identifier, limit, window)
            g.rate_limit = result
            if not result.allowed:
                logger.warning("rate_limited", extra={"action": action, "identifier": identifier})
                raise RateLimited(result.retry_after, "Too many requests. Please try again later.")
            return fn(*args, **kwargs)
        return wrapper
    return decorator
