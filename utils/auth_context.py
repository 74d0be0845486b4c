from functools import wraps
from flask import g
from models import db
from models.user import User
from security.session import get_session_from_request
from utils.errors import Unauthorized
from utils.request_meta import bearer_token

def load_current_user():
    g.user = None
    g.session = None
    g.auth_attempted = bearer_token() is not None
    sess = get_session_from_request()
    if not sess:
        return
    g.session = sess
    g.user = db.session.get(User, sess.user_id)

def current_user():
    return getattr(g, "user", None)

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            if getattr(g, "auth_attempted", False):
                raise Unauthorized("Invalid or expired credential")
            raise Unauthorized("Missing Authorization")
        return fn(*args, **kwargs)
    return wrapper
