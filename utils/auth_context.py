from functools import wraps
from flask import g

from security.session import get_session_from_request
from services.errors import AuthenticationError


def load_current_user():
    sess = get_session_from_request()
    g.session = sess
    g.user = sess.user if sess is not None else None


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            raise AuthenticationError("Authentication required")
        return fn(*args, **kwargs)
    return wrapper
