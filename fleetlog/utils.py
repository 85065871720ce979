import time
from functools import wraps

from flask import g, jsonify, session

from .errors import InvalidInput, NotFound
from .models import USERS, User
from .store import get_store


def now_ms():
    return int(time.time() * 1000)


def text_field(value, name):
    """Strip a free-text input; None counts as blank."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidInput(f"{name} must be text")
    return value.strip()


def load_user():
    uid = session.get("user_id")
    if not uid:
        return None
    try:
        return User.from_doc(get_store().get(USERS, uid))
    except NotFound:
        session.clear()
        return None


def current_user():
    """User loaded by ``login_required``/``head_driver_required`` for this request."""
    return g.get("user")


def login_required(f):
    @wraps(f)
    def _wrap(*args, **kwargs):
        g.user = load_user()
        if g.user is None:
            return jsonify({"ok": False, "error": "auth_required"}), 401
        return f(*args, **kwargs)
    return _wrap


def head_driver_required(f):
    @wraps(f)
    def _wrap(*args, **kwargs):
        g.user = load_user()
        if g.user is None:
            return jsonify({"ok": False, "error": "auth_required"}), 401
        if not g.user.is_head_driver:
            return jsonify({"ok": False, "error": "forbidden"}), 403
        return f(*args, **kwargs)
    return _wrap
