from flask import Blueprint, request, jsonify, session

from .accounts import authenticate
from .lifecycle import get_active_trip
from .store import get_store
from .utils import current_user, login_required

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/login")
def login():
    data = request.get_json() or {}
    pwd = data.get("password") or ""
    u = authenticate(get_store(), data.get("username"), pwd)
    if not u:
        return jsonify(ok=False, error="invalid_credentials"), 401
    session.clear()
    session["user_id"] = u.id
    return jsonify(ok=True, user=u.public())


@auth_bp.post("/logout")
def logout():
    session.clear()
    return jsonify(ok=True)


@auth_bp.get("/me")
@login_required
def me():
    u = current_user()
    t = get_active_trip(get_store(), u.id)
    return jsonify(
        ok=True,
        user=u.public(),
        active_trip=t.to_doc() if t else None,
    )
