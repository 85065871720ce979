from flask import Blueprint, jsonify

from .store import get_store

main_bp = Blueprint("main", __name__)


@main_bp.get("/")
def index():
    return status()


@main_bp.get("/api/status")
def status():
    mode = get_store().mode
    # local mode is the "demo" banner: data only lives on this machine
    return jsonify(ok=True, mode=mode, demo=mode == "local")
