from flask import Blueprint, request, jsonify

from .accounts import get_vehicle, list_vehicles
from .errors import InvalidInput, NotFound
from .lifecycle import end_trip as finish_trip, get_active_trip, get_trip, start_trip as begin_trip
from .store import get_store
from .utils import current_user, login_required

trips_bp = Blueprint("trips", __name__, url_prefix="/api")


@trips_bp.get("/vehicles")
@login_required
def vehicles():
    return jsonify(ok=True, items=[v.to_doc() for v in list_vehicles(get_store())])


@trips_bp.get("/active_trip")
@login_required
def active_trip():
    t = get_active_trip(get_store(), current_user().id)
    return jsonify(ok=True, active_trip=t.to_doc() if t else None)


@trips_bp.post("/start_trip")
@login_required
def start_trip():
    data = request.get_json() or {}
    store = get_store()
    vehicle = None
    vid = data.get("vehicle_id")
    if vid:
        try:
            vehicle = get_vehicle(store, vid)
        except NotFound:
            return jsonify(ok=False, error="not_found"), 404

    trip = begin_trip(store, current_user(), vehicle, data.get("origin"), data.get("passengers"))
    return jsonify(ok=True, trip=trip.to_doc()), 201


@trips_bp.post("/end_trip")
@login_required
def end_trip():
    data = request.get_json() or {}
    store = get_store()
    tid = data.get("trip_id")
    if not tid:
        raise InvalidInput("trip_id is required")

    trip = get_trip(store, tid)
    if trip.driver_id != current_user().id:
        return jsonify(ok=False, error="trip_not_found_or_not_active"), 404

    trip = finish_trip(store, tid, data.get("destination"), data.get("remarks"))
    return jsonify(ok=True, trip=trip.to_doc())
