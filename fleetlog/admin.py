from flask import Blueprint, Response, request, jsonify

from . import accounts, lifecycle
from .errors import InvalidInput
from .models import DRIVER
from .reports import export_csv, query_trips
from .store import get_store
from .utils import current_user, head_driver_required

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

# JSON key -> revise_trip keyword
TRIP_EDIT_FIELDS = {
    "startTime": "start_time",
    "endTime": "end_time",
    "origin": "origin",
    "destination": "destination",
    "passengers": "passengers",
    "remarks": "remarks",
    "driverId": "driver_id",
    "vehicleId": "vehicle_id",
}


@admin_bp.before_request
@head_driver_required
def _guard():
    return None


# ================== users ==================

@admin_bp.get("/users")
def users():
    return jsonify(ok=True, items=[u.public() for u in accounts.list_users(get_store())])


@admin_bp.post("/users")
def add_user():
    data = request.get_json() or {}
    u = accounts.add_user(
        get_store(),
        data.get("name"),
        data.get("username"),
        data.get("password"),
        role=data.get("role") or DRIVER,
        phone=data.get("phone"),
    )
    return jsonify(ok=True, user=u.public()), 201


@admin_bp.put("/users/<user_id>")
def update_user(user_id):
    data = request.get_json() or {}
    u = accounts.update_user(
        get_store(), user_id,
        name=data.get("name"),
        username=data.get("username"),
        role=data.get("role"),
        phone=data.get("phone"),
        password=data.get("password"),
    )
    return jsonify(ok=True, user=u.public())


@admin_bp.delete("/users/<user_id>")
def delete_user(user_id):
    accounts.delete_user(get_store(), current_user(), user_id)
    return jsonify(ok=True)


# ================== vehicles ==================

@admin_bp.get("/vehicles")
def vehicles():
    return jsonify(ok=True, items=[v.to_doc() for v in accounts.list_vehicles(get_store())])


@admin_bp.post("/vehicles")
def add_vehicle():
    data = request.get_json() or {}
    v = accounts.add_vehicle(get_store(), data.get("plateNumber"), data.get("model"), data.get("type"))
    return jsonify(ok=True, vehicle=v.to_doc()), 201


@admin_bp.put("/vehicles/<vehicle_id>")
def update_vehicle(vehicle_id):
    data = request.get_json() or {}
    v = accounts.update_vehicle(
        get_store(), vehicle_id,
        plate_number=data.get("plateNumber"),
        model=data.get("model"),
        type=data.get("type"),
    )
    return jsonify(ok=True, vehicle=v.to_doc())


@admin_bp.delete("/vehicles/<vehicle_id>")
def delete_vehicle(vehicle_id):
    accounts.delete_vehicle(get_store(), vehicle_id)
    return jsonify(ok=True)


# ================== trips ==================

def _filtered_trips():
    args = request.args
    return query_trips(
        lifecycle.list_trips(get_store()),
        driver_id=args.get("driver") or None,
        date_filter=args.get("date", "all"),
        start_date=args.get("start"),
        end_date=args.get("end"),
        search=args.get("q", ""),
        sort_order=args.get("sort", "desc"),
    )


@admin_bp.get("/trips")
def trips():
    return jsonify(ok=True, items=[t.to_doc() for t in _filtered_trips()])


@admin_bp.put("/trips/<trip_id>")
def revise_trip(trip_id):
    data = request.get_json() or {}
    unknown = set(data) - set(TRIP_EDIT_FIELDS)
    if unknown:
        raise InvalidInput(f"cannot revise {', '.join(sorted(unknown))}")
    changes = {TRIP_EDIT_FIELDS[k]: v for k, v in data.items()}
    t = lifecycle.revise_trip(get_store(), trip_id, **changes)
    return jsonify(ok=True, trip=t.to_doc())


@admin_bp.delete("/trips/<trip_id>")
def delete_trip(trip_id):
    lifecycle.delete_trip(get_store(), trip_id)
    return jsonify(ok=True)


@admin_bp.get("/trips/export.csv")
def export_trips():
    store = get_store()
    vehicles_by_id = {v.id: v for v in accounts.list_vehicles(store)}
    body = export_csv(_filtered_trips(), vehicles_by_id)
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=trip_report.csv"},
    )
