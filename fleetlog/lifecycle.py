"""
Trip lifecycle: thumb-in starts an ACTIVE trip, thumb-out completes it.

A driver holds at most one ACTIVE trip. ``start_trip`` checks for one
before inserting; the check and the insert are two separate store calls,
so two sessions of the same driver starting at the same instant can
both succeed.
"""
import logging
import math

from .errors import ConflictActiveTrip, InvalidInput
from .models import ACTIVE, COMPLETED, TRIPS, USERS, VEHICLES, Trip, User, Vehicle
from .utils import now_ms, text_field

log = logging.getLogger(__name__)

REVISABLE = {
    "start_time", "end_time", "origin", "destination",
    "passengers", "remarks", "driver_id", "vehicle_id",
}


def compute_duration_minutes(start_ms, end_ms):
    # halves round up, never below one minute
    return max(1, math.floor((end_ms - start_ms) / 60000 + 0.5))


def _epoch_ms(value, name):
    # bool is an int subclass but never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{name} must be epoch milliseconds")
    return int(value)


def get_active_trip(store, driver_id):
    found = store.find(TRIPS, driverId=driver_id, status=ACTIVE)
    return Trip.from_doc(found[0]) if found else None


def get_trip(store, trip_id):
    return Trip.from_doc(store.get(TRIPS, trip_id))


def list_trips(store):
    return [Trip.from_doc(d) for d in store.list(TRIPS)]


def start_trip(store, driver: User, vehicle: Vehicle, origin: str, passengers: str = "") -> Trip:
    origin = text_field(origin, "origin")
    passengers = text_field(passengers, "passengers")
    if vehicle is None or not origin:
        raise InvalidInput("select a vehicle and enter the starting location")
    if get_active_trip(store, driver.id) is not None:
        raise ConflictActiveTrip(f"driver {driver.username} already has an active trip")

    trip = Trip(
        driver_id=driver.id,
        driver_name=driver.name,
        vehicle_id=vehicle.id,
        vehicle_model=vehicle.model,
        plate_number=vehicle.plate_number,
        origin=origin,
        destination="",
        passengers=passengers,
        start_time=now_ms(),
        status=ACTIVE,
    )
    trip.id = store.create(TRIPS, trip.to_doc(with_id=False))
    log.info("Trip %s started by %s with %s", trip.id, driver.username, vehicle.plate_number)
    return trip


def end_trip(store, trip_id, destination, remarks=None) -> Trip:
    destination = text_field(destination, "destination")
    remarks = text_field(remarks, "remarks")
    if not destination:
        raise InvalidInput("enter the destination")
    trip = get_trip(store, trip_id)
    if trip.status != ACTIVE:
        raise InvalidInput(f"trip {trip_id} is not active")

    end_time = now_ms()
    changes = {
        "destination": destination,
        "remarks": remarks or None,
        "end_time": end_time,
        "duration_minutes": compute_duration_minutes(trip.start_time, end_time),
        "status": COMPLETED,
    }
    for name, value in changes.items():
        setattr(trip, name, value)
    # one write for every completion field
    store.update(TRIPS, trip_id, trip.to_doc(with_id=False))
    log.info("Trip %s completed after %s min", trip_id, trip.duration_minutes)
    return trip


def revise_trip(store, trip_id, **changes) -> Trip:
    """
    Admin edit of any trip, bypassing the thumb-in/thumb-out checks.

    Passing ``end_time=None`` clears the end time and puts the trip back
    to ACTIVE. The one-active-trip rule is not re-checked in that case.
    """
    unknown = set(changes) - REVISABLE
    if unknown:
        raise InvalidInput(f"cannot revise {', '.join(sorted(unknown))}")

    start_time = changes.get("start_time")
    if start_time is not None:
        start_time = _epoch_ms(start_time, "start_time")
    end_time = changes.get("end_time")
    if end_time is not None:
        end_time = _epoch_ms(end_time, "end_time")
    text = {}
    for name in ("origin", "destination", "passengers", "remarks"):
        if name in changes:
            text[name] = text_field(changes[name], name)

    trip = get_trip(store, trip_id)

    driver_id = changes.pop("driver_id", None)
    if driver_id and driver_id != trip.driver_id:
        driver = User.from_doc(store.get(USERS, driver_id))
        trip.driver_id, trip.driver_name = driver.id, driver.name
    vehicle_id = changes.pop("vehicle_id", None)
    if vehicle_id and vehicle_id != trip.vehicle_id:
        vehicle = Vehicle.from_doc(store.get(VEHICLES, vehicle_id))
        trip.vehicle_id = vehicle.id
        trip.vehicle_model, trip.plate_number = vehicle.model, vehicle.plate_number

    for name, value in text.items():
        setattr(trip, name, value)
    if "remarks" in text:
        trip.remarks = text["remarks"] or None
    if start_time is not None:
        trip.start_time = start_time
    if "end_time" in changes:
        trip.end_time = end_time

    if trip.end_time is not None:
        trip.duration_minutes = compute_duration_minutes(trip.start_time, trip.end_time)
        trip.status = COMPLETED
    else:
        # destination is left as is, so a reopened trip can be ACTIVE with a destination
        trip.duration_minutes = None
        trip.status = ACTIVE

    store.update(TRIPS, trip_id, trip.to_doc(with_id=False), replace=True)
    log.info("Trip %s revised (%s)", trip_id, trip.status)
    return trip


def delete_trip(store, trip_id):
    store.delete(TRIPS, trip_id)
