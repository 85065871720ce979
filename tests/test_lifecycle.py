import pytest

from fleetlog.errors import ConflictActiveTrip, InvalidInput, NotFound
from fleetlog.lifecycle import (
    compute_duration_minutes,
    end_trip,
    get_active_trip,
    get_trip,
    list_trips,
    revise_trip,
    start_trip,
)
from fleetlog.models import ACTIVE, COMPLETED


@pytest.mark.parametrize("elapsed_ms, minutes", [
    (0, 1),
    (29_999, 1),
    (90_000, 2),
    (47 * 60_000, 47),
    (47 * 60_000 + 29_000, 47),
    (47 * 60_000 + 30_000, 48),
    (-5 * 60_000, 1),
])
def test_duration_rounds_with_one_minute_floor(elapsed_ms, minutes):
    assert compute_duration_minutes(1_000, 1_000 + elapsed_ms) == minutes


def test_start_then_get_active(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot", "Ahmad, Siti")
    active = get_active_trip(store, driver.id)
    assert active.id == trip.id
    assert active.status == ACTIVE
    assert active.destination == ""
    assert active.origin == "Depot"
    assert active.start_time == clock.now
    assert active.driver_name == "Ali Bakar"
    assert active.plate_number == "WXY 1234"
    assert active.vehicle_model == "Toyota Hiace"
    assert active.end_time is None and active.duration_minutes is None


def test_start_requires_origin_and_vehicle(store, driver, vehicle):
    with pytest.raises(InvalidInput):
        start_trip(store, driver, vehicle, "   ")
    with pytest.raises(InvalidInput):
        start_trip(store, driver, None, "Depot")
    assert list_trips(store) == []


def test_second_start_conflicts(store, driver, vehicle, clock):
    start_trip(store, driver, vehicle, "Depot")
    with pytest.raises(ConflictActiveTrip):
        start_trip(store, driver, vehicle, "Elsewhere")
    assert len(list_trips(store)) == 1


def test_other_drivers_are_independent(store, driver, admin, vehicle, clock):
    start_trip(store, driver, vehicle, "Depot")
    start_trip(store, admin, vehicle, "HQ")
    assert get_active_trip(store, admin.id).origin == "HQ"


def test_forty_seven_minute_trip(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    clock.advance(minutes=47)
    end_trip(store, trip.id, "Site A")

    done = get_trip(store, trip.id)
    assert done.status == COMPLETED
    assert done.duration_minutes == 47
    assert done.destination == "Site A"
    assert done.end_time == clock.now
    assert get_active_trip(store, driver.id) is None


def test_instant_trip_counts_one_minute(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    clock.advance(seconds=10)
    assert end_trip(store, trip.id, "Gate").duration_minutes == 1


def test_end_keeps_remarks_only_when_given(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    end_trip(store, trip.id, "Site A", "  ")
    assert get_trip(store, trip.id).remarks is None
    assert "remarks" not in store.get("trips", trip.id)

    trip = start_trip(store, driver, vehicle, "Site A")
    end_trip(store, trip.id, "Depot", " tyre check ")
    assert get_trip(store, trip.id).remarks == "tyre check"


def test_end_requires_destination(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    with pytest.raises(InvalidInput):
        end_trip(store, trip.id, "")
    assert get_trip(store, trip.id).status == ACTIVE
    assert get_active_trip(store, driver.id).id == trip.id


def test_end_unknown_or_completed_trip(store, driver, vehicle, clock):
    with pytest.raises(NotFound):
        end_trip(store, "missing", "Site A")
    trip = start_trip(store, driver, vehicle, "Depot")
    end_trip(store, trip.id, "Site A")
    with pytest.raises(InvalidInput):
        end_trip(store, trip.id, "Site B")
    assert get_trip(store, trip.id).destination == "Site A"


def test_completed_trips_have_consistent_duration(store, driver, vehicle, clock):
    for minutes in (1, 15, 61, 180):
        trip = start_trip(store, driver, vehicle, "Depot")
        clock.advance(minutes=minutes, seconds=20)
        end_trip(store, trip.id, "Yard")
    for t in list_trips(store):
        assert t.status == COMPLETED
        assert t.duration_minutes == compute_duration_minutes(t.start_time, t.end_time)


def test_revise_end_time_recomputes_duration(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    revised = revise_trip(store, trip.id, end_time=trip.start_time + 95 * 60_000, destination="Port")
    assert revised.status == COMPLETED
    assert revised.duration_minutes == 95
    assert get_trip(store, trip.id).destination == "Port"


def test_revise_clearing_end_time_reopens_trip(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    clock.advance(minutes=30)
    end_trip(store, trip.id, "Site A")

    revise_trip(store, trip.id, end_time=None)
    doc = store.get("trips", trip.id)
    assert doc["status"] == ACTIVE
    assert "endTime" not in doc and "durationMinutes" not in doc
    assert get_active_trip(store, driver.id).id == trip.id


def test_revise_reopen_does_not_check_conflict(store, driver, vehicle, clock):
    first = start_trip(store, driver, vehicle, "Depot")
    end_trip(store, first.id, "Site A")
    start_trip(store, driver, vehicle, "Site A")

    revise_trip(store, first.id, end_time=None)
    active = store.find("trips", driverId=driver.id, status=ACTIVE)
    assert len(active) == 2


def test_revise_driver_refreshes_snapshot(store, driver, admin, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    revised = revise_trip(store, trip.id, driver_id=admin.id)
    assert revised.driver_id == admin.id
    assert revised.driver_name == admin.name


def test_revise_rejects_unknown_fields(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    with pytest.raises(InvalidInput):
        revise_trip(store, trip.id, status="COMPLETED")


def test_revise_rejects_non_numeric_times(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    with pytest.raises(InvalidInput):
        revise_trip(store, trip.id, end_time="2026-10-19T10:00")
    with pytest.raises(InvalidInput):
        revise_trip(store, trip.id, start_time=False)
    assert get_trip(store, trip.id).status == ACTIVE


def test_start_rejects_non_text_fields(store, driver, vehicle, clock):
    with pytest.raises(InvalidInput):
        start_trip(store, driver, vehicle, 5)
    with pytest.raises(InvalidInput):
        start_trip(store, driver, vehicle, "Depot", passengers=3)
    assert get_active_trip(store, driver.id) is None


def test_reopened_trip_keeps_destination(store, driver, vehicle, clock):
    trip = start_trip(store, driver, vehicle, "Depot")
    end_trip(store, trip.id, "Site A")
    reopened = revise_trip(store, trip.id, end_time=None)
    assert reopened.status == ACTIVE
    assert reopened.destination == "Site A"
