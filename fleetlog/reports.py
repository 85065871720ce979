"""Filtering, sorting and export rows for the trip log. Nothing here writes."""
import csv
import io
from datetime import date, datetime, time, timedelta

from .errors import InvalidInput

DATE_FILTERS = ("all", "today", "week", "custom")
SORT_ORDERS = ("asc", "desc")

EXPORT_HEADER = ["Start", "End", "Driver", "Plate", "Type", "Route",
                 "Passengers", "Remarks", "Duration"]
TIME_FORMAT = "%d/%m/%Y %I:%M %p"


def _ms(dt: datetime) -> int:
    # naive datetimes are local time
    return int(dt.timestamp() * 1000)


def _as_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInput(f"bad date {value!r}, expected YYYY-MM-DD") from None


def date_bounds(date_filter, start_date=None, end_date=None, now=None):
    """(low, high) epoch-ms bounds for ``date_filter``; either may be None."""
    if date_filter not in DATE_FILTERS:
        raise InvalidInput(f"unknown date filter {date_filter!r}")
    today = datetime.combine((now or datetime.now()).date(), time.min)

    if date_filter == "today":
        return _ms(today), _ms(today + timedelta(days=1)) - 1
    if date_filter == "week":
        return _ms(today - timedelta(days=7)), None
    if date_filter == "custom":
        start, end = _as_date(start_date), _as_date(end_date)
        if start is None or end is None:
            return None, None
        return _ms(datetime.combine(start, time.min)), _ms(datetime.combine(end, time.max))
    return None, None


def _matches_text(trip, needle):
    for value in (trip.driver_name, trip.plate_number, trip.origin, trip.destination, trip.remarks):
        if value and needle in value.lower():
            return True
    return False


def query_trips(trips, driver_id=None, date_filter="all", start_date=None, end_date=None,
                search="", sort_order="desc", now=None):
    if sort_order not in SORT_ORDERS:
        raise InvalidInput(f"unknown sort order {sort_order!r}")
    low, high = date_bounds(date_filter, start_date, end_date, now)
    needle = (search or "").strip().lower()

    result = []
    for trip in trips:
        if driver_id and driver_id != "all" and trip.driver_id != driver_id:
            continue
        if low is not None and trip.start_time < low:
            continue
        if high is not None and trip.start_time > high:
            continue
        if needle and not _matches_text(trip, needle):
            continue
        result.append(trip)

    # sorted() is stable, equal start times keep their input order
    if sort_order == "asc":
        return sorted(result, key=lambda t: t.start_time)
    return sorted(result, key=lambda t: -t.start_time)


def format_duration(minutes):
    if minutes is None:
        return "Active"
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours} h {mins} min" if mins else f"{hours} h"
    return f"{mins} min"


def _fmt_time(ms):
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime(TIME_FORMAT)


def export_rows(trips, vehicles_by_id):
    rows = [list(EXPORT_HEADER)]
    for t in trips:
        vehicle = vehicles_by_id.get(t.vehicle_id)
        vehicle_type = vehicle.type if vehicle else (t.vehicle_model or "-")
        route = f"{t.origin} > {t.destination}" if t.destination else f"{t.origin} > [Active]"
        rows.append([
            _fmt_time(t.start_time),
            _fmt_time(t.end_time),
            t.driver_name,
            t.plate_number,
            vehicle_type,
            route,
            t.passengers or "-",
            t.remarks or "-",
            format_duration(t.duration_minutes),
        ])
    return rows


def export_csv(trips, vehicles_by_id):
    buf = io.StringIO()
    csv.writer(buf).writerows(export_rows(trips, vehicles_by_id))
    return buf.getvalue()
