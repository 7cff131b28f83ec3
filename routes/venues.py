from datetime import timedelta

from flask import Blueprint, request, jsonify

from models.enums import FacilityStatus
from services.availability import resolve_at, summarize, venue_day_views
from services.errors import NotFoundError, ValidationError
from services.store import SqlAlchemyStore
from services.window_selector import group_by_time, pick_court_for_time, select_window
from utils.clock import venue_now
from utils.parsing import parse_int, parse_iso_date, parse_iso_datetime
from utils.serializers import court_to_dict

venues_bp = Blueprint("venues", __name__, url_prefix="/venues")

MAX_BOOKING_HOURS = 8
MAX_SUMMARY_DAYS = 31


def _public_facility(store, facility_id: int):
    facility = store.get_facility(facility_id)
    if facility is None or not facility.is_active or facility.status != FacilityStatus.APPROVED:
        raise NotFoundError("Venue not found")
    return facility


def _hours_arg(value):
    return parse_int(value if value is not None else 1, "hours", minimum=1, maximum=MAX_BOOKING_HOURS)


@venues_bp.get("/<int:facility_id>/time-slots")
def venue_time_slots(facility_id: int):
    store = SqlAlchemyStore()
    _public_facility(store, facility_id)

    now = venue_now()
    day = parse_iso_date(request.args["date"], "date") if request.args.get("date") else now.date()
    hours = _hours_arg(request.args.get("hours"))

    views = venue_day_views(store, facility_id, day, now=now)
    return jsonify(
        date=day.isoformat(),
        hours=hours,
        courts=[court_to_dict(c) for c in store.list_active_courts(facility_id)],
        slots=[v.to_dict() for v in views],
        times=[group.to_dict() for group in group_by_time(views, hours)],
        summary=summarize(views),
    ), 200


@venues_bp.get("/<int:facility_id>/availability")
def check_availability(facility_id: int):
    store = SqlAlchemyStore()
    _public_facility(store, facility_id)

    court_id = parse_int(request.args.get("court_id"), "court_id", minimum=1)
    start_time = parse_iso_datetime(request.args.get("start_time"), "start_time")

    court = store.get_court(court_id)
    if court is None or court.facility_id != facility_id:
        raise NotFoundError("Court not found")

    return jsonify(
        court_id=court_id,
        start_time=start_time.isoformat(),
        available=resolve_at(store, court_id, start_time),
    ), 200


@venues_bp.get("/<int:facility_id>/availability-summary")
def availability_summary(facility_id: int):
    store = SqlAlchemyStore()
    _public_facility(store, facility_id)

    now = venue_now()
    start_date = parse_iso_date(request.args.get("start_date") or now.date().isoformat(), "start_date")
    end_date = parse_iso_date(request.args.get("end_date") or start_date.isoformat(), "end_date")
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")
    if (end_date - start_date).days + 1 > MAX_SUMMARY_DAYS:
        raise ValidationError(f"Summary range is limited to {MAX_SUMMARY_DAYS} days", field="end_date")

    days = []
    day = start_date
    while day <= end_date:
        summary = summarize(venue_day_views(store, facility_id, day))
        days.append({"date": day.isoformat(), **summary})
        day += timedelta(days=1)
    return jsonify(days), 200


@venues_bp.post("/<int:facility_id>/window")
def preview_window(facility_id: int):
    """Dry-run of the booking dialog: which slots an origin + duration would take."""
    store = SqlAlchemyStore()
    _public_facility(store, facility_id)

    data = request.get_json(silent=True) or {}
    hours = _hours_arg(data.get("hours"))

    now = venue_now()
    if data.get("time_slot_id") is not None:
        slot = store.get_slot(parse_int(data.get("time_slot_id"), "time_slot_id", minimum=1))
        court = store.get_court(slot.court_id) if slot else None
        if court is None or court.facility_id != facility_id:
            raise NotFoundError("Time slot not found")
        views = venue_day_views(store, facility_id, slot.start_time.date(), now=now)
        window = select_window(views, slot.id, hours)
    elif data.get("start_time"):
        start_time = parse_iso_datetime(data.get("start_time"), "start_time")
        views = venue_day_views(store, facility_id, start_time.date(), now=now)
        window = pick_court_for_time(views, start_time, hours)
    else:
        raise ValidationError("time_slot_id or start_time is required")

    return jsonify(
        hours=hours,
        selectable=window is not None,
        window=window.to_dict() if window else None,
    ), 200
