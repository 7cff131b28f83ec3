from decimal import Decimal

from flask import Blueprint, request, jsonify, current_app, g

from security.rbac import can_manage_court
from services import slots as slot_service
from services.slot_generator import MAX_SLOT_MINUTES
from services.store import SqlAlchemyStore
from utils.audit import log_event
from utils.auth_context import login_required
from utils.parsing import parse_int, parse_iso_date

time_slots_bp = Blueprint("time_slots", __name__)


def _authorize(court) -> bool:
    return can_manage_court(g.user, court)


def _flag(name):
    # "true" / "false" query filters; anything else means "don't filter"
    raw = (request.args.get(name) or "").strip().lower()
    if raw in ("true", "1", "yes"):
        return True
    if raw in ("false", "0", "no"):
        return False
    return None


def _slot_payload(slot, court):
    price = slot.price if slot.price is not None else court.price_per_hour
    return {
        "id": slot.id,
        "court_id": slot.court_id,
        "start_time": slot.start_time.isoformat(),
        "end_time": slot.end_time.isoformat(),
        "price": float(price),
        "custom_price": float(slot.price) if slot.price is not None else None,
        "is_maintenance_blocked": slot.is_maintenance_blocked,
        "maintenance_reason": slot.maintenance_reason,
    }


# ---------- OWNER/ADMIN: per-court slot management ----------
@time_slots_bp.get("/courts/<int:court_id>/time-slots")
@login_required
def list_court_slots(court_id: int):
    date_str = request.args.get("date")
    day = parse_iso_date(date_str, "date") if date_str else None

    views = slot_service.list_court_slots(
        SqlAlchemyStore(),
        court_id,
        _authorize,
        day=day,
        maintenance=_flag("maintenance"),
        booked=_flag("booked"),
    )
    return jsonify([v.to_dict() for v in views]), 200


@time_slots_bp.post("/courts/<int:court_id>/time-slots")
@login_required
def create_slot(court_id: int):
    store = SqlAlchemyStore()
    slot = slot_service.create_slot(store, court_id, request.get_json(silent=True) or {}, _authorize)

    log_event("SLOT_CREATE", user_id=g.user.id, entity="time_slot", entity_id=slot.id)
    return jsonify(_slot_payload(slot, store.get_court(court_id))), 201


@time_slots_bp.post("/courts/<int:court_id>/time-slots/generate")
@login_required
def generate_slots(court_id: int):
    data = request.get_json(silent=True) or {}
    start_date = parse_iso_date(data.get("start_date"), "start_date")
    end_date = parse_iso_date(data.get("end_date") or data.get("start_date"), "end_date")
    duration = parse_int(data.get("slot_duration", 60), "slot_duration", minimum=1, maximum=MAX_SLOT_MINUTES)

    result = slot_service.generate_slots(
        SqlAlchemyStore(),
        court_id,
        start_date,
        end_date,
        _authorize,
        duration_minutes=duration,
        peak_hours=current_app.config["PEAK_HOURS"],
        peak_multiplier=Decimal(str(current_app.config["PEAK_MULTIPLIER"])),
        max_days=current_app.config["GENERATION_MAX_DAYS"],
    )

    log_event(
        "SLOTS_GENERATE",
        user_id=g.user.id,
        entity="court",
        entity_id=court_id,
        metadata={"start_date": start_date.isoformat(), "end_date": end_date.isoformat(), **result.to_dict()},
    )
    return jsonify(message=f"Created {result.created} time slots", **result.to_dict()), 201


@time_slots_bp.post("/courts/<int:court_id>/time-slots/generate-advanced")
@login_required
def generate_slots_advanced(court_id: int):
    data = request.get_json(silent=True) or {}
    result = slot_service.generate_slots_advanced(
        SqlAlchemyStore(),
        court_id,
        data,
        _authorize,
        max_days=current_app.config["GENERATION_MAX_DAYS"],
    )

    log_event(
        "SLOTS_GENERATE_ADVANCED",
        user_id=g.user.id,
        entity="court",
        entity_id=court_id,
        metadata={"days_of_week": data.get("days_of_week"), **result.to_dict()},
    )
    return jsonify(message=f"Created {result.created} time slots", **result.to_dict()), 201


# ---------- single slot ----------
@time_slots_bp.get("/time-slots/<int:slot_id>")
def get_slot(slot_id: int):
    view = slot_service.get_slot_detail(SqlAlchemyStore(), slot_id)
    return jsonify(view.to_dict()), 200


@time_slots_bp.patch("/time-slots/<int:slot_id>")
@login_required
def update_slot(slot_id: int):
    store = SqlAlchemyStore()
    data = request.get_json(silent=True) or {}
    slot = slot_service.update_slot(store, slot_id, data, _authorize)

    log_event("SLOT_UPDATE", user_id=g.user.id, entity="time_slot", entity_id=slot.id, metadata={"fields": sorted(data)})
    return jsonify(_slot_payload(slot, store.get_court(slot.court_id))), 200


@time_slots_bp.delete("/time-slots/<int:slot_id>")
@login_required
def delete_slot(slot_id: int):
    slot_service.delete_slot(SqlAlchemyStore(), slot_id, _authorize)

    log_event("SLOT_DELETE", user_id=g.user.id, entity="time_slot", entity_id=slot_id)
    return jsonify(message="Time slot deleted"), 200
