from datetime import datetime

from flask import Blueprint, request, jsonify, g

from models import db
from models.court import Court
from models.enums import FacilityStatus, RoleName, SportType, parse_enum
from models.facility import Facility
from security.rbac import can_manage_court, can_manage_facility, require_roles
from services.errors import ValidationError
from utils.audit import log_event
from utils.auth_context import login_required
from utils.parsing import parse_int, parse_money
from utils.seed import get_role
from utils.serializers import court_to_dict, facility_to_dict

facilities_bp = Blueprint("facilities", __name__, url_prefix="/facilities")


def _normalize(text: str) -> str:
    return " ".join((text or "").split()).lower()


def _court_fields(data: dict, court=None) -> dict:
    """Validated court columns from a create (court=None) or partial update payload."""
    fields = {}

    if court is None or "name" in data:
        name = (data.get("name") or "").strip()
        if not name or len(name) > 120:
            raise ValidationError("name is required (max 120 characters)", field="name")
        fields["name"] = name

    if court is None or "sport_type" in data:
        sport = parse_enum(SportType, data.get("sport_type"))
        if sport is None:
            raise ValidationError(
                "sport_type must be one of " + ", ".join(s.value for s in SportType),
                field="sport_type",
            )
        fields["sport_type"] = sport

    if court is None or "price_per_hour" in data:
        fields["price_per_hour"] = parse_money(data.get("price_per_hour"), "price_per_hour", required=True)

    start = court.operating_start_hour if court is not None else 6
    end = court.operating_end_hour if court is not None else 22
    if "operating_start_hour" in data:
        start = fields["operating_start_hour"] = parse_int(data.get("operating_start_hour"), "operating_start_hour", 0, 23)
    if "operating_end_hour" in data:
        end = fields["operating_end_hour"] = parse_int(data.get("operating_end_hour"), "operating_end_hour", 1, 23)
    if end <= start:
        raise ValidationError("operating_end_hour must be after operating_start_hour", field="operating_end_hour")
    if court is None:
        fields.setdefault("operating_start_hour", start)
        fields.setdefault("operating_end_hour", end)
    return fields


def _facility_or_404(facility_id: int):
    facility = db.session.get(Facility, facility_id)
    if not facility:
        return None, (jsonify(error="Facility not found"), 404)
    return facility, None


def _court_or_404(court_id: int):
    court = db.session.get(Court, court_id)
    if not court:
        return None, (jsonify(error="Court not found"), 404)
    return court, None


@facilities_bp.post("")
@login_required
def register_facility():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    location = (data.get("location") or "").strip()
    description = (data.get("description") or "").strip() or None

    if not name or not location:
        return jsonify(error="name and location are required"), 400

    name_norm = _normalize(name)
    location_norm = _normalize(location)
    duplicate = Facility.query.filter_by(name_normalized=name_norm, location_normalized=location_norm).first()
    if duplicate:
        return jsonify(error="Facility already exists"), 409

    facility = Facility(
        name=name,
        location=location,
        description=description,
        name_normalized=name_norm,
        location_normalized=location_norm,
        owner_user_id=g.user.id,
        status=FacilityStatus.PENDING,
    )
    db.session.add(facility)
    db.session.commit()

    log_event("FACILITY_REGISTER_SUBMIT", user_id=g.user.id, entity="facility", entity_id=facility.id)
    return jsonify(id=facility.id, status=facility.status.value), 201


@facilities_bp.get("")
def list_public_facilities():
    name_query = (request.args.get("name") or "").strip()
    location_query = (request.args.get("location") or "").strip()
    sport = parse_enum(SportType, request.args.get("sport_type"))

    q = Facility.query.filter(
        Facility.is_active.is_(True),
        Facility.status == FacilityStatus.APPROVED,
    )
    if name_query:
        q = q.filter(Facility.name.ilike(f"%{name_query}%"))
    if location_query:
        q = q.filter(Facility.location.ilike(f"%{location_query}%"))

    rows = []
    for facility in q.order_by(Facility.created_at.desc()).limit(200).all():
        courts = [c for c in facility.courts if c.is_active]
        if sport is not None:
            courts = [c for c in courts if c.sport_type == sport]
            if not courts:
                continue
        rows.append(facility_to_dict(facility, courts=courts))
    return jsonify(rows), 200


@facilities_bp.get("/me")
@login_required
def my_facilities():
    return jsonify([facility_to_dict(f, courts=f.courts) for f in g.user.facilities]), 200


@facilities_bp.post("/<int:facility_id>/verify")
@require_roles("ADMIN")
def verify_facility(facility_id: int):
    data = request.get_json(silent=True) or {}
    status = parse_enum(FacilityStatus, data.get("status"))
    reason = (data.get("reason") or "").strip() or None

    if status not in (FacilityStatus.APPROVED, FacilityStatus.REJECTED):
        return jsonify(error="status must be APPROVED or REJECTED"), 400
    if status is FacilityStatus.REJECTED and not reason:
        return jsonify(error="reason is required when rejecting"), 400

    facility, missing = _facility_or_404(facility_id)
    if missing:
        return missing

    facility.status = status
    facility.verified_by = g.user.id
    facility.verified_at = datetime.utcnow()
    facility.rejected_reason = reason if status is FacilityStatus.REJECTED else None

    if status is FacilityStatus.APPROVED:
        owner = facility.owner
        owner_role = get_role(RoleName.OWNER)
        if owner is not None and owner_role is not None and owner_role not in owner.roles:
            owner.roles.append(owner_role)

    db.session.commit()
    log_event(
        "FACILITY_VERIFY",
        user_id=g.user.id,
        entity="facility",
        entity_id=facility.id,
        metadata={"status": status.value, "reason": reason},
    )
    return jsonify(id=facility.id, status=facility.status.value), 200


@facilities_bp.post("/<int:facility_id>/courts")
@login_required
def create_court(facility_id: int):
    facility, missing = _facility_or_404(facility_id)
    if missing:
        return missing
    if not can_manage_facility(g.user, facility):
        return jsonify(error="Forbidden"), 403

    fields = _court_fields(request.get_json(silent=True) or {})
    court = Court(facility_id=facility.id, **fields)
    db.session.add(court)
    db.session.commit()

    log_event("COURT_CREATE", user_id=g.user.id, entity="court", entity_id=court.id)
    return jsonify(court_to_dict(court)), 201


@facilities_bp.get("/<int:facility_id>/courts")
def list_courts(facility_id: int):
    facility, missing = _facility_or_404(facility_id)
    if missing:
        return missing

    user = getattr(g, "user", None)
    manager = can_manage_facility(user, facility)
    if not manager and (facility.status != FacilityStatus.APPROVED or not facility.is_active):
        return jsonify(error="Facility not found"), 404

    courts = facility.courts if manager else [c for c in facility.courts if c.is_active]
    return jsonify([court_to_dict(c) for c in courts]), 200


@facilities_bp.patch("/courts/<int:court_id>")
@login_required
def update_court(court_id: int):
    court, missing = _court_or_404(court_id)
    if missing:
        return missing
    if not can_manage_court(g.user, court):
        return jsonify(error="Forbidden"), 403

    fields = _court_fields(request.get_json(silent=True) or {}, court=court)
    if not fields:
        return jsonify(error="Nothing to update"), 400
    for name, value in fields.items():
        setattr(court, name, value)
    db.session.commit()

    log_event("COURT_UPDATE", user_id=g.user.id, entity="court", entity_id=court.id, metadata={"fields": sorted(fields)})
    return jsonify(court_to_dict(court)), 200


@facilities_bp.post("/courts/<int:court_id>/toggle")
@login_required
def toggle_court(court_id: int):
    court, missing = _court_or_404(court_id)
    if missing:
        return missing
    if not can_manage_court(g.user, court):
        return jsonify(error="Forbidden"), 403

    # courts are deactivated, never deleted: bookings keep pointing at them
    court.is_active = not court.is_active
    db.session.commit()

    log_event(
        "COURT_ACTIVATE" if court.is_active else "COURT_DEACTIVATE",
        user_id=g.user.id,
        entity="court",
        entity_id=court.id,
    )
    return jsonify(id=court.id, is_active=court.is_active), 200
