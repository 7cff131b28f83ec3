"""
Owner-side slot management: single create/edit/delete and bulk generation.

Every entry point takes the store and an ``authorize(court) -> bool`` gate;
the gate is consulted before anything is written.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from services.availability import court_day_views, is_booked, project_slots
from services.errors import AuthorizationError, ConflictError, NothingToGenerateError, NotFoundError, ValidationError
from services.overlap import ensure_no_overlap, filter_non_overlapping, first_internal_overlap
from services.slot_generator import (
    MAX_GENERATION_DAYS,
    PEAK_HOURS,
    PEAK_MULTIPLIER,
    AdvancedGeneration,
    generate_advanced,
    generate_simple,
)
from utils.parsing import parse_iso_datetime, parse_money

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 255


@dataclass(frozen=True)
class GenerationResult:
    created: int
    skipped: int

    def to_dict(self) -> dict:
        return {"created": self.created, "skipped": self.skipped}


def managed_court(store, court_id: int, authorize):
    court = store.get_court(court_id)
    if court is None:
        raise NotFoundError("Court not found")
    if not authorize(court):
        raise AuthorizationError("You do not manage this court")
    return court


def _managed_slot(store, slot_id: int, authorize):
    slot = store.get_slot(slot_id)
    if slot is None:
        raise NotFoundError("Time slot not found")
    court = managed_court(store, slot.court_id, authorize)
    return slot, court


def _maintenance_fields(data: dict) -> dict:
    fields = {}
    if "is_maintenance_blocked" in data:
        value = data.get("is_maintenance_blocked")
        if not isinstance(value, bool):
            raise ValidationError("is_maintenance_blocked must be true or false", field="is_maintenance_blocked")
        fields["is_maintenance_blocked"] = value
        if not value:
            fields["maintenance_reason"] = None
    if "maintenance_reason" in data and fields.get("is_maintenance_blocked", True):
        reason = data.get("maintenance_reason")
        if reason is not None:
            reason = str(reason).strip()[:MAX_REASON_LENGTH] or None
        fields["maintenance_reason"] = reason
    return fields


def create_slot(store, court_id: int, data: dict, authorize):
    court = managed_court(store, court_id, authorize)

    start_time = parse_iso_datetime(data.get("start_time"), "start_time")
    end_time = parse_iso_datetime(data.get("end_time"), "end_time")
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time", field="end_time")
    price = parse_money(data.get("price"), "price")
    maintenance = _maintenance_fields(data)

    ensure_no_overlap(store, court.id, start_time, end_time)
    slot = store.add_slot(
        court.id,
        start_time,
        end_time,
        price=price,
        is_maintenance_blocked=maintenance.get("is_maintenance_blocked", False),
        maintenance_reason=maintenance.get("maintenance_reason"),
    )
    store.commit()
    return slot


def update_slot(store, slot_id: int, data: dict, authorize):
    """
    Time changes are overlap-checked against the court's other slots and
    refused once the slot holds a confirmed booking. Price and maintenance
    stay editable; a booking keeps the price it was sold at.
    """
    slot, court = _managed_slot(store, slot_id, authorize)
    fields = {}

    if "start_time" in data or "end_time" in data:
        start_time = parse_iso_datetime(data.get("start_time", slot.start_time), "start_time")
        end_time = parse_iso_datetime(data.get("end_time", slot.end_time), "end_time")
        if end_time <= start_time:
            raise ValidationError("end_time must be after start_time", field="end_time")
        if (start_time, end_time) != (slot.start_time, slot.end_time):
            bookings = store.bookings_for_slots([slot.id]).get(slot.id, [])
            if is_booked(bookings):
                raise ConflictError("Cannot change the time of a booked slot")
            ensure_no_overlap(store, court.id, start_time, end_time, exclude_slot_id=slot.id)
            fields["start_time"] = start_time
            fields["end_time"] = end_time

    if "price" in data:
        # null resets to the court default
        fields["price"] = parse_money(data.get("price"), "price")

    fields.update(_maintenance_fields(data))
    if not fields:
        raise ValidationError("Nothing to update")

    store.update_slot(slot, fields)
    store.commit()
    return slot


def delete_slot(store, slot_id: int, authorize) -> None:
    slot, _court = _managed_slot(store, slot_id, authorize)
    bookings = store.bookings_for_slots([slot.id]).get(slot.id, [])
    if is_booked(bookings):
        raise ConflictError("Cannot delete a time slot that has a confirmed booking")
    store.delete_slot(slot)
    store.commit()


def get_slot_detail(store, slot_id: int):
    slot = store.get_slot(slot_id)
    if slot is None:
        raise NotFoundError("Time slot not found")
    court = store.get_court(slot.court_id)
    bookings = store.bookings_for_slots([slot.id])
    return project_slots(court, [slot], bookings)[0]


def list_court_slots(store, court_id: int, authorize, day=None, maintenance=None, booked=None) -> list:
    court = managed_court(store, court_id, authorize)
    if day is not None:
        views = court_day_views(store, court, day)
    else:
        slots = store.find_slots(court.id, datetime.min, datetime.max)
        views = project_slots(court, slots, store.bookings_for_slots([s.id for s in slots]))

    if maintenance is not None:
        views = [v for v in views if v.is_maintenance_blocked == maintenance]
    if booked is not None:
        views = [v for v in views if v.is_booked == booked]
    return views


def _persist_candidates(store, court, candidates) -> GenerationResult:
    if not candidates:
        raise ValidationError("No time slots fit in the requested range")

    clash = first_internal_overlap(candidates)
    if clash is not None:
        earlier, later = clash
        raise ValidationError(
            f"Generated slots overlap each other at {later.start_time.isoformat()}",
            start_time=earlier.start_time.isoformat(),
        )

    # one read for the whole span, then a pure set difference
    span_start = min(c.start_time for c in candidates)
    span_end = max(c.end_time for c in candidates)
    existing = store.find_overlapping_slots(court.id, span_start, span_end)
    kept, dropped = filter_non_overlapping(candidates, existing)
    if not kept:
        raise NothingToGenerateError(skipped=len(dropped))

    created = store.add_slots_skip_duplicates(court.id, kept)
    store.commit()
    result = GenerationResult(created=created, skipped=len(candidates) - created)
    logger.info("Court %s: generated %s slots, skipped %s", court.id, result.created, result.skipped)
    return result


def generate_slots(
    store,
    court_id: int,
    start_date,
    end_date,
    authorize,
    duration_minutes: int = 60,
    peak_hours=PEAK_HOURS,
    peak_multiplier=PEAK_MULTIPLIER,
    max_days: int = MAX_GENERATION_DAYS,
) -> GenerationResult:
    court = managed_court(store, court_id, authorize)
    candidates = generate_simple(
        court,
        start_date,
        end_date,
        duration_minutes=duration_minutes,
        peak_hours=peak_hours,
        peak_multiplier=peak_multiplier,
        max_days=max_days,
    )
    return _persist_candidates(store, court, candidates)


def generate_slots_advanced(store, court_id: int, data: dict, authorize, max_days: int = MAX_GENERATION_DAYS) -> GenerationResult:
    court = managed_court(store, court_id, authorize)
    request = AdvancedGeneration.from_payload(data)
    candidates = generate_advanced(request, max_days=max_days)
    return _persist_candidates(store, court, candidates)
