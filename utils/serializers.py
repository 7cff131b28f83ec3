from models.enums import SPORT_DISPLAY, SportType
from services.availability import effective_booking_status
from utils.parsing import money_out


def _iso(value):
    return value.isoformat() if value else None


def facility_to_dict(facility, courts=None):
    body = {
        "id": facility.id,
        "name": facility.name,
        "location": facility.location,
        "description": facility.description,
        "status": facility.status.value,
        "owner_user_id": facility.owner_user_id,
        "is_active": facility.is_active,
        "created_at": _iso(facility.created_at),
        "verified_at": _iso(facility.verified_at),
        "rejected_reason": facility.rejected_reason,
    }
    if courts is not None:
        body["courts"] = [court_to_dict(c) for c in courts]
    return body


def court_to_dict(court):
    label, icon = SPORT_DISPLAY[SportType(court.sport_type)]
    return {
        "id": court.id,
        "facility_id": court.facility_id,
        "name": court.name,
        "sport_type": SportType(court.sport_type).value,
        "sport_label": label,
        "sport_icon": icon,
        "price_per_hour": money_out(court.price_per_hour),
        "operating_start_hour": court.operating_start_hour,
        "operating_end_hour": court.operating_end_hour,
        "is_active": court.is_active,
    }


def booking_to_dict(booking, now):
    slot = booking.time_slot
    return {
        "id": booking.id,
        "court_id": booking.court_id,
        "player_id": booking.player_id,
        "time_slot_id": booking.time_slot_id,
        "start_time": _iso(slot.start_time) if slot else None,
        "end_time": _iso(slot.end_time) if slot else None,
        "status": effective_booking_status(booking, slot.end_time if slot else None, now).value,
        "total_price": money_out(booking.total_price),
        "is_paid": booking.is_paid,
        "payment_order_id": booking.payment_order_id,
        "created_at": _iso(booking.created_at),
        "cancelled_at": _iso(booking.cancelled_at),
        "cancel_reason": booking.cancel_reason,
    }


def order_to_dict(order):
    return {
        "id": order.id,
        "court_id": order.court_id,
        "status": order.status.value,
        "amount": money_out(order.amount),
        "currency": order.currency,
        "time_slot_ids": order.time_slot_ids,
        "expires_at": _iso(order.expires_at),
        "paid_at": _iso(order.paid_at),
        "failure_reason": order.failure_reason,
    }


def audit_to_dict(entry):
    return {
        "id": entry.id,
        "created_at": _iso(entry.timestamp),
        "user_id": entry.user_id,
        "action": entry.action,
        "entity": entry.entity,
        "entity_id": entry.entity_id,
        "ip": entry.ip,
        "metadata": entry.details,
    }
