"""
Availability is a projection: it is recomputed from the maintenance flag and
the slot's bookings on every read and never stored.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from models.enums import BookingStatus
from services.errors import NotFoundError

# Which stored booking statuses keep a slot taken. Keep in sync with BookingStatus.
HOLDS_SLOT = {
    BookingStatus.CONFIRMED: True,
    BookingStatus.CANCELLED: False,
    BookingStatus.COMPLETED: True,
}

# length of the slots simple generation lays out
SLOT_LENGTH = timedelta(hours=1)


@dataclass(frozen=True)
class SlotView:
    time_slot_id: int
    court_id: int
    start_time: datetime
    end_time: datetime
    price: Decimal
    available: bool
    is_maintenance_blocked: bool
    maintenance_reason: Optional[str]
    is_booked: bool

    def to_dict(self) -> dict:
        return {
            "time_slot_id": self.time_slot_id,
            "court_id": self.court_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "price": float(self.price),
            "available": self.available,
            "is_maintenance_blocked": self.is_maintenance_blocked,
            "maintenance_reason": self.maintenance_reason,
            "is_booked": self.is_booked,
        }


def booking_holds_slot(status) -> bool:
    return HOLDS_SLOT[BookingStatus(status)]


def is_booked(bookings) -> bool:
    return any(booking_holds_slot(b.status) for b in bookings or ())


def is_available(slot, bookings) -> bool:
    return not slot.is_maintenance_blocked and not is_booked(bookings)


def effective_price(slot, court) -> Decimal:
    return Decimal(slot.price) if slot.price is not None else Decimal(court.price_per_hour)


def effective_booking_status(booking, slot_end, now: datetime) -> BookingStatus:
    """CONFIRMED bookings read as COMPLETED once their slot has ended."""
    status = BookingStatus(booking.status)
    if status is BookingStatus.CONFIRMED and slot_end is not None and slot_end <= now:
        return BookingStatus.COMPLETED
    return status


def within_operating_hours(court, start_time: datetime, length: timedelta = SLOT_LENGTH) -> bool:
    """A slot of ``length`` starting at ``start_time`` fits between opening and closing."""
    midnight = datetime(start_time.year, start_time.month, start_time.day)
    opens = midnight + timedelta(hours=court.operating_start_hour)
    closes = midnight + timedelta(hours=court.operating_end_hour)
    return opens <= start_time and start_time + length <= closes


def resolve_at(store, court_id: int, start_time: datetime) -> bool:
    """
    Availability of (court, start time). Works before slots are materialised:
    with no row there is no maintenance block and no booking, so only the
    court's state and operating hours matter.
    """
    court = store.get_court(court_id)
    if court is None:
        raise NotFoundError("Court not found")

    slot = store.find_slot_at(court_id, start_time)
    if slot is None:
        return bool(court.is_active) and within_operating_hours(court, start_time)

    bookings = store.bookings_for_slots([slot.id]).get(slot.id, [])
    return bool(court.is_active) and is_available(slot, bookings)


def project_slots(court, slots, bookings_by_slot: dict, now: Optional[datetime] = None, hide_past: bool = False) -> list:
    views = []
    for slot in slots:
        if hide_past and now is not None and slot.start_time <= now:
            continue
        bookings = bookings_by_slot.get(slot.id, [])
        views.append(SlotView(
            time_slot_id=slot.id,
            court_id=court.id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            price=effective_price(slot, court),
            available=bool(court.is_active) and is_available(slot, bookings),
            is_maintenance_blocked=bool(slot.is_maintenance_blocked),
            maintenance_reason=slot.maintenance_reason,
            is_booked=is_booked(bookings),
        ))
    return views


def day_bounds(day):
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def court_day_views(store, court, day, now: Optional[datetime] = None, hide_past: bool = False) -> list:
    start, end = day_bounds(day)
    slots = store.find_slots(court.id, start, end)
    bookings = store.bookings_for_slots([s.id for s in slots])
    return project_slots(court, slots, bookings, now=now, hide_past=hide_past)


def venue_day_views(store, facility_id: int, day, now: Optional[datetime] = None) -> list:
    """All active courts of a facility for one day, courts in store order, slots by time."""
    views = []
    for court in store.list_active_courts(facility_id):
        views.extend(court_day_views(store, court, day, now=now, hide_past=now is not None))
    return views


def summarize(views) -> dict:
    total = len(views)
    maintenance = sum(1 for v in views if v.is_maintenance_blocked)
    booked = sum(1 for v in views if not v.is_maintenance_blocked and v.is_booked)
    available = sum(1 for v in views if v.available)
    return {
        "total_slots": total,
        "available_slots": available,
        "booked_slots": booked,
        "maintenance_slots": maintenance,
        "availability_percentage": round(available * 100 / total) if total else 0,
    }
