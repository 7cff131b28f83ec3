"""
Store gateway for courts, time slots, bookings and payment orders.

Core services receive a ``SlotStore`` explicitly; ``SqlAlchemyStore`` is the
relational implementation used by the Flask app, tests may pass an in-memory
object with the same methods.
"""
import json
from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.court import Court
from models.enums import BookingStatus, PaymentOrderStatus
from models.facility import Facility
from models.payment import Payment
from models.payment_order import PaymentOrder
from models.time_slot import TimeSlot
from services.errors import ConflictError

_BULK_CHUNK = 100


class SlotStore(Protocol):
    # courts
    def get_court(self, court_id): ...
    def get_facility(self, facility_id): ...
    def list_active_courts(self, facility_id) -> list: ...

    # time slots
    def get_slot(self, slot_id): ...
    def find_slot_at(self, court_id, start_time): ...
    def find_slots(self, court_id, range_start, range_end) -> list: ...
    def find_overlapping_slots(self, court_id, start_time, end_time, exclude_slot_id=None) -> list: ...
    def add_slot(self, court_id, start_time, end_time, price=None, is_maintenance_blocked=False, maintenance_reason=None): ...
    def add_slots_skip_duplicates(self, court_id, candidates) -> int: ...
    def update_slot(self, slot, fields: dict): ...
    def delete_slot(self, slot) -> None: ...

    # bookings
    def get_booking(self, booking_id): ...
    def bookings_for_slots(self, slot_ids) -> dict: ...
    def bookings_for_order(self, order_id) -> list: ...
    def bookings_for_player(self, player_id, status=None) -> list: ...
    def bookings_for_court(self, court_id, status=None) -> list: ...
    def add_bookings(self, rows: list) -> list: ...
    def cancel_booking(self, booking_id, reason, at) -> bool: ...

    # payment orders
    def add_order(self, player_id, court_id, amount, currency, items, expires_at): ...
    def set_order_reference(self, order, provider_order_id) -> None: ...
    def get_order(self, order_id): ...
    def get_order_by_reference(self, provider_order_id): ...
    def claim_order(self, order_id, from_statuses, to_status, at) -> bool: ...
    def set_order_status(self, order_id, status, reason=None) -> None: ...
    def active_orders_holding(self, court_id, slot_ids, now) -> list: ...
    def expire_orders(self, now) -> int: ...
    def add_payment(self, order_id, provider_payment_id, amount, currency, status) -> bool: ...

    # transaction
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class SqlAlchemyStore:
    def __init__(self, session=None):
        self.session = session or db.session

    # ---------- courts ----------
    def get_court(self, court_id):
        return self.session.get(Court, court_id)

    def get_facility(self, facility_id):
        return self.session.get(Facility, facility_id)

    def list_active_courts(self, facility_id):
        return (
            Court.query
            .filter(Court.facility_id == facility_id, Court.is_active.is_(True))
            .order_by(Court.id.asc())
            .all()
        )

    # ---------- time slots ----------
    def get_slot(self, slot_id):
        return self.session.get(TimeSlot, slot_id)

    def find_slot_at(self, court_id, start_time):
        return TimeSlot.query.filter_by(court_id=court_id, start_time=start_time).first()

    def find_slots(self, court_id, range_start, range_end):
        return (
            TimeSlot.query
            .filter(
                TimeSlot.court_id == court_id,
                TimeSlot.start_time >= range_start,
                TimeSlot.start_time < range_end,
            )
            .order_by(TimeSlot.start_time.asc())
            .all()
        )

    def find_overlapping_slots(self, court_id, start_time, end_time, exclude_slot_id=None):
        q = TimeSlot.query.filter(
            TimeSlot.court_id == court_id,
            TimeSlot.start_time < end_time,
            TimeSlot.end_time > start_time,
        )
        if exclude_slot_id is not None:
            q = q.filter(TimeSlot.id != exclude_slot_id)
        return q.order_by(TimeSlot.start_time.asc()).all()

    def add_slot(self, court_id, start_time, end_time, price=None, is_maintenance_blocked=False, maintenance_reason=None):
        slot = TimeSlot(
            court_id=court_id,
            start_time=start_time,
            end_time=end_time,
            price=price,
            is_maintenance_blocked=is_maintenance_blocked,
            maintenance_reason=maintenance_reason,
        )
        self.session.add(slot)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Slot already exists for that court and time")
        return slot

    def add_slots_skip_duplicates(self, court_id, candidates):
        now = datetime.utcnow()
        rows = [
            {
                "court_id": court_id,
                "start_time": c.start_time,
                "end_time": c.end_time,
                "price": c.price,
                "is_maintenance_blocked": False,
                "created_at": now,
            }
            for c in candidates
        ]
        if not rows:
            return 0

        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        elif dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            return self._add_slots_one_by_one(rows)

        created = 0
        for i in range(0, len(rows), _BULK_CHUNK):
            stmt = (
                insert(TimeSlot)
                .values(rows[i:i + _BULK_CHUNK])
                .on_conflict_do_nothing(index_elements=["court_id", "start_time"])
            )
            created += self.session.execute(stmt).rowcount
        return created

    def _add_slots_one_by_one(self, rows):
        created = 0
        for row in rows:
            try:
                with self.session.begin_nested():
                    self.session.add(TimeSlot(**row))
                created += 1
            except IntegrityError:
                continue
        return created

    def update_slot(self, slot, fields):
        for name, value in fields.items():
            setattr(slot, name, value)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Slot already exists for that court and time")
        return slot

    def delete_slot(self, slot):
        # cancelled history goes with the slot; confirmed bookings are checked by the caller
        Booking.query.filter(
            Booking.time_slot_id == slot.id,
            Booking.status != BookingStatus.CONFIRMED,
        ).delete(synchronize_session=False)
        self.session.delete(slot)
        self.session.flush()

    # ---------- bookings ----------
    def get_booking(self, booking_id):
        return self.session.get(Booking, booking_id)

    def bookings_for_slots(self, slot_ids):
        grouped = {slot_id: [] for slot_id in slot_ids}
        if not slot_ids:
            return grouped
        for b in Booking.query.filter(Booking.time_slot_id.in_(list(slot_ids))).all():
            grouped.setdefault(b.time_slot_id, []).append(b)
        return grouped

    def bookings_for_order(self, order_id):
        return Booking.query.filter_by(payment_order_id=order_id).order_by(Booking.id.asc()).all()

    def bookings_for_player(self, player_id, status=None):
        q = Booking.query.filter_by(player_id=player_id)
        if status is not None:
            q = q.filter(Booking.status == status)
        return q.order_by(Booking.created_at.desc()).all()

    def bookings_for_court(self, court_id, status=None):
        q = Booking.query.filter_by(court_id=court_id)
        if status is not None:
            q = q.filter(Booking.status == status)
        return q.order_by(Booking.created_at.desc()).limit(200).all()

    def add_bookings(self, rows):
        bookings = [Booking(**row) for row in rows]
        self.session.add_all(bookings)
        try:
            self.session.flush()
        except IntegrityError:
            # uq_booking_slot_confirmed: someone else confirmed one of these slots
            self.session.rollback()
            raise ConflictError("One or more time slots are already booked")
        return bookings

    def cancel_booking(self, booking_id, reason, at):
        updated = (
            Booking.query
            .filter(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED)
            .update(
                {"status": BookingStatus.CANCELLED, "cancelled_at": at, "cancel_reason": reason},
                synchronize_session="fetch",
            )
        )
        return updated == 1

    # ---------- payment orders ----------
    def add_order(self, player_id, court_id, amount, currency, items, expires_at):
        order = PaymentOrder(
            player_id=player_id,
            court_id=court_id,
            amount=amount,
            currency=currency,
            items_json=json.dumps([
                {"time_slot_id": item["time_slot_id"], "price": str(item["price"])}
                for item in items
            ]),
            status=PaymentOrderStatus.PENDING,
            expires_at=expires_at,
        )
        self.session.add(order)
        self.session.flush()
        return order

    def set_order_reference(self, order, provider_order_id):
        order.provider_order_id = provider_order_id
        self.session.flush()

    def get_order(self, order_id):
        return self.session.get(PaymentOrder, order_id)

    def get_order_by_reference(self, provider_order_id):
        if not provider_order_id:
            return None
        return PaymentOrder.query.filter_by(provider_order_id=provider_order_id).first()

    def claim_order(self, order_id, from_statuses, to_status, at):
        # update-if-status-matches; exactly one concurrent caller wins
        updated = (
            PaymentOrder.query
            .filter(PaymentOrder.id == order_id, PaymentOrder.status.in_(list(from_statuses)))
            .update({"status": to_status, "paid_at": at}, synchronize_session="fetch")
        )
        return updated == 1

    def set_order_status(self, order_id, status, reason=None):
        PaymentOrder.query.filter(PaymentOrder.id == order_id).update(
            {"status": status, "failure_reason": reason},
            synchronize_session="fetch",
        )

    def active_orders_holding(self, court_id, slot_ids, now):
        wanted = set(slot_ids)
        pending = (
            PaymentOrder.query
            .filter(
                PaymentOrder.court_id == court_id,
                PaymentOrder.status == PaymentOrderStatus.PENDING,
                PaymentOrder.expires_at > now,
            )
            .all()
        )
        return [o for o in pending if wanted.intersection(o.time_slot_ids)]

    def expire_orders(self, now):
        return (
            PaymentOrder.query
            .filter(
                PaymentOrder.status == PaymentOrderStatus.PENDING,
                PaymentOrder.expires_at <= now,
            )
            .update({"status": PaymentOrderStatus.EXPIRED}, synchronize_session=False)
        )

    def add_payment(self, order_id, provider_payment_id, amount, currency, status):
        if Payment.query.filter_by(provider_payment_id=provider_payment_id).first():
            return False
        self.session.add(Payment(
            payment_order_id=order_id,
            provider_payment_id=provider_payment_id,
            amount=amount,
            currency=currency,
            status=status,
        ))
        self.session.flush()
        return True

    # ---------- transaction ----------
    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
