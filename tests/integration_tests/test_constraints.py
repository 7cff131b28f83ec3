"""Database-level guarantees the services rely on when two requests race."""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from models import db
from models.court import Court
from models.enums import BookingStatus, FacilityStatus, SportType
from models.facility import Facility
from models.user import User
from services.errors import ConflictError
from services.slot_generator import SlotCandidate
from services.store import SqlAlchemyStore

_START = datetime(2030, 3, 6, 10, 0)


@pytest.fixture()
def court_id(app):
    with app.app_context():
        user = User(email="seed@example.com", password_hash="x")
        db.session.add(user)
        db.session.flush()
        facility = Facility(
            name="Seed Hall",
            location="Pune",
            name_normalized="seed hall",
            location_normalized="pune",
            status=FacilityStatus.APPROVED,
            owner_user_id=user.id,
        )
        db.session.add(facility)
        db.session.flush()
        court = Court(facility_id=facility.id, name="Court 1", sport_type=SportType.TENNIS, price_per_hour=Decimal("450"))
        db.session.add(court)
        db.session.commit()
        return court.id


def _row(slot_id, court_id, player_id):
    return {
        "time_slot_id": slot_id,
        "court_id": court_id,
        "player_id": player_id,
        "status": BookingStatus.CONFIRMED,
        "total_price": Decimal("450"),
        "is_paid": True,
    }


class TestUniqueConfirmedBooking:
    def test_second_confirmed_booking_is_a_conflict(self, app, court_id):
        with app.app_context():
            store = SqlAlchemyStore()
            slot = store.add_slot(court_id, _START, _START + timedelta(hours=1))
            player_id = User.query.first().id
            store.add_bookings([_row(slot.id, court_id, player_id)])
            store.commit()

            with pytest.raises(ConflictError):
                store.add_bookings([_row(slot.id, court_id, player_id)])

    def test_cancelled_rows_do_not_block(self, app, court_id):
        with app.app_context():
            store = SqlAlchemyStore()
            slot = store.add_slot(court_id, _START, _START + timedelta(hours=1))
            player_id = User.query.first().id
            (booking,) = store.add_bookings([_row(slot.id, court_id, player_id)])
            store.commit()
            assert store.cancel_booking(booking.id, "rain", _START - timedelta(days=1))
            store.commit()

            store.add_bookings([_row(slot.id, court_id, player_id)])
            store.commit()
            assert len(store.bookings_for_slots([slot.id])[slot.id]) == 2


class TestUniqueSlotStart:
    def test_duplicate_start_is_a_conflict(self, app, court_id):
        with app.app_context():
            store = SqlAlchemyStore()
            store.add_slot(court_id, _START, _START + timedelta(hours=1))
            store.commit()
            with pytest.raises(ConflictError):
                store.add_slot(court_id, _START, _START + timedelta(minutes=30))

    def test_bulk_insert_skips_existing_starts(self, app, court_id):
        with app.app_context():
            store = SqlAlchemyStore()
            store.add_slot(court_id, _START, _START + timedelta(hours=1))
            store.commit()
            candidates = [SlotCandidate(_START + timedelta(hours=h), _START + timedelta(hours=h + 1)) for h in range(3)]
            assert store.add_slots_skip_duplicates(court_id, candidates) == 2
            store.commit()
            assert len(store.find_slots(court_id, _START, _START + timedelta(days=1))) == 3
