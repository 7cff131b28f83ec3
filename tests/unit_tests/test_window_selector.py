"""Tests for consecutive-window selection and the booking dialog state."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from services.availability import venue_day_views
from services.window_selector import Selection, group_by_time, pick_court_for_time, select_window

_DAY = date(2030, 3, 6)


def _at(hour):
    return datetime(2030, 3, 6, hour, 0)


@pytest.fixture()
def day(store):
    """Court 1: 09..13 with 11:00 booked. Court 2: 09..13 all free, 10:00 priced 600."""
    store.add_court(name="Court 2")
    ids = {}
    for court_id in (1, 2):
        for hour in range(9, 13):
            price = Decimal("600") if (court_id, hour) == (2, 10) else None
            ids[(court_id, hour)] = store.add_slot(court_id, _at(hour), _at(hour + 1), price=price).id
    store.seed_booking(store.get_slot(ids[(1, 11)]))
    return ids


def _views(store):
    return venue_day_views(store, 1, _DAY)


class TestSelectWindow:
    def test_single_hour(self, store, day):
        window = select_window(_views(store), day[(1, 9)], 1)
        assert window.time_slot_ids == (day[(1, 9)],)
        assert window.total_price == Decimal("450")

    def test_two_hours_back_to_back(self, store, day):
        window = select_window(_views(store), day[(1, 9)], 2)
        assert window.time_slot_ids == (day[(1, 9)], day[(1, 10)])
        assert window.start_time == _at(9)
        assert window.end_time == _at(11)
        assert window.total_price == Decimal("900")

    def test_window_through_booked_slot_rejected(self, store, day):
        assert select_window(_views(store), day[(1, 10)], 2) is None

    def test_window_past_end_of_day_rejected(self, store, day):
        assert select_window(_views(store), day[(2, 12)], 2) is None

    def test_gap_between_slots_rejected(self, store, day):
        store.delete_slot(store.get_slot(day[(2, 10)]))
        assert select_window(_views(store), day[(2, 9)], 2) is None

    def test_never_crosses_courts(self, store, day):
        # court 1 at 12:00 is the last slot; court 2 has 13:00 free but is another court
        store.add_slot(2, _at(13), _at(14))
        assert select_window(_views(store), day[(1, 12)], 2) is None

    def test_total_uses_effective_prices(self, store, day):
        window = select_window(_views(store), day[(2, 9)], 3)
        assert window.prices == (Decimal("450"), Decimal("600"), Decimal("450"))
        assert window.total_price == Decimal("1500")

    @pytest.mark.parametrize("hours", [0, -1, "2", 1.5, True])
    def test_bad_hours(self, store, day, hours):
        assert select_window(_views(store), day[(1, 9)], hours) is None

    def test_unknown_origin(self, store, day):
        assert select_window(_views(store), 999, 1) is None


class TestPickCourtForTime:
    def test_first_court_in_store_order_wins(self, store, day):
        window = pick_court_for_time(_views(store), _at(9), 2)
        assert window.court_id == 1

    def test_falls_through_to_next_court(self, store, day):
        window = pick_court_for_time(_views(store), _at(10), 2)
        assert window.court_id == 2
        assert window.time_slot_ids == (day[(2, 10)], day[(2, 11)])

    def test_nothing_fits(self, store, day):
        assert pick_court_for_time(_views(store), _at(12), 2) is None


class TestGroupByTime:
    def test_groups_per_clock_time(self, store, day):
        groups = group_by_time(_views(store), hours=1)
        assert [g.start_time.hour for g in groups] == [9, 10, 11, 12]
        eleven = groups[2]
        assert eleven.total_slots == 2
        assert eleven.available_court_ids == [2]
        assert eleven.selectable

    def test_needs_more_consecutive_flag(self, store, day):
        groups = {g.start_time.hour: g for g in group_by_time(_views(store), hours=2)}
        twelve = groups[12].to_dict()
        assert twelve["has_availability"]
        assert not twelve["selectable"]
        assert twelve["needs_more_consecutive"]


class TestSelection:
    def test_toggle_valid_origin_selects_window(self, store, day):
        selection = Selection(_views(store), hours=2)
        assert selection.toggle(day[(1, 9)])
        assert selection.slot_ids == [day[(1, 9)], day[(1, 10)]]

    def test_toggle_selected_slot_clears_all(self, store, day):
        selection = Selection(_views(store), hours=2)
        selection.toggle(day[(1, 9)])
        assert selection.toggle(day[(1, 10)])
        assert selection.slot_ids == []
        assert selection.total_price == Decimal("0")

    def test_invalid_origin_leaves_selection_unchanged(self, store, day):
        selection = Selection(_views(store), hours=2)
        selection.toggle(day[(1, 9)])
        assert not selection.toggle(day[(1, 10)] + 100)
        assert not selection.toggle(day[(2, 12)])
        assert selection.slot_ids == [day[(1, 9)], day[(1, 10)]]

    def test_new_valid_origin_replaces_selection(self, store, day):
        selection = Selection(_views(store), hours=1)
        selection.toggle(day[(1, 9)])
        selection.toggle(day[(2, 12)])
        assert selection.slot_ids == [day[(2, 12)]]

    def test_changing_duration_clears(self, store, day):
        selection = Selection(_views(store), hours=1)
        selection.toggle(day[(1, 9)])
        selection.set_hours(2)
        assert selection.slot_ids == []

    def test_toggle_time_picks_court_and_toggles_off(self, store, day):
        selection = Selection(_views(store), hours=2)
        assert selection.toggle_time(_at(10))
        assert selection.window.court_id == 2
        assert selection.toggle_time(_at(10))
        assert selection.window is None
