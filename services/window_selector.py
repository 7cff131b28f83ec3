"""
Consecutive-window selection over a day's ``SlotView`` rows.

Nothing here raises for an unusable origin: an invalid selection is simply
``None`` / ``False`` so callers can render the time as disabled.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Window:
    court_id: int
    time_slot_ids: tuple
    prices: tuple
    start_time: datetime
    end_time: datetime

    @property
    def total_price(self) -> Decimal:
        return sum(self.prices, Decimal("0"))

    @property
    def items(self) -> list:
        return [
            {"time_slot_id": slot_id, "price": price}
            for slot_id, price in zip(self.time_slot_ids, self.prices)
        ]

    def to_dict(self) -> dict:
        return {
            "court_id": self.court_id,
            "time_slot_ids": list(self.time_slot_ids),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "total_price": float(self.total_price),
        }


def _court_run(views, origin):
    same_court = sorted(
        (v for v in views if v.court_id == origin.court_id),
        key=lambda v: v.start_time,
    )
    index = next(i for i, v in enumerate(same_court) if v.time_slot_id == origin.time_slot_id)
    return same_court[index:]


def select_window(views, origin_slot_id: int, hours: int) -> Optional[Window]:
    """
    The origin plus the next ``hours - 1`` slots of the same court, all
    available and back-to-back (each starts where the previous ended).
    """
    if not isinstance(hours, int) or isinstance(hours, bool) or hours < 1:
        return None
    origin = next((v for v in views if v.time_slot_id == origin_slot_id), None)
    if origin is None:
        return None

    run = _court_run(views, origin)[:hours]
    if len(run) < hours:
        return None
    for previous, current in zip(run, run[1:]):
        if current.start_time != previous.end_time:
            return None
    if not all(v.available for v in run):
        return None

    return Window(
        court_id=origin.court_id,
        time_slot_ids=tuple(v.time_slot_id for v in run),
        prices=tuple(v.price for v in run),
        start_time=run[0].start_time,
        end_time=run[-1].end_time,
    )


def pick_court_for_time(views, start_time: datetime, hours: int) -> Optional[Window]:
    """First court (in the order the views were loaded) that fits the whole window."""
    seen = set()
    for view in views:
        if view.start_time != start_time or view.court_id in seen:
            continue
        seen.add(view.court_id)
        window = select_window(views, view.time_slot_id, hours)
        if window is not None:
            return window
    return None


@dataclass
class TimeGroup:
    start_time: datetime
    end_time: datetime
    price: Decimal
    total_slots: int = 0
    available_court_ids: list = field(default_factory=list)
    window: Optional[Window] = None

    @property
    def has_availability(self) -> bool:
        return bool(self.available_court_ids)

    @property
    def selectable(self) -> bool:
        return self.window is not None

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "price": float(self.price),
            "total_slots": self.total_slots,
            "available_courts": len(self.available_court_ids),
            "has_availability": self.has_availability,
            "selectable": self.selectable,
            # available for 1 hour somewhere, but no court fits the full duration
            "needs_more_consecutive": self.has_availability and not self.selectable,
            "window": self.window.to_dict() if self.window else None,
        }


def group_by_time(views, hours: int = 1) -> list:
    groups = {}
    for view in views:
        key = (view.start_time, view.end_time)
        group = groups.get(key)
        if group is None:
            group = groups[key] = TimeGroup(start_time=view.start_time, end_time=view.end_time, price=view.price)
        group.total_slots += 1
        if view.available:
            group.available_court_ids.append(view.court_id)

    for group in groups.values():
        if group.has_availability:
            group.window = pick_court_for_time(views, group.start_time, hours)
    return [groups[key] for key in sorted(groups)]


class Selection:
    """
    All-or-nothing selection state for the booking dialog.

    Toggling a selected slot clears everything; toggling a valid origin
    replaces the selection; an invalid origin leaves it untouched.
    """

    def __init__(self, views, hours: int = 1):
        self.views = list(views)
        self.hours = hours
        self.window: Optional[Window] = None

    @property
    def slot_ids(self) -> list:
        return list(self.window.time_slot_ids) if self.window else []

    @property
    def total_price(self) -> Decimal:
        return self.window.total_price if self.window else Decimal("0")

    def toggle(self, slot_id: int) -> bool:
        if slot_id in self.slot_ids:
            self.window = None
            return True
        window = select_window(self.views, slot_id, self.hours)
        if window is None:
            return False
        self.window = window
        return True

    def toggle_time(self, start_time: datetime) -> bool:
        if self.window and any(
            v.start_time == start_time and v.time_slot_id in self.window.time_slot_ids
            for v in self.views
        ):
            self.window = None
            return True
        window = pick_court_for_time(self.views, start_time, self.hours)
        if window is None:
            return False
        self.window = window
        return True

    def set_hours(self, hours: int) -> None:
        self.hours = hours
        self.window = None

    def refresh(self, views) -> None:
        # a reload can change availability under the current selection
        self.views = list(views)
        self.window = None
