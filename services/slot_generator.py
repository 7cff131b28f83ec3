"""
Expand a court's operating hours (or an advanced weekly pattern) into candidate
time slots. Pure computation: nothing here touches the store.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from services.errors import ValidationError
from utils.parsing import parse_iso_date, parse_int, parse_money

PEAK_HOURS = ((6, 9), (18, 21))
PEAK_MULTIPLIER = Decimal("1.2")
MAX_GENERATION_DAYS = 90
MAX_SLOT_MINUTES = 24 * 60

# 0 = Sunday ... 6 = Saturday
WEEKEND_DAYS = frozenset({0, 6})

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class SlotCandidate:
    start_time: datetime
    end_time: datetime
    price: Optional[Decimal] = None


@dataclass(frozen=True)
class AdvancedGeneration:
    start_date: date
    end_date: date
    start_clock: time
    end_clock: time
    slot_duration: int
    days_of_week: frozenset
    use_custom_pricing: bool = False
    weekday_price: Optional[Decimal] = None
    weekend_price: Optional[Decimal] = None

    @classmethod
    def from_payload(cls, data: dict) -> "AdvancedGeneration":
        days = data.get("days_of_week")
        if not isinstance(days, list) or not days:
            raise ValidationError("days_of_week must be a non-empty list (0=Sunday .. 6=Saturday)", field="days_of_week")
        parsed_days = frozenset(parse_int(d, "days_of_week", minimum=0, maximum=6) for d in days)

        use_custom = bool(data.get("use_custom_pricing"))
        weekday_price = weekend_price = None
        if use_custom:
            weekday_price = parse_money(data.get("weekday_price"), "weekday_price", required=True)
            weekend_price = parse_money(data.get("weekend_price"), "weekend_price", required=True)

        return cls(
            start_date=parse_iso_date(data.get("start_date"), "start_date"),
            end_date=parse_iso_date(data.get("end_date"), "end_date"),
            start_clock=parse_clock(data.get("start_time"), "start_time"),
            end_clock=parse_clock(data.get("end_time"), "end_time"),
            slot_duration=parse_int(data.get("slot_duration"), "slot_duration", minimum=1, maximum=MAX_SLOT_MINUTES),
            days_of_week=parsed_days,
            use_custom_pricing=use_custom,
            weekday_price=weekday_price,
            weekend_price=weekend_price,
        )


def parse_clock(value, field: str = "time") -> time:
    if not isinstance(value, str) or not _CLOCK_RE.match(value.strip()):
        raise ValidationError(f"{field} must be HH:MM", field=field)
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def is_peak_hour(hour: int, peak_hours=PEAK_HOURS) -> bool:
    return any(low <= hour <= high for low, high in peak_hours)


def round_currency(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def peak_price(base_price, multiplier=PEAK_MULTIPLIER) -> Decimal:
    return round_currency(Decimal(base_price) * Decimal(multiplier))


def _dates(start_date: date, end_date: date, max_days: int):
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")
    span = (end_date - start_date).days + 1
    if span > max_days:
        raise ValidationError(f"Cannot generate more than {max_days} days at once", field="end_date")
    for offset in range(span):
        yield start_date + timedelta(days=offset)


def _walk(day: date, start_clock: time, end_clock: time, minutes: int):
    # no partial trailing slot: a slot is emitted only if it ends on or before the boundary
    step = timedelta(minutes=minutes)
    current = datetime.combine(day, start_clock)
    boundary = datetime.combine(day, end_clock)
    while current + step <= boundary:
        yield current, current + step
        current += step


def generate_simple(
    court,
    start_date: date,
    end_date: date,
    duration_minutes: int = 60,
    peak_hours=PEAK_HOURS,
    peak_multiplier=PEAK_MULTIPLIER,
    max_days: int = MAX_GENERATION_DAYS,
) -> list:
    """
    One slot per ``duration_minutes`` step inside the court's operating hours,
    for every date in [start_date, end_date]. Peak-hour slots get an explicit
    price (default x multiplier, rounded); the rest keep price unset so they
    follow the court default.
    """
    if not 0 < duration_minutes <= MAX_SLOT_MINUTES:
        raise ValidationError("slot duration must be between 1 and 1440 minutes", field="duration_minutes")
    if court.operating_end_hour <= court.operating_start_hour:
        raise ValidationError("Court operating hours are invalid")

    opening = time(court.operating_start_hour)
    closing = time(court.operating_end_hour)
    candidates = []
    for day in _dates(start_date, end_date, max_days):
        for start, end in _walk(day, opening, closing, duration_minutes):
            price = None
            if is_peak_hour(start.hour, peak_hours):
                price = peak_price(court.price_per_hour, peak_multiplier)
            candidates.append(SlotCandidate(start, end, price))
    return candidates


def generate_advanced(request: AdvancedGeneration, max_days: int = MAX_GENERATION_DAYS) -> list:
    if request.end_clock <= request.start_clock:
        raise ValidationError("end_time must be after start_time", field="end_time")
    if not request.days_of_week or not request.days_of_week <= frozenset(range(7)):
        raise ValidationError("days_of_week must contain values 0..6", field="days_of_week")
    if request.use_custom_pricing and (request.weekday_price is None or request.weekend_price is None):
        raise ValidationError("Custom pricing needs both weekday_price and weekend_price")

    candidates = []
    for day in _dates(request.start_date, request.end_date, max_days):
        weekday = sunday_based_weekday(day)
        if weekday not in request.days_of_week:
            continue
        price = None
        if request.use_custom_pricing:
            price = request.weekend_price if weekday in WEEKEND_DAYS else request.weekday_price
        for start, end in _walk(day, request.start_clock, request.end_clock, request.slot_duration):
            candidates.append(SlotCandidate(start, end, price))
    return candidates
