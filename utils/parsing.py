from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from services.errors import ValidationError


def parse_iso_datetime(value, field: str) -> datetime:
    # Expect naive ISO format like "2026-01-20T18:00:00"
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}. Use ISO e.g. 2026-01-20T18:00:00", field=field)
    if parsed.tzinfo is not None:
        raise ValidationError(f"{field} must not carry a timezone offset", field=field)
    return parsed


def parse_iso_date(value, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD", field=field)


def parse_money(value, field: str, required: bool = False):
    """Positive Decimal with at most 2 places, or None when absent and optional."""
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    if amount.as_tuple().exponent < -2:
        raise ValidationError(f"{field} has too many decimal places", field=field)
    return amount


def parse_int(value, field: str, minimum=None, maximum=None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be an integer", field=field)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}", field=field)
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be <= {maximum}", field=field)
    return number


def money_out(amount):
    return float(amount) if amount is not None else None
