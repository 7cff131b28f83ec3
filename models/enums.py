import enum


class RoleName(str, enum.Enum):
    PLAYER = "PLAYER"
    OWNER = "OWNER"
    ADMIN = "ADMIN"


class FacilityStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SportType(str, enum.Enum):
    BADMINTON = "BADMINTON"
    TENNIS = "TENNIS"
    FOOTBALL = "FOOTBALL"
    CRICKET = "CRICKET"
    BASKETBALL = "BASKETBALL"
    VOLLEYBALL = "VOLLEYBALL"
    SQUASH = "SQUASH"
    TABLE_TENNIS = "TABLE_TENNIS"


class BookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentOrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


class PaymentStatus(str, enum.Enum):
    PAID = "PAID"
    FAILED = "FAILED"


# Display labels and icons per sport; every SportType member must have an entry.
SPORT_DISPLAY = {
    SportType.BADMINTON: ("Badminton", "shuttlecock"),
    SportType.TENNIS: ("Tennis", "tennis-ball"),
    SportType.FOOTBALL: ("Football", "football"),
    SportType.CRICKET: ("Cricket", "cricket-bat"),
    SportType.BASKETBALL: ("Basketball", "basketball"),
    SportType.VOLLEYBALL: ("Volleyball", "volleyball"),
    SportType.SQUASH: ("Squash", "squash-racket"),
    SportType.TABLE_TENNIS: ("Table Tennis", "ping-pong"),
}


def parse_enum(enum_cls, value):
    """Return the member of enum_cls named by value (case-insensitive), or None."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        return None
