from datetime import datetime


def venue_now() -> datetime:
    """Wall-clock time at the venue; slots are stored naive in the same clock."""
    return datetime.now().replace(microsecond=0)
