"""Half-open interval checks for a court's time slots: [start, end)."""
from services.errors import ConflictError


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    return a_start < b_end and b_start < a_end


def intervals_overlap(a, b) -> bool:
    return overlaps(a.start_time, a.end_time, b.start_time, b.end_time)


def filter_non_overlapping(candidates, existing):
    """
    Split candidates into (kept, dropped). A candidate touching any existing
    interval is dropped whole; nothing is truncated.
    """
    ordered = sorted(existing, key=lambda s: s.start_time)
    kept, dropped = [], []
    for candidate in candidates:
        hit = False
        for slot in ordered:
            if slot.start_time >= candidate.end_time:
                break
            if intervals_overlap(candidate, slot):
                hit = True
                break
        (dropped if hit else kept).append(candidate)
    return kept, dropped


def first_internal_overlap(intervals):
    """Return the first overlapping (earlier, later) pair within one batch, or None."""
    ordered = sorted(intervals, key=lambda s: (s.start_time, s.end_time))
    for earlier, later in zip(ordered, ordered[1:]):
        if intervals_overlap(earlier, later):
            return earlier, later
    return None


def ensure_no_overlap(store, court_id: int, start_time, end_time, exclude_slot_id=None):
    clash = store.find_overlapping_slots(court_id, start_time, end_time, exclude_slot_id=exclude_slot_id)
    if clash:
        other = clash[0]
        raise ConflictError(
            "Time slot overlaps with existing time slot",
            conflicting_slot_id=other.id,
            conflicting_start_time=other.start_time.isoformat(),
            conflicting_end_time=other.end_time.isoformat(),
        )
