from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalizes a timestamp to aware UTC. Naive values are taken to already be UTC,
    which is how SQLite hands back the timezone-aware columns."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def session_end(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_minutes)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open interval test: [a_start, a_end) and [b_start, b_end) intersect.
    Intervals that only touch at an endpoint do not overlap.
    """
    return as_utc(a_start) < as_utc(b_end) and as_utc(b_start) < as_utc(a_end)


def overlap_minutes(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> int:
    """Number of whole minutes shared by the two intervals (0 when disjoint)."""
    overlap_start = max(as_utc(a_start), as_utc(b_start))
    overlap_end = min(as_utc(a_end), as_utc(b_end))
    if overlap_end > overlap_start:
        return int((overlap_end - overlap_start).total_seconds() // 60)
    return 0
