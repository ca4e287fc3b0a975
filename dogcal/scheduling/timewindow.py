"""Time-window helpers: overlap testing and recurring-date expansion.

All datetimes handled by the scheduling core are naive UTC. ``normalize``
converts whatever arrives at the boundary (aware in any zone, or naive and
assumed UTC) so that comparisons against stored values are consistent.
"""
from datetime import UTC, datetime
from enum import Enum

from dateutil.relativedelta import relativedelta

from dogcal.core.errors import ValidationError

MIN_OCCURRENCES = 2
MAX_OCCURRENCES = 52


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


_STEPS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
}


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def normalize(dt: datetime) -> datetime:
    """Return ``dt`` as naive UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def validate_window(start: datetime, end: datetime) -> None:
    if start >= end:
        raise ValidationError("Start time must be before end time")


def patched_window(
    changes: dict, current_start: datetime, current_end: datetime
) -> tuple[datetime, datetime]:
    """
    Resolve the window after a partial update.

    A missing key keeps the current value. An explicit null is rejected,
    since a window cannot lose either end.
    """
    for key in ("start_at", "end_at"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be null")
    start = normalize(changes.get("start_at", current_start))
    end = normalize(changes.get("end_at", current_end))
    validate_window(start, end)
    return start, end


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """
    Check whether two half-open windows ``[start, end)`` share any instant.

    Covers a starting during b, a ending during b, and a containing b.
    Back-to-back windows (one ends exactly when the other starts) do not
    overlap.
    """
    return a_start < b_end and b_start < a_end


def expand_recurrence(
    start: datetime,
    end: datetime,
    frequency: Frequency | str,
    count: int,
) -> list[tuple[datetime, datetime]]:
    """
    Expand one window into ``count`` recurring windows.

    Every occurrence keeps the original duration. Occurrence ``i`` starts at
    ``start + i * step`` computed from the original start, so monthly series
    clamp to the last day of short months and recover afterwards:

        2024-01-31 monthly x3 -> 2024-01-31, 2024-02-29, 2024-03-31
    """
    try:
        frequency = Frequency(frequency)
    except ValueError:
        raise ValidationError(f"Unknown repeat frequency: {frequency!r}") from None

    if not MIN_OCCURRENCES <= count <= MAX_OCCURRENCES:
        raise ValidationError(
            f"Number of occurrences must be between {MIN_OCCURRENCES} and {MAX_OCCURRENCES}"
        )
    validate_window(start, end)

    duration = end - start
    step = _STEPS[frequency]
    windows = []
    for i in range(count):
        occurrence_start = start + step * i
        windows.append((occurrence_start, occurrence_start + duration))
    return windows
