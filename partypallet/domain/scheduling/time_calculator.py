"""Time parsing and calculations for event windows"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

from ...config import OVERNIGHT_SURCHARGE_RATE
from ...shared.errors import ValidationError
from ...shared.validators import validate_time_string

MINUTES_PER_DAY = 24 * 60
OVERNIGHT_END_HOUR = 6
OVERNIGHT_MIN_DURATION_MINUTES = 12 * 60
MIN_EVENT_DURATION_MINUTES = 30


def today() -> date:
    """Current calendar day, the reference point for past-date checks"""
    return date.today()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: Union[str, date, datetime]) -> date:
    """Accept a date, a datetime or an ISO string and return the calendar day"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise ValidationError("Date must be in YYYY-MM-DD format") from e


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def is_past(day: date) -> bool:
    return day < today()


def normalize_time(value: str) -> str:
    """Normalize "9:05" to "09:05"; raises ValidationError on malformed input"""
    try:
        return validate_time_string(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def to_minutes(value: str) -> int:
    hours, minutes = normalize_time(value).split(":")
    return int(hours) * 60 + int(minutes)


def windows_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Half-open overlap test: (a.start < b.end) and (b.start < a.end)"""
    return to_minutes(a_start) < to_minutes(b_end) and to_minutes(b_start) < to_minutes(a_end)


def duration_minutes(start: str, end: str) -> int:
    """Duration of an event, wrapping past midnight when end is not after start"""
    total = to_minutes(end) - to_minutes(start)
    if total <= 0:
        total += MINUTES_PER_DAY
    return total


def duration_hours(start: str, end: str) -> float:
    return round(duration_minutes(start, end) / 60, 2)


@dataclass(frozen=True)
class TimeWindow:
    """A same-day [start, end) window with normalized HH:MM bounds"""

    start: str
    end: str

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeWindow":
        start = normalize_time(start)
        end = normalize_time(end)
        if to_minutes(end) <= to_minutes(start):
            raise ValidationError("End time must be after start time")
        return cls(start, end)

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    def overlaps(self, start: str, end: str) -> bool:
        return windows_overlap(self.start, self.end, start, end)

    def same_bounds(self, start: str, end: str) -> bool:
        return self.start == normalize_time(start) and self.end == normalize_time(end)

    def covers(self, start: str, end: str) -> bool:
        return self.start_minutes <= to_minutes(start) and to_minutes(end) <= self.end_minutes


def is_overnight(start: str, end: str) -> bool:
    """
    An event is overnight when it ends before 06:00 or runs longer than 12 hours.

    20:00-03:00 is overnight (ends at 03:00); 08:00-21:00 is overnight (13 hours);
    10:00-14:00 is not.
    """
    end_hour = to_minutes(end) // 60
    return end_hour < OVERNIGHT_END_HOUR or duration_minutes(start, end) > OVERNIGHT_MIN_DURATION_MINUTES


def derive_overnight_pricing(
    start: str,
    end: str,
    estimate: float,
    overnight_surcharge: Optional[float] = None,
    rate: float = OVERNIGHT_SURCHARGE_RATE,
) -> tuple[bool, float]:
    """
    Derive the overnight flag and surcharge for an event window.

    Args:
        start: Event start time (HH:MM)
        end: Event end time (HH:MM)
        estimate: Base price estimate
        overnight_surcharge: Surcharge currently set; a non-zero value is kept
        rate: Fraction of the estimate charged for overnight events

    Returns:
        (is_overnight, overnight_surcharge)
    """
    overnight = is_overnight(start, end)
    if not overnight:
        return False, 0.0

    if overnight_surcharge:
        return True, float(overnight_surcharge)

    return True, round(float(estimate or 0) * rate, 2)
