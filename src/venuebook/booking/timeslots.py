"""Canonical date and time-of-day handling.

Wall-clock times arrive in several shapes ("18:00", "6:00 PM", "06:00pm",
"18:00:00"). They are parsed once at the boundary into minutes since
midnight and compared as integers from then on. Dates are compared as
calendar dates only; an ISO timestamp contributes its literal date part
and is never shifted between time zones.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time

from venuebook.core.exceptions import TimeFormatError, ValidationError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(
    r"""^\s*
    (?P<hour>\d{1,2})
    (?::(?P<minute>\d{2}))?
    (?::(?P<second>\d{2})(?:\.\d+)?)?
    \s*(?P<meridiem>[AaPp])\.?\s*[Mm]\.?
    \s*$|^\s*
    (?P<hour24>\d{1,2}):(?P<minute24>\d{2})(?::(?P<second24>\d{2})(?:\.\d+)?)?
    \s*$""",
    re.VERBOSE,
)


def parse_time(
    value: str | time | int,
    *,
    field: str | None = None,
    end_of_day: bool = False,
) -> int:
    """Parse a wall-clock time into minutes since midnight.

    Accepts 24-hour "HH:MM" (optionally with seconds), 12-hour "h AM",
    "h:mm PM" in any case with optional dots, ``datetime.time`` and an
    integer minute count. Seconds are truncated.

    Args:
        value: The raw time
        field: Input field name, for error reporting
        end_of_day: Read midnight ("00:00", "24:00", "12 AM") as 1440, the
            end of the day, which is what it means as an end time

    Raises:
        TimeFormatError: If the value is not a recognisable time
    """
    if isinstance(value, bool):
        raise TimeFormatError(value, field=field)

    if isinstance(value, int):
        minutes = value
        if not 0 <= minutes <= MINUTES_PER_DAY:
            raise TimeFormatError(value, field=field)
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        minutes = _parse_time_string(value, field)
    else:
        raise TimeFormatError(value, field=field)

    if end_of_day and minutes == 0:
        return MINUTES_PER_DAY
    if not end_of_day and minutes == MINUTES_PER_DAY:
        raise TimeFormatError(value, field=field)
    return minutes


def _parse_time_string(value: str, field: str | None) -> int:
    match = _TIME_PATTERN.match(value)
    if match is None:
        raise TimeFormatError(value, field=field)

    if match.group("meridiem"):
        hour = int(match.group("hour"))
        minute = int(match.group("minute") or 0)
        if not 1 <= hour <= 12 or minute > 59:
            raise TimeFormatError(value, field=field)
        hour = hour % 12
        if match.group("meridiem").lower() == "p":
            hour += 12
    else:
        hour = int(match.group("hour24"))
        minute = int(match.group("minute24"))
        if hour == 24 and minute == 0:
            return MINUTES_PER_DAY
        if hour > 23 or minute > 59:
            raise TimeFormatError(value, field=field)

    return hour * 60 + minute


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as "HH:MM" (1440 renders as "24:00")."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_event_date(value: str | date | datetime, *, field: str | None = "event_date") -> date:
    """Reduce a date, datetime or ISO string to its calendar date.

    Raises:
        TimeFormatError: If the value is not a recognisable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise TimeFormatError(value, field=field) from None
    raise TimeFormatError(value, field=field)


@dataclass(frozen=True, order=True)
class TimeSlot:
    """A half-open interval ``[start_minute, end_minute)`` within one day."""

    start_minute: int
    end_minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.start_minute < MINUTES_PER_DAY:
            raise ValidationError(
                f"start time out of range: {self.start_minute}", field="start_time"
            )
        if not 0 < self.end_minute <= MINUTES_PER_DAY:
            raise ValidationError(f"end time out of range: {self.end_minute}", field="end_time")
        if self.start_minute >= self.end_minute:
            raise ValidationError(
                f"start time {format_minutes(self.start_minute)} must be before end time "
                f"{format_minutes(self.end_minute)}",
                field="end_time",
            )

    @classmethod
    def from_times(cls, start: str | time | int, end: str | time | int) -> "TimeSlot":
        """Build a slot from raw start/end values."""
        return cls(
            parse_time(start, field="start_time"),
            parse_time(end, field="end_time", end_of_day=True),
        )

    def overlaps(self, other: "TimeSlot") -> bool:
        """Half-open overlap: touching slots do not overlap."""
        return self.start_minute < other.end_minute and other.start_minute < self.end_minute

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def start_time(self) -> str:
        return format_minutes(self.start_minute)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end_minute)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"
