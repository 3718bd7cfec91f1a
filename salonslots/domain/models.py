"""
Domain models for working windows, services, professionals and bookings.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional

from pendulum import DateTime

MINUTES_PER_DAY = 24 * 60

# Statuses under which an appointment no longer holds its time
CANCELLED_STATUSES = frozenset({"cancelado", "cancelled", "canceled"})

_CLOCK_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

WorkingHoursTemplate = Mapping[str, Optional[Mapping[str, str]]]


def parse_clock(value: str) -> int:
    """
    Parse a wall-clock "HH:MM" string into minutes since midnight.

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected an HH:MM string, got {value!r}")

    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")

    return int(match.group(1)) * 60 + int(match.group(2))


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as zero-padded HH:MM."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_relative_to(moment: datetime, day: date) -> int:
    """
    Wall-clock minutes of ``moment`` counted from midnight of ``day``.

    Negative for moments on earlier days, >= MINUTES_PER_DAY for later days.
    """
    day_offset = moment.date().toordinal() - day.toordinal()
    return day_offset * MINUTES_PER_DAY + moment.hour * 60 + moment.minute


@dataclass(frozen=True)
class WorkingWindow:
    """
    Opening hours of a professional on one day, in minutes since midnight.

    Invariant: 0 <= start < end < MINUTES_PER_DAY.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < self.end < MINUTES_PER_DAY:
            raise ValueError(
                f"Working window {format_clock(self.start)} - {format_clock(self.end)} "
                f"must open before it closes within one day"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "WorkingWindow":
        """Build a window from HH:MM strings."""
        return cls(start=parse_clock(start), end=parse_clock(end))

    def duration_minutes(self) -> int:
        """Return the window length in minutes."""
        return self.end - self.start

    def __str__(self) -> str:
        return f"{format_clock(self.start)} - {format_clock(self.end)}"


@dataclass(frozen=True)
class Service:
    """A bookable service offered by an establishment."""
    id: str
    duration_minutes: int
    price_minor_units: int = 0
    name: str = ""

    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class Professional:
    """
    A professional with the services they perform and their weekly template.

    ``availability`` maps weekday keys to ``{"start": "HH:MM", "end": "HH:MM"}``
    or None for days off.
    """
    id: str
    service_ids: List[str] = field(default_factory=list)
    availability: Optional[Dict[str, Optional[Dict[str, str]]]] = None
    name: str = ""

    def offers(self, service_id: str) -> bool:
        """Check if the professional performs the given service."""
        return service_id in self.service_ids

    def display_name(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class ExistingBooking:
    """
    An appointment already holding a professional's time.
    """
    start: DateTime
    duration_minutes: int
    professional_id: Optional[str] = None
    status: Optional[str] = None

    def is_active(self) -> bool:
        """Cancelled appointments release their time."""
        if self.status is None:
            return True
        return self.status.strip().lower() not in CANCELLED_STATUSES
