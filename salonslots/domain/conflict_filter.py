"""
Narrowing of candidate start times against closing time, the present
moment and existing bookings.

Intervals are half-open: a booking ending at 10:00 does not block a
service starting at 10:00.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

import pendulum

from .models import MINUTES_PER_DAY, ExistingBooking, WorkingWindow, minutes_relative_to

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookedInterval:
    """An occupied [start, end) interval in minutes since the day's midnight."""
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        """Check if [start, end) intersects this interval."""
        return start < self.end and end > self.start


def booked_intervals_for_day(
    bookings: Iterable[ExistingBooking],
    day: date,
    timezone: str,
    professional_id: Optional[str] = None,
) -> List[BookedInterval]:
    """
    Project bookings onto ``day`` in the establishment's timezone.

    Cancelled bookings, bookings of other professionals and bookings that
    do not touch ``day`` are left out. Bookings crossing midnight are
    clipped to the day.
    """
    intervals: List[BookedInterval] = []

    for booking in bookings:
        if not booking.is_active():
            continue
        if (
            professional_id is not None
            and booking.professional_id is not None
            and booking.professional_id != professional_id
        ):
            continue
        if booking.duration_minutes <= 0:
            logger.debug("Skipping booking at %s with no duration", booking.start)
            continue

        local_start = pendulum.instance(booking.start, tz=timezone).in_timezone(timezone)
        start = minutes_relative_to(local_start, day)
        end = start + booking.duration_minutes

        if end <= 0 or start >= MINUTES_PER_DAY:
            continue

        intervals.append(
            BookedInterval(start=max(start, 0), end=min(end, MINUTES_PER_DAY))
        )

    return sorted(intervals, key=lambda interval: interval.start)


class ConflictFilter:
    """
    Removes candidates that cannot host the full service.

    A candidate ``t`` is rejected when
    1. ``t + duration`` runs past the window's closing time,
    2. ``t`` lies before the today cutoff (when one applies), or
    3. ``[t, t + duration)`` overlaps a booked interval.
    """

    def filter(
        self,
        candidates: Sequence[int],
        service_duration: int,
        window: WorkingWindow,
        bookings: Sequence[BookedInterval],
        today_cutoff: Optional[int] = None,
    ) -> List[int]:
        """
        Keep the candidates that pass every check, preserving their order.

        Args:
            candidates: Start times in minutes since midnight, ascending
            service_duration: Length of the requested service in minutes
            window: The professional's working window for the day
            bookings: Occupied intervals on the same day
            today_cutoff: Earliest allowed start when the day is today, else None

        Returns:
            The accepted start times
        """
        return [
            start
            for start in candidates
            if self.accepts(start, service_duration, window, bookings, today_cutoff)
        ]

    @staticmethod
    def accepts(
        start: int,
        service_duration: int,
        window: WorkingWindow,
        bookings: Sequence[BookedInterval],
        today_cutoff: Optional[int] = None,
    ) -> bool:
        """Check one candidate start against all rejection rules."""
        end = start + service_duration

        if start < window.start or end > window.end:
            return False

        if today_cutoff is not None and start < today_cutoff:
            return False

        return not any(booking.overlaps(start, end) for booking in bookings)
