"""
Expansion of a working window into candidate start times.
"""

from typing import List

from .exceptions import PreconditionError
from .models import WorkingWindow

DEFAULT_GRANULARITY_MINUTES = 15


class SlotGenerator:
    """
    Produces every start time on a fixed grid inside a working window.

    Service duration and conflicts are not considered here.
    """

    def __init__(self, granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES):
        if isinstance(granularity_minutes, bool) or not isinstance(granularity_minutes, int):
            raise PreconditionError(f"Granularity must be an integer, got {granularity_minutes!r}")
        if granularity_minutes <= 0:
            raise PreconditionError(f"Granularity must be positive, got {granularity_minutes}")
        self.granularity_minutes = granularity_minutes

    def generate(self, window: WorkingWindow) -> List[int]:
        """
        Return candidate starts (minutes since midnight) in ascending order.

        Windows shorter than one grid step yield no candidates.
        """
        if window.duration_minutes() < self.granularity_minutes:
            return []

        return list(range(window.start, window.end, self.granularity_minutes))
