"""
Application services for offering appointment slots.

The service fetches a professional's bookings through a data source
adapter and delegates the availability rules to the domain-level
``SlotEngine``. Keeping the data source behind a small protocol lets the
JSON store, a live database query or a test stub be plugged in.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

import pendulum

from ..domain.exceptions import DataSourceError
from ..domain.models import ExistingBooking, Professional, Service
from ..domain.slot_engine import SlotEngine

logger = logging.getLogger(__name__)


class BookingSourceProtocol(Protocol):
    """Protocol describing the booking lookup needed by the service."""

    async def get_bookings(
        self,
        professional_id: str,
        day: date,
    ) -> List[ExistingBooking]:
        """Return bookings of the professional around ``day``."""


def professionals_for_service(
    service: Service,
    professionals: Sequence[Professional],
) -> List[Professional]:
    """Keep the professionals who perform ``service``, in their given order."""
    return [professional for professional in professionals if professional.offers(service.id)]


class AvailabilityService:
    """
    Orchestrates booking retrieval and slot computation.
    """

    def __init__(
        self,
        booking_source: BookingSourceProtocol,
        slot_engine: SlotEngine,
    ) -> None:
        self._booking_source = booking_source
        self._slot_engine = slot_engine

    async def find_slots(
        self,
        *,
        professional: Professional,
        service: Service,
        day: date,
        now: Optional[datetime] = None,
    ) -> List[str]:
        """
        Fetch the professional's bookings and compute the open start times.

        A failing data source degrades to an empty list.
        """
        now = now or pendulum.now(self._slot_engine.timezone)
        bookings = await self.fetch_bookings(professional=professional, day=day)

        return self._slot_engine.compute_available_slots(
            professional, service, day, bookings, now
        )

    async def is_slot_available(
        self,
        *,
        professional: Professional,
        service: Service,
        day: date,
        start_time: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Re-validate a chosen start time against a fresh read of bookings.
        """
        now = now or pendulum.now(self._slot_engine.timezone)
        bookings = await self.fetch_bookings(professional=professional, day=day)

        return self._slot_engine.is_slot_available(
            professional, service, day, start_time, bookings, now
        )

    async def fetch_bookings(
        self,
        *,
        professional: Professional,
        day: date,
    ) -> Optional[List[ExistingBooking]]:
        """Fetch bookings, returning None when the source is unavailable."""
        try:
            return await self._booking_source.get_bookings(professional.id, day)
        except DataSourceError as exc:
            logger.warning(
                "Could not load bookings for professional %s on %s: %s",
                professional.id,
                day.isoformat(),
                exc,
            )
            return None

    def professionals_for_service(
        self,
        service: Service,
        professionals: Sequence[Professional],
    ) -> List[Professional]:
        """Professionals eligible to perform ``service``."""
        return professionals_for_service(service, professionals)
