"""
File-backed data source for professionals, services and appointments.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.exceptions import DataSourceError
from ..domain.models import ExistingBooking, Professional, Service
from ..domain.template_resolver import CANONICAL_LOCALE, WeekdayLocale, normalize_template

logger = logging.getLogger(__name__)


class ServiceRecord(BaseModel):
    """Service document as stored by the booking application."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    duration: int = Field(alias="durationMinutes")
    price: int = Field(default=0, alias="priceMinorUnits")

    def to_domain(self) -> Service:
        return Service(
            id=self.id,
            name=self.name,
            duration_minutes=self.duration,
            price_minor_units=self.price,
        )


class ProfessionalRecord(BaseModel):
    """
    Professional document; ``availability`` is keyed by weekday name.

    Day entries are kept as authored. A malformed day only closes that day
    when the engine resolves it.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    service_ids: List[str] = Field(default_factory=list, alias="serviceIds")
    availability: Optional[Dict[str, Any]] = None

    def to_domain(self, locale: WeekdayLocale = CANONICAL_LOCALE) -> Professional:
        availability = None
        if self.availability is not None:
            availability = dict(self.availability)
            if locale is not CANONICAL_LOCALE:
                availability = normalize_template(availability, locale)
        return Professional(
            id=self.id,
            name=self.name,
            service_ids=list(self.service_ids),
            availability=availability,
        )


class AppointmentRecord(BaseModel):
    """Appointment document holding a professional's time."""
    model_config = ConfigDict(populate_by_name=True)

    professional_id: str = Field(alias="professionalId")
    date_time: str = Field(alias="dateTime")
    duration: int
    status: Optional[str] = None

    def to_domain(self, timezone: str) -> ExistingBooking:
        start = pendulum.parse(self.date_time, tz=timezone)
        if not isinstance(start, pendulum.DateTime):
            raise ValueError(f"expected a date and time, got {type(start).__name__}")

        return ExistingBooking(
            start=start,
            duration_minutes=self.duration,
            professional_id=self.professional_id,
            status=self.status,
        )


class DataFile(BaseModel):
    services: List[ServiceRecord] = Field(default_factory=list)
    professionals: List[ProfessionalRecord] = Field(default_factory=list)
    appointments: List[AppointmentRecord] = Field(default_factory=list)


class JsonDataStore:
    """
    Loads an establishment's data from a JSON export.

    The file holds three lists, ``services``, ``professionals`` and
    ``appointments``, using the field names of the booking application's
    documents (``serviceIds``, ``dateTime``, ``duration``...).
    """

    def __init__(
        self,
        data_file: Path,
        timezone: str = "America/Sao_Paulo",
        locale: WeekdayLocale = CANONICAL_LOCALE,
    ):
        """
        Initialize the store.

        Args:
            data_file: Path to the JSON export
            timezone: IANA timezone used for appointment times without offset
            locale: Weekday naming of the availability templates; they are
                re-keyed onto canonical weekday names when loaded

        Raises:
            DataSourceError: If the file is missing or invalid
        """
        self.data_file = Path(data_file)
        self.timezone = timezone
        self.locale = locale
        self._data = self._load()

    def _load(self) -> DataFile:
        if not self.data_file.exists():
            raise DataSourceError(f"Data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise DataSourceError(f"Could not read {self.data_file}: {exc}") from exc

        try:
            return DataFile.model_validate(raw)
        except ValidationError as exc:
            raise DataSourceError(f"Invalid data in {self.data_file}: {exc}") from exc

    def list_services(self) -> List[Service]:
        return [record.to_domain() for record in self._data.services]

    def list_professionals(self) -> List[Professional]:
        return [record.to_domain(self.locale) for record in self._data.professionals]

    def find_service(self, identifier: str) -> Optional[Service]:
        """Find a service by id or name (case-insensitive)."""
        for service in self.list_services():
            if identifier.lower() in (service.id.lower(), service.name.lower()):
                return service
        return None

    def find_professional(self, identifier: str) -> Optional[Professional]:
        """Find a professional by id or name (case-insensitive)."""
        for professional in self.list_professionals():
            if identifier.lower() in (professional.id.lower(), professional.name.lower()):
                return professional
        return None

    async def get_bookings(self, professional_id: str, day: date) -> List[ExistingBooking]:
        """
        Return the appointments of a professional that touch ``day``.

        The previous day is included so bookings running past midnight
        still block the early morning.
        """
        bookings: List[ExistingBooking] = []
        first_day = day.toordinal() - 1

        for record in self._data.appointments:
            if record.professional_id != professional_id:
                continue

            try:
                booking = record.to_domain(self.timezone)
            except ValueError as exc:
                raise DataSourceError(
                    f"Invalid appointment time {record.date_time!r}: {exc}"
                ) from exc

            local_day = booking.start.in_timezone(self.timezone).date()
            if first_day <= local_day.toordinal() <= day.toordinal():
                bookings.append(booking)

        logger.debug(
            "Loaded %d bookings for professional %s on %s",
            len(bookings),
            professional_id,
            day.isoformat(),
        )
        return bookings
