"""
Core business logic for computing bookable appointment slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). Every booking surface goes through ``SlotEngine`` so
that displayed availability follows a single set of rules.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

import pendulum

from .conflict_filter import ConflictFilter, booked_intervals_for_day
from .exceptions import ConfigurationError, PreconditionError
from .models import (
    MINUTES_PER_DAY,
    ExistingBooking,
    Professional,
    Service,
    WorkingWindow,
    format_clock,
    minutes_relative_to,
    parse_clock,
)
from .slot_generator import DEFAULT_GRANULARITY_MINUTES, SlotGenerator
from .template_resolver import (
    CANONICAL_LOCALE,
    AvailabilityTemplateResolver,
    WeekdayLocale,
    get_locale,
)

logger = logging.getLogger(__name__)


class SlotEngine:
    """
    Computes the start times at which a professional can take a service.

    Algorithm:
    1. Resolve the professional's working window for the date
    2. Generate candidate starts on the granularity grid
    3. Work out the earliest allowed start when the date is today
    4. Drop candidates that overrun the window, lie in the past or
       overlap an existing booking
    5. Format the survivors as HH:MM
    """

    def __init__(
        self,
        granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
        timezone: str = "UTC",
        locale: WeekdayLocale = CANONICAL_LOCALE,
        min_notice_minutes: int = 0,
        advance_booking_days: Optional[int] = None,
    ):
        if min_notice_minutes < 0:
            raise PreconditionError(f"min_notice_minutes cannot be negative, got {min_notice_minutes}")
        if advance_booking_days is not None and advance_booking_days < 0:
            raise PreconditionError(f"advance_booking_days cannot be negative, got {advance_booking_days}")

        self.timezone = timezone
        self.min_notice_minutes = min_notice_minutes
        self.advance_booking_days = advance_booking_days
        self.resolver = AvailabilityTemplateResolver(locale=locale)
        self.generator = SlotGenerator(granularity_minutes=granularity_minutes)
        self.conflict_filter = ConflictFilter()

    @classmethod
    def from_config(cls, config, locale: Optional[WeekdayLocale] = None) -> "SlotEngine":
        """
        Build an engine from an ``AppConfig``.

        ``locale`` overrides the configured weekday locale, e.g. for templates
        a data source has already re-keyed onto canonical names.
        """
        return cls(
            granularity_minutes=config.booking.granularity_minutes,
            timezone=config.timezone,
            locale=locale or get_locale(config.weekday_locale),
            min_notice_minutes=config.booking.min_notice_minutes,
            advance_booking_days=config.booking.advance_booking_days,
        )

    @property
    def granularity_minutes(self) -> int:
        return self.generator.granularity_minutes

    def compute_available_slots(
        self,
        professional: Professional,
        service: Service,
        day: date,
        bookings: Optional[Iterable[ExistingBooking]],
        now: datetime,
        locale: Optional[WeekdayLocale] = None,
    ) -> List[str]:
        """
        Compute the bookable start times for one professional, service and date.

        Args:
            professional: The professional being booked
            service: The requested service
            day: The calendar date being booked
            bookings: Existing bookings of the professional around ``day``.
                None means the bookings could not be fetched.
            now: Current moment; naive values are read in the engine timezone
            locale: Naming convention of the template keys

        Returns:
            Ascending list of "HH:MM" strings, empty when nothing is bookable

        Raises:
            PreconditionError: If the inputs violate the engine's contract
        """
        day = self._validate(professional, service, day, now)

        if bookings is None:
            logger.warning(
                "No booking data for professional %s on %s; reporting no slots",
                professional.id,
                day.isoformat(),
            )
            return []

        window = self.resolve_window(professional, day, locale)
        if window is None:
            return []

        today_cutoff = self._today_cutoff(day, now)
        if today_cutoff is not None and today_cutoff >= MINUTES_PER_DAY:
            return []

        candidates = self.generator.generate(window)
        booked = booked_intervals_for_day(
            bookings, day, self.timezone, professional_id=professional.id
        )
        available = self.conflict_filter.filter(
            candidates,
            service.duration_minutes,
            window,
            booked,
            today_cutoff,
        )

        logger.debug(
            "Professional %s on %s (%s): %d of %d candidates bookable for %s",
            professional.id,
            day.isoformat(),
            window,
            len(available),
            len(candidates),
            service.id,
        )

        return [format_clock(start) for start in available]

    def is_slot_available(
        self,
        professional: Professional,
        service: Service,
        day: date,
        start_time: str,
        bookings: Optional[Iterable[ExistingBooking]],
        now: datetime,
        locale: Optional[WeekdayLocale] = None,
    ) -> bool:
        """
        Re-check a single chosen start time with the same rules.

        Meant for the moment a booking is committed, against a fresh read
        of the professional's bookings.
        """
        try:
            parse_clock(start_time)
        except ValueError as exc:
            raise PreconditionError(str(exc)) from exc

        slots = self.compute_available_slots(
            professional, service, day, bookings, now, locale=locale
        )
        return format_clock(parse_clock(start_time)) in slots

    def resolve_window(
        self,
        professional: Professional,
        day: date,
        locale: Optional[WeekdayLocale] = None,
    ) -> Optional[WorkingWindow]:
        """
        Resolve the working window, treating malformed entries as a day off.
        """
        try:
            return self.resolver.resolve(professional.availability, day, locale)
        except ConfigurationError as exc:
            logger.warning(
                "Treating %s as closed for professional %s: %s",
                day.isoformat(),
                professional.id,
                exc,
            )
            return None

    def _today_cutoff(self, day: date, now: datetime) -> Optional[int]:
        """
        Earliest allowed start on ``day`` in minutes since its midnight.

        None when every start on ``day`` is in the future; MINUTES_PER_DAY or
        more when the whole day is in the past or beyond the booking horizon.
        """
        local_now = pendulum.instance(now, tz=self.timezone).in_timezone(self.timezone)

        if self.advance_booking_days is not None:
            horizon = local_now.date() + timedelta(days=self.advance_booking_days)
            if day > horizon:
                return MINUTES_PER_DAY

        earliest = local_now.add(minutes=self.min_notice_minutes)
        cutoff = minutes_relative_to(earliest, day)

        return cutoff if cutoff > 0 else None

    @staticmethod
    def _validate(professional, service, day, now) -> date:
        if professional is None:
            raise PreconditionError("A professional is required")
        if service is None:
            raise PreconditionError("A service is required")
        if day is None:
            raise PreconditionError("A date is required")
        if now is None:
            raise PreconditionError("The current time is required")

        duration = service.duration_minutes
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise PreconditionError(
                f"Service {service.id} must have a positive duration, got {duration!r}"
            )

        # Accept datetimes for convenience; only the calendar date matters
        if isinstance(day, datetime):
            return day.date()
        return day


def compute_available_slots(
    professional: Professional,
    service: Service,
    day: date,
    bookings: Optional[Iterable[ExistingBooking]],
    now: datetime,
    locale: WeekdayLocale = CANONICAL_LOCALE,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    timezone: str = "UTC",
) -> List[str]:
    """Compute available slots with a one-off engine."""
    engine = SlotEngine(
        granularity_minutes=granularity_minutes,
        timezone=timezone,
        locale=locale,
    )
    return engine.compute_available_slots(professional, service, day, bookings, now)
