"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflict_filter import BookedInterval, ConflictFilter, booked_intervals_for_day
from .exceptions import ConfigurationError, DataSourceError, PreconditionError, SlotEngineError
from .models import ExistingBooking, Professional, Service, WorkingWindow
from .slot_engine import SlotEngine, compute_available_slots
from .slot_generator import SlotGenerator
from .template_resolver import (
    CANONICAL_LOCALE,
    PT_BR_LOCALE,
    AvailabilityTemplateResolver,
    WeekdayLocale,
    get_locale,
    normalize_template,
)

__all__ = [
    "BookedInterval",
    "ConflictFilter",
    "booked_intervals_for_day",
    "ConfigurationError",
    "DataSourceError",
    "PreconditionError",
    "SlotEngineError",
    "ExistingBooking",
    "Professional",
    "Service",
    "WorkingWindow",
    "SlotEngine",
    "compute_available_slots",
    "SlotGenerator",
    "CANONICAL_LOCALE",
    "PT_BR_LOCALE",
    "AvailabilityTemplateResolver",
    "WeekdayLocale",
    "get_locale",
    "normalize_template",
]
