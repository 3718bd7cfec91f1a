"""
Resolution of weekly working-hours templates to the window of one date.

Templates are keyed by canonical English weekday names ("monday" ..
"sunday"). A ``WeekdayLocale`` describes other naming conventions a
template may have been authored in, e.g. the Brazilian Portuguese keys
("segunda" .. "domingo") used by the schedule editor.
"""

import logging
import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ConfigurationError
from .models import WorkingHoursTemplate, WorkingWindow

logger = logging.getLogger(__name__)

CANONICAL_DAY_KEYS: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _fold(key: str) -> str:
    """Lowercase, strip accents and whitespace."""
    decomposed = unicodedata.normalize("NFD", key.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


@dataclass(frozen=True)
class WeekdayLocale:
    """
    Weekday naming convention used to key a template.

    ``day_keys`` is ordered Monday first, matching ``date.weekday()``.
    ``suffix`` is dropped from authored keys before matching
    ("terça-feira" -> "terca").
    """
    code: str
    day_keys: Tuple[str, ...]
    suffix: str = ""

    def __post_init__(self):
        if len(self.day_keys) != 7:
            raise ValueError(f"Locale {self.code} must name seven weekdays")

    def key_for(self, day: date) -> str:
        """Template key for the weekday of ``day``."""
        return self.day_keys[day.weekday()]

    def normalize_key(self, raw_key: str) -> str:
        """Fold an authored key onto this locale's spelling."""
        folded = _fold(raw_key)
        if self.suffix and folded.endswith(self.suffix):
            folded = folded[: -len(self.suffix)]
        return folded

    def weekday_index(self, raw_key: str) -> Optional[int]:
        """Return 0 (Monday) .. 6 (Sunday) for an authored key, or None."""
        normalized = self.normalize_key(raw_key)
        try:
            return self.day_keys.index(normalized)
        except ValueError:
            return None


CANONICAL_LOCALE = WeekdayLocale(code="en", day_keys=CANONICAL_DAY_KEYS)

PT_BR_LOCALE = WeekdayLocale(
    code="pt-BR",
    day_keys=("segunda", "terca", "quarta", "quinta", "sexta", "sabado", "domingo"),
    suffix="-feira",
)

LOCALES: Dict[str, WeekdayLocale] = {
    CANONICAL_LOCALE.code: CANONICAL_LOCALE,
    PT_BR_LOCALE.code: PT_BR_LOCALE,
}


def get_locale(code: str) -> WeekdayLocale:
    """
    Look up a registered weekday locale by code (case-insensitive).

    Raises:
        ValueError: If no locale is registered under ``code``
    """
    for known_code, locale in LOCALES.items():
        if known_code.lower() == code.strip().lower():
            return locale
    raise ValueError(
        f"Unknown weekday locale '{code}'. Known locales: {', '.join(LOCALES)}"
    )


class AvailabilityTemplateResolver:
    """
    Maps a calendar date to the working window a template defines for it.
    """

    def __init__(self, locale: WeekdayLocale = CANONICAL_LOCALE):
        self.locale = locale

    def resolve(
        self,
        template: Optional[WorkingHoursTemplate],
        day: date,
        locale: Optional[WeekdayLocale] = None,
    ) -> Optional[WorkingWindow]:
        """
        Resolve the working window for ``day``.

        Args:
            template: Weekday key -> {"start", "end"} mapping, or None
            day: The calendar date being booked
            locale: Naming convention of the template keys

        Returns:
            The working window, or None when the professional is off that day

        Raises:
            ConfigurationError: If the day's entry is malformed
        """
        locale = locale or self.locale

        if not template:
            return None

        entry = self._lookup(template, locale.key_for(day), locale)
        if not entry:
            return None

        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                f"Working hours for {locale.key_for(day)} must be a mapping, got {entry!r}"
            )

        try:
            return WorkingWindow.from_strings(entry["start"], entry["end"])
        except KeyError as exc:
            raise ConfigurationError(
                f"Working hours for {locale.key_for(day)} are missing {exc}"
            ) from exc
        except ValueError as exc:
            raise ConfigurationError(
                f"Working hours for {locale.key_for(day)} are invalid: {exc}"
            ) from exc

    @staticmethod
    def _lookup(template: WorkingHoursTemplate, key: str, locale: WeekdayLocale):
        if key in template:
            return template[key]

        # Tolerate authored spellings such as "Terça-feira" or "SUNDAY"
        for raw_key, value in template.items():
            if isinstance(raw_key, str) and locale.normalize_key(raw_key) == key:
                return value

        return None


def normalize_template(
    raw: WorkingHoursTemplate,
    locale: WeekdayLocale,
) -> Dict[str, Any]:
    """
    Re-key a template authored in ``locale`` onto canonical weekday names.

    Every canonical day is present in the result; days missing from ``raw``
    are closed. Keys that do not name a weekday are dropped with a warning.
    Malformed day entries are carried over unchanged so that resolving them
    still raises ConfigurationError for that day only.
    """
    normalized: Dict[str, Any] = {
        key: None for key in CANONICAL_DAY_KEYS
    }

    for raw_key, value in raw.items():
        index = locale.weekday_index(raw_key) if isinstance(raw_key, str) else None
        if index is None:
            logger.warning("Ignoring unknown weekday key %r for locale %s", raw_key, locale.code)
            continue

        if isinstance(value, Mapping):
            value = dict(value)

        normalized[CANONICAL_DAY_KEYS[index]] = value or None

    return normalized
