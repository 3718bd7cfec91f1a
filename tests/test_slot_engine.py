"""
Tests for the slot engine.
"""

import logging
from datetime import datetime

import pendulum
import pytest

from salonslots.domain.exceptions import PreconditionError
from salonslots.domain.models import ExistingBooking, Professional, Service, parse_clock
from salonslots.domain.slot_engine import SlotEngine, compute_available_slots
from salonslots.domain.template_resolver import PT_BR_LOCALE

TZ = "America/Sao_Paulo"

MONDAY = pendulum.date(2024, 11, 25)
SUNDAY = pendulum.date(2024, 11, 24)

# A moment well before MONDAY, so no today cutoff applies
EARLIER = pendulum.datetime(2024, 11, 20, 8, 0, tz=TZ)

WEEKDAYS = {
    day: {"start": "09:00", "end": "18:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


def _professional(availability=None):
    return Professional(
        id="ana",
        service_ids=["corte"],
        availability=WEEKDAYS if availability is None else availability,
    )


def _service(duration=30):
    return Service(id="corte", duration_minutes=duration, price_minor_units=4500)


def _booking(hour, minute, duration, **kwargs):
    return ExistingBooking(
        start=pendulum.datetime(2024, 11, 25, hour, minute, tz=TZ),
        duration_minutes=duration,
        **kwargs
    )


@pytest.fixture
def engine():
    return SlotEngine(timezone=TZ)


class TestScenarios:
    """Reference booking scenarios."""

    def test_open_day_without_bookings(self, engine):
        """09:00-18:00, 30 minute service: every tick up to 17:30."""
        slots = engine.compute_available_slots(_professional(), _service(30), MONDAY, [], EARLIER)

        assert slots[0] == "09:00"
        assert slots[-1] == "17:30"
        assert len(slots) == 35

    def test_booking_blocks_overlapping_ticks(self, engine):
        """A 10:00 booking excludes 09:45, 10:00 and 10:15 only."""
        bookings = [_booking(10, 0, 30)]

        slots = engine.compute_available_slots(_professional(), _service(30), MONDAY, bookings, EARLIER)

        assert "09:30" in slots
        assert "09:45" not in slots
        assert "10:00" not in slots
        assert "10:15" not in slots
        assert "10:30" in slots
        assert len(slots) == 32

    def test_today_excludes_past_ticks(self, engine):
        """At 14:07 the first offered slot is 14:15."""
        now = pendulum.datetime(2024, 11, 25, 14, 7, tz=TZ)

        slots = engine.compute_available_slots(_professional(), _service(30), MONDAY, [], now)

        assert slots[0] == "14:15"
        assert slots[-1] == "17:30"
        assert len(slots) == 14

    def test_closed_day_is_empty(self, engine):
        """A day off yields nothing regardless of bookings."""
        bookings = [_booking(10, 0, 30)]

        assert engine.compute_available_slots(_professional(), _service(), SUNDAY, bookings, EARLIER) == []
        assert engine.compute_available_slots(_professional(), _service(), SUNDAY, [], EARLIER) == []

    def test_service_exactly_filling_window(self, engine):
        """A 60 minute service fits a 09:00-10:00 window only at 09:00."""
        professional = _professional({"monday": {"start": "09:00", "end": "10:00"}})

        slots = engine.compute_available_slots(professional, _service(60), MONDAY, [], EARLIER)

        assert slots == ["09:00"]

    def test_service_longer_than_window(self, engine):
        professional = _professional({"monday": {"start": "09:00", "end": "09:45"}})

        assert engine.compute_available_slots(professional, _service(60), MONDAY, [], EARLIER) == []


class TestProperties:
    """Invariants that hold for any input."""

    BOOKING_SETS = [
        [],
        [(9, 0, 30)],
        [(9, 10, 20), (11, 0, 90)],
        [(12, 0, 60), (13, 0, 15), (17, 45, 15)],
        [(9, 0, 540)],
        [(10, 5, 7), (10, 40, 5), (15, 55, 50)],
    ]

    @pytest.mark.parametrize("booking_set", BOOKING_SETS)
    @pytest.mark.parametrize("duration", [15, 30, 45, 90])
    def test_no_double_booking_and_fit_within_window(self, engine, booking_set, duration):
        bookings = [_booking(h, m, d) for h, m, d in booking_set]

        slots = engine.compute_available_slots(_professional(), _service(duration), MONDAY, bookings, EARLIER)

        for slot in slots:
            start = parse_clock(slot)
            end = start + duration
            assert start >= 9 * 60
            assert end <= 18 * 60
            for h, m, d in booking_set:
                booked_start = h * 60 + m
                assert not (start < booked_start + d and end > booked_start)

    def test_slots_are_ascending_and_on_grid(self, engine):
        slots = engine.compute_available_slots(
            _professional(), _service(45), MONDAY, [_booking(12, 0, 60)], EARLIER
        )
        minutes = [parse_clock(slot) for slot in slots]

        assert minutes == sorted(minutes)
        assert all((m - 9 * 60) % 15 == 0 for m in minutes)

    def test_idempotent(self, engine):
        bookings = [_booking(10, 0, 30), _booking(15, 0, 45)]
        now = pendulum.datetime(2024, 11, 25, 9, 50, tz=TZ)

        first = engine.compute_available_slots(_professional(), _service(), MONDAY, bookings, now)
        second = engine.compute_available_slots(_professional(), _service(), MONDAY, bookings, now)

        assert first == second

    def test_adjacent_bookings_leave_touching_slot(self, engine):
        """A gap exactly the size of the service stays bookable."""
        bookings = [_booking(9, 0, 60), _booking(10, 30, 60)]

        slots = engine.compute_available_slots(_professional(), _service(30), MONDAY, bookings, EARLIER)

        assert slots[0] == "10:00"
        assert "10:15" not in slots
        assert slots[1] == "11:30"


class TestTodayAndHorizon:
    """Tests for past dates, notice and booking horizon."""

    def test_past_date_is_empty(self, engine):
        now = pendulum.datetime(2024, 11, 26, 8, 0, tz=TZ)

        assert engine.compute_available_slots(_professional(), _service(), MONDAY, [], now) == []

    def test_naive_now_is_read_in_engine_timezone(self, engine):
        slots = engine.compute_available_slots(
            _professional(), _service(), MONDAY, [], datetime(2024, 11, 25, 14, 7)
        )

        assert slots[0] == "14:15"

    def test_now_in_other_timezone(self, engine):
        """17:07 UTC is 14:07 in Sao Paulo."""
        now = pendulum.datetime(2024, 11, 25, 17, 7, tz="UTC")

        slots = engine.compute_available_slots(_professional(), _service(), MONDAY, [], now)

        assert slots[0] == "14:15"

    def test_after_closing_today_is_empty(self, engine):
        now = pendulum.datetime(2024, 11, 25, 17, 40, tz=TZ)

        assert engine.compute_available_slots(_professional(), _service(), MONDAY, [], now) == []

    def test_minimum_notice(self):
        engine = SlotEngine(timezone=TZ, min_notice_minutes=60)
        now = pendulum.datetime(2024, 11, 25, 14, 7, tz=TZ)

        slots = engine.compute_available_slots(_professional(), _service(), MONDAY, [], now)

        assert slots[0] == "15:15"

    def test_minimum_notice_spills_into_next_day(self):
        engine = SlotEngine(timezone=TZ, min_notice_minutes=12 * 60)
        now = pendulum.datetime(2024, 11, 24, 22, 0, tz=TZ)

        slots = engine.compute_available_slots(_professional(), _service(), MONDAY, [], now)

        assert slots[0] == "10:00"

    def test_booking_horizon(self):
        engine = SlotEngine(timezone=TZ, advance_booking_days=3)
        now = pendulum.datetime(2024, 11, 25, 8, 0, tz=TZ)
        thursday = pendulum.date(2024, 11, 28)
        friday = pendulum.date(2024, 11, 29)

        assert engine.compute_available_slots(_professional(), _service(), thursday, [], now) != []
        assert engine.compute_available_slots(_professional(), _service(), friday, [], now) == []

    def test_datetime_day_is_reduced_to_date(self, engine):
        day = pendulum.datetime(2024, 11, 25, 23, 0, tz=TZ)

        slots = engine.compute_available_slots(_professional(), _service(), day, [], EARLIER)

        assert len(slots) == 35


class TestFailureSemantics:
    """Business failures degrade to no slots; contract violations raise."""

    def test_malformed_template_is_closed(self, engine, caplog):
        professional = _professional({"monday": {"start": "9h", "end": "18:00"}})

        with caplog.at_level(logging.WARNING):
            slots = engine.compute_available_slots(professional, _service(), MONDAY, [], EARLIER)

        assert slots == []
        assert "Treating 2024-11-25 as closed" in caplog.text

    def test_professional_without_template(self, engine):
        professional = Professional(id="ana", service_ids=["corte"])

        assert engine.compute_available_slots(professional, _service(), MONDAY, [], EARLIER) == []

    def test_missing_booking_data(self, engine, caplog):
        with caplog.at_level(logging.WARNING):
            slots = engine.compute_available_slots(_professional(), _service(), MONDAY, None, EARLIER)

        assert slots == []
        assert "No booking data" in caplog.text

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration(self, engine, duration):
        with pytest.raises(PreconditionError, match="positive duration"):
            engine.compute_available_slots(_professional(), _service(duration), MONDAY, [], EARLIER)

    def test_missing_professional(self, engine):
        with pytest.raises(PreconditionError):
            engine.compute_available_slots(None, _service(), MONDAY, [], EARLIER)

    def test_missing_now(self, engine):
        with pytest.raises(PreconditionError):
            engine.compute_available_slots(_professional(), _service(), MONDAY, [], None)

    def test_invalid_engine_settings(self):
        with pytest.raises(PreconditionError):
            SlotEngine(granularity_minutes=0)
        with pytest.raises(PreconditionError):
            SlotEngine(min_notice_minutes=-5)


class TestOptions:
    """Tests for granularity, locale and booking filtering."""

    def test_custom_granularity(self):
        engine = SlotEngine(granularity_minutes=30, timezone=TZ)

        slots = engine.compute_available_slots(_professional(), _service(30), MONDAY, [], EARLIER)

        assert slots[:3] == ["09:00", "09:30", "10:00"]
        assert len(slots) == 18

    def test_pt_br_template(self):
        engine = SlotEngine(timezone=TZ, locale=PT_BR_LOCALE)
        professional = _professional({"segunda": {"start": "10:00", "end": "12:00"}, "domingo": None})

        slots = engine.compute_available_slots(professional, _service(60), MONDAY, [], EARLIER)

        assert slots == ["10:00", "10:15", "10:30", "10:45", "11:00"]
        assert engine.compute_available_slots(professional, _service(60), SUNDAY, [], EARLIER) == []

    def test_cancelled_and_foreign_bookings_do_not_block(self, engine):
        bookings = [
            _booking(10, 0, 30, status="cancelado"),
            _booking(11, 0, 30, professional_id="bruno"),
        ]

        slots = engine.compute_available_slots(_professional(), _service(30), MONDAY, bookings, EARLIER)

        assert len(slots) == 35

    def test_module_level_helper(self):
        slots = compute_available_slots(
            _professional(), _service(30), MONDAY, [_booking(10, 0, 30)], EARLIER, timezone=TZ
        )

        assert len(slots) == 32


class TestIsSlotAvailable:
    """Tests for re-validating a chosen start time."""

    def test_open_and_blocked_times(self, engine):
        bookings = [_booking(10, 0, 30)]

        assert engine.is_slot_available(_professional(), _service(), MONDAY, "09:30", bookings, EARLIER)
        assert engine.is_slot_available(_professional(), _service(), MONDAY, "9:30", bookings, EARLIER)
        assert not engine.is_slot_available(_professional(), _service(), MONDAY, "09:45", bookings, EARLIER)

    def test_off_grid_time_is_not_available(self, engine):
        assert not engine.is_slot_available(_professional(), _service(), MONDAY, "09:05", [], EARLIER)

    def test_malformed_time(self, engine):
        with pytest.raises(PreconditionError):
            engine.is_slot_available(_professional(), _service(), MONDAY, "25:00", [], EARLIER)
