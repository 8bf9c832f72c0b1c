"""
Tests for AvailabilityResolver.
"""

from datetime import datetime, timedelta

import pytest

from slot_engine.services.slots import AvailabilityResolver, BusinessSchedule
from slot_engine.services.slots.exceptions import SlotConfigError
from slot_engine.services.slots.state import utcnow

from conftest import BUSINESS_ID, OTHER_BUSINESS_ID, TARGET_DATE


def _windows(slots):
    return [(s.start_time, s.end_time) for s in slots]


class TestGetAvailableSlots:

    def test_generates_on_first_request(self, engine, hours):
        assert not engine.store.has_slots(BUSINESS_ID, TARGET_DATE)

        slots = engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, hours)

        assert len(slots) == 18
        assert _windows(slots) == list(engine.template_cache.get_template(hours))
        assert all(s.business_id == BUSINESS_ID and s.date == TARGET_DATE for s in slots)

    def test_booked_and_held_slots_are_hidden(self, engine, hours, generated_day):
        booked, held = generated_day[2], generated_day[5]
        engine.reservations.hold_slot(booked.id, BUSINESS_ID)
        engine.reservations.confirm(booked.id, BUSINESS_ID)
        engine.reservations.hold_slot(held.id, BUSINESS_ID)

        slots = engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, hours)

        ids = {s.id for s in slots}
        assert len(slots) == 16
        assert booked.id not in ids
        assert held.id not in ids
        assert _windows(slots) == sorted(_windows(slots))

    def test_expired_hold_visible_before_sweep(self, engine, hours, generated_day):
        slot = generated_day[0]
        past = utcnow() - timedelta(minutes=15)
        engine.reservations.hold_slot(slot.id, BUSINESS_ID, timedelta(minutes=10), now=past)

        slots = engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, hours)

        assert slot.id in {s.id for s in slots}
        # No write happened on the read path
        assert engine.store.get_slot(slot.id, BUSINESS_ID).status == "reserved"

    def test_sweep_on_read(self, engine, hours, generated_day):
        resolver = AvailabilityResolver(engine.store, engine.generator, sweep_on_read=True)
        slot = generated_day[0]
        past = utcnow() - timedelta(minutes=15)
        engine.reservations.hold_slot(slot.id, BUSINESS_ID, timedelta(minutes=10), now=past)

        resolver.get_available_slots(BUSINESS_ID, TARGET_DATE, hours)

        assert engine.store.get_slot(slot.id, BUSINESS_ID).status == "available"

    def test_missing_config_rejected_before_generation(self, engine):
        with pytest.raises(SlotConfigError):
            engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, None)
        assert not engine.store.has_slots(BUSINESS_ID, TARGET_DATE)

    def test_other_business_unaffected(self, engine, hours, generated_day):
        engine.reservations.hold_slot(generated_day[0].id, BUSINESS_ID)

        slots = engine.availability.get_available_slots(OTHER_BUSINESS_ID, TARGET_DATE, hours)

        assert len(slots) == 18
        assert all(s.business_id == OTHER_BUSINESS_ID for s in slots)


class TestLocalNow:

    def test_started_windows_hidden_today(self, engine, hours):
        local_now = datetime.combine(TARGET_DATE, datetime.min.time()).replace(hour=12, minute=10)

        slots = engine.availability.get_available_slots(
            BUSINESS_ID, TARGET_DATE, hours, local_now=local_now
        )

        assert slots[0].start_time == "12:30:00"
        assert len(slots) == 11

    def test_past_day_has_nothing(self, engine, hours):
        local_now = datetime.combine(TARGET_DATE + timedelta(days=1), datetime.min.time())
        assert engine.availability.get_available_slots(
            BUSINESS_ID, TARGET_DATE, hours, local_now=local_now
        ) == []

    def test_future_day_untouched(self, engine, hours):
        local_now = datetime.combine(TARGET_DATE - timedelta(days=1), datetime.min.time())
        slots = engine.availability.get_available_slots(
            BUSINESS_ID, TARGET_DATE, hours, local_now=local_now
        )
        assert len(slots) == 18


class TestListSlots:

    def test_effective_status(self, engine, hours, generated_day):
        expired, active = generated_day[0], generated_day[1]
        past = utcnow() - timedelta(minutes=15)
        engine.reservations.hold_slot(expired.id, BUSINESS_ID, timedelta(minutes=10), now=past)
        engine.reservations.hold_slot(active.id, BUSINESS_ID)

        listed = {s.id: s for s in engine.availability.list_slots(BUSINESS_ID, TARGET_DATE, TARGET_DATE)}

        assert listed[expired.id].status == "available"
        assert listed[expired.id].reserved_until is None
        assert listed[active.id].status == "reserved"
        assert listed[active.id].reserved_until is not None

    def test_range_across_days(self, engine, hours):
        next_day = TARGET_DATE + timedelta(days=1)
        engine.generator.ensure_generated(BUSINESS_ID, TARGET_DATE, hours)
        engine.generator.ensure_generated(BUSINESS_ID, next_day, hours)

        listed = engine.availability.list_slots(BUSINESS_ID, next_day, TARGET_DATE)

        assert len(listed) == 36
        assert listed[0].date == TARGET_DATE
        assert listed[-1].date == next_day


class TestPrefetch:

    def test_first_miss_generates_window(self, engine, hours):
        holiday = TARGET_DATE + timedelta(days=2)
        schedule = BusinessSchedule(base=hours, closed_ranges=((holiday, holiday),))

        engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, hours, schedule=schedule)

        window = [TARGET_DATE + timedelta(days=i) for i in range(engine.config.generation_window_days)]
        assert engine.store.existing_dates(BUSINESS_ID, window) == set(window) - {holiday}

    def test_no_prefetch_when_day_exists(self, engine, hours, generated_day):
        schedule = BusinessSchedule(base=hours)

        engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, hours, schedule=schedule)

        assert not engine.store.has_slots(BUSINESS_ID, TARGET_DATE + timedelta(days=1))

    def test_no_prefetch_without_schedule(self, engine, hours):
        engine.availability.get_available_slots(BUSINESS_ID, TARGET_DATE, hours)
        assert not engine.store.has_slots(BUSINESS_ID, TARGET_DATE + timedelta(days=1))
