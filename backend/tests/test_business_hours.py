"""
Tests for per-date hours resolution: closures, holidays, weekday special hours.
"""

from datetime import date, timedelta

import pytest

from slot_engine.models.tables import BusinessClosures, Businesses, BusinessSpecialHours
from slot_engine.services.business_hours import get_business_schedule, list_business_schedules
from slot_engine.services.slots import BusinessHours, BusinessSchedule, SpecialHours
from slot_engine.services.slots.exceptions import SlotConfigError

from conftest import BUSINESS_ID, OTHER_BUSINESS_ID, TARGET_DATE

TUESDAY = TARGET_DATE  # 2030-01-15, weekday() == 1


class TestBusinessSchedule:

    def test_regular_day_uses_base_hours(self, hours):
        schedule = BusinessSchedule(base=hours)
        assert schedule.hours_for(TUESDAY) is hours

    def test_closed_range_is_inclusive(self, hours):
        schedule = BusinessSchedule(
            base=hours,
            closed_ranges=((TUESDAY, TUESDAY + timedelta(days=2)),),
        )
        assert schedule.hours_for(TUESDAY - timedelta(days=1)) == hours
        assert schedule.hours_for(TUESDAY) is None
        assert schedule.hours_for(TUESDAY + timedelta(days=2)) is None
        assert schedule.hours_for(TUESDAY + timedelta(days=3)) == hours

    def test_closed_weekday(self, hours):
        schedule = BusinessSchedule(base=hours, special_hours={1: SpecialHours(is_closed=True)})
        assert schedule.is_closed(TUESDAY)
        assert schedule.hours_for(TUESDAY + timedelta(days=7)) is None
        assert schedule.hours_for(TUESDAY + timedelta(days=1)) == hours

    def test_special_hours_replace_base(self, hours):
        schedule = BusinessSchedule(
            base=hours,
            special_hours={1: SpecialHours(opening_time="10:00", closing_time="14:00")},
        )
        assert schedule.hours_for(TUESDAY) == BusinessHours("10:00", "14:00", 30)

    def test_partial_special_hours_fall_back(self, hours):
        schedule = BusinessSchedule(base=hours, special_hours={1: SpecialHours(closing_time="13:00")})
        assert schedule.hours_for(TUESDAY) == BusinessHours("09:00", "13:00", 30)

    def test_invalid_special_hours(self, hours):
        schedule = BusinessSchedule(base=hours, special_hours={1: SpecialHours(opening_time="19:00")})
        with pytest.raises(SlotConfigError):
            schedule.hours_for(TUESDAY)

    def test_plain_hours_apply_every_day(self, hours):
        assert hours.hours_for(TUESDAY) is hours


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _seed(db):
    db.add_all([
        Businesses(id=BUSINESS_ID, name="Salon", opening_time="09:00", closing_time="18:00", slot_duration=30),
        Businesses(id=OTHER_BUSINESS_ID, name="Barber", opening_time="08:00", closing_time="12:00", slot_duration=60),
        Businesses(id="broken", name="No hours", opening_time="09:00"),
        BusinessClosures(business_id=BUSINESS_ID, date_start=TUESDAY, date_end=TUESDAY, kind="holiday"),
        BusinessClosures(
            business_id=BUSINESS_ID,
            date_start=date(2029, 12, 1),
            date_end=date(2029, 12, 3),
            reason="Renovation",
        ),
        BusinessSpecialHours(business_id=BUSINESS_ID, day_of_week=5, opening_time="10:00", closing_time="14:00"),
        BusinessSpecialHours(business_id=OTHER_BUSINESS_ID, day_of_week=0, is_closed=True),
    ])
    db.commit()


class TestLoaders:

    def test_get_business_schedule(self, db):
        _seed(db)

        schedule = get_business_schedule(db, BUSINESS_ID)

        assert schedule.base == BusinessHours("09:00", "18:00", 30)
        assert schedule.hours_for(TUESDAY) is None
        assert schedule.hours_for(date(2029, 12, 2)) is None
        saturday = TUESDAY + timedelta(days=4)
        assert schedule.hours_for(saturday) == BusinessHours("10:00", "14:00", 30)

    def test_since_drops_past_closures(self, db):
        _seed(db)
        schedule = get_business_schedule(db, BUSINESS_ID, since=date(2030, 1, 1))
        assert schedule.closed_ranges == ((TUESDAY, TUESDAY),)

    def test_unknown_business(self, db):
        with pytest.raises(SlotConfigError):
            get_business_schedule(db, "nobody")

    def test_list_skips_invalid_businesses(self, db):
        _seed(db)

        schedules = dict(list_business_schedules(db))

        assert sorted(schedules) == [BUSINESS_ID, OTHER_BUSINESS_ID]
        monday = TUESDAY - timedelta(days=1)
        assert schedules[OTHER_BUSINESS_ID].hours_for(monday) is None
        assert schedules[OTHER_BUSINESS_ID].hours_for(TUESDAY) == BusinessHours("08:00", "12:00", 60)
