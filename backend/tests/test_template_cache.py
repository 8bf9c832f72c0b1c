"""
Tests for day templates, the template cache, and BusinessHours validation.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import time

import pytest

from slot_engine.services.slots.calculator import build_day_windows
from slot_engine.services.slots.config import (
    BusinessHours,
    minutes_to_time_str,
    normalize_time_str,
    time_str_to_minutes,
)
from slot_engine.services.slots.exceptions import SlotConfigError
from slot_engine.services.slots.template_cache import SlotTemplateCache


class TestBusinessHours:

    def test_times_are_normalized(self):
        hours = BusinessHours("9:00", "18:00:00", 30)
        assert hours.opening_time == "09:00:00"
        assert hours.closing_time == "18:00:00"
        assert hours.config_key == "09:00:00-18:00:00-30"

    def test_equal_configs_are_equal_keys(self):
        assert BusinessHours("09:00", "18:00", 30) == BusinessHours("09:00:00", "18:00", 30)
        assert hash(BusinessHours("09:00", "18:00", 30)) == hash(BusinessHours("09:00:00", "18:00:00", 30))

    def test_accepts_time_objects(self):
        hours = BusinessHours(time(8, 30), time(12, 0), 15)
        assert hours.opening_time == "08:30:00"

    @pytest.mark.parametrize(
        "opening, closing, duration",
        [
            ("09:00", "18:00", 0),
            ("09:00", "18:00", -15),
            ("18:00", "09:00", 30),
            ("09:00", "09:00", 30),
            ("", "18:00", 30),
            ("09:00", None, 30),
            ("9am", "18:00", 30),
            ("25:00", "26:00", 30),
            ("09:00", "18:00", "30"),
        ],
    )
    def test_invalid_configs_rejected(self, opening, closing, duration):
        with pytest.raises(SlotConfigError):
            BusinessHours(opening, closing, duration)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            BusinessHours("10:00", "09:00", 30)

    def test_from_business_missing(self):
        with pytest.raises(SlotConfigError):
            BusinessHours.from_business(None)


class TestTimeHelpers:

    def test_round_trip(self):
        assert time_str_to_minutes("09:30") == 570
        assert minutes_to_time_str(570) == "09:30:00"

    def test_seconds_dropped(self):
        assert normalize_time_str("09:30:45") == "09:30:00"

    def test_midnight_closing(self):
        assert time_str_to_minutes("24:00") == 24 * 60


class TestBuildDayWindows:

    def test_nine_to_six_half_hour(self):
        windows = build_day_windows(BusinessHours("09:00", "18:00", 30))
        assert len(windows) == 18
        assert windows[0] == ("09:00:00", "09:30:00")
        assert windows[-1] == ("17:30:00", "18:00:00")

    def test_windows_are_contiguous(self):
        windows = build_day_windows(BusinessHours("08:00", "12:00", 45))
        for (_, end), (next_start, _) in zip(windows, windows[1:]):
            assert end == next_start

    def test_partial_trailing_window_dropped(self):
        windows = build_day_windows(BusinessHours("09:00", "10:00", 45))
        assert windows == (("09:00:00", "09:45:00"),)

    def test_window_shorter_than_slot(self):
        assert build_day_windows(BusinessHours("09:00", "09:20", 30)) == ()

    def test_until_midnight(self):
        windows = build_day_windows(BusinessHours("22:00", "24:00", 60))
        assert windows == (("22:00:00", "23:00:00"), ("23:00:00", "24:00:00"))


class TestSlotTemplateCache:

    def test_cold_and_warm_are_identical(self):
        cache = SlotTemplateCache(max_size=10)
        hours = BusinessHours("09:00", "18:00", 30)

        cold = cache.get_template(hours)
        warm = cache.get_template(hours)

        assert cold == warm
        assert len(warm) == 18
        assert cache.stats()["misses"] == 1
        assert cache.stats()["hits"] == 1

    def test_matches_fresh_cache(self):
        hours = BusinessHours("09:00", "18:00", 30)
        warm_cache = SlotTemplateCache()
        warm_cache.get_template(hours)
        assert warm_cache.get_template(hours) == SlotTemplateCache().get_template(hours)

    def test_lru_eviction(self):
        cache = SlotTemplateCache(max_size=2)
        a = BusinessHours("09:00", "17:00", 30)
        b = BusinessHours("10:00", "18:00", 30)
        c = BusinessHours("11:00", "19:00", 30)

        cache.get_template(a)
        cache.get_template(b)
        cache.get_template(a)  # a is now most recently used
        cache.get_template(c)  # evicts b

        assert a in cache
        assert c in cache
        assert b not in cache
        assert len(cache) == 2

    def test_clear(self):
        cache = SlotTemplateCache()
        cache.get_template(BusinessHours("09:00", "17:00", 30))
        cache.clear()
        assert len(cache) == 0
        assert cache.stats()["hits"] == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SlotTemplateCache(max_size=0)

    def test_concurrent_misses_same_key(self):
        cache = SlotTemplateCache(max_size=5)
        hours = BusinessHours("09:00", "18:00", 30)
        barrier = threading.Barrier(16)

        def fetch():
            barrier.wait()
            return cache.get_template(hours)

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: fetch(), range(16)))

        assert all(r == results[0] for r in results)
        assert len(cache) == 1
        assert cache.stats()["keys"] == [hours.config_key]
