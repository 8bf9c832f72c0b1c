# backend/slot_engine/services/slots/calculator.py
"""
Time-window template calculation.

Produces the day template for one BusinessHours triple:
  ((start "HH:MM:SS", end "HH:MM:SS"), ...)

Windows are contiguous, non-overlapping, and cover [opening, closing).
A trailing window that would run past closing is not produced.

Pure function: no DB, no cache. Memoized by SlotTemplateCache.
"""

from .config import BusinessHours, time_str_to_minutes, minutes_to_time_str

TimeWindow = tuple[str, str]


def build_day_windows(hours: BusinessHours) -> tuple[TimeWindow, ...]:
    """
    Divide the operating window into slot_duration increments.

    Returns:
        Ordered tuple of (start, end) pairs. Empty if the window is
        shorter than one slot.
    """
    start_min = time_str_to_minutes(hours.opening_time)
    end_min = time_str_to_minutes(hours.closing_time)
    step = hours.slot_duration

    windows: list[TimeWindow] = []
    t = start_min
    while t + step <= end_min:
        windows.append((minutes_to_time_str(t), minutes_to_time_str(t + step)))
        t += step

    return tuple(windows)
