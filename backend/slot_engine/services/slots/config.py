# backend/slot_engine/services/slots/config.py
"""
Configuration for slot generation and reservation.
"""

from dataclasses import dataclass, field
from datetime import date, time
from functools import lru_cache

from ...config import settings
from .exceptions import SlotConfigError


# ── Time helpers ─────────────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" or "HH:MM:SS" to minutes since midnight (seconds dropped)."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise SlotConfigError(f"Invalid time string: {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    if hour == 24 and minute == 0 and second == 0:
        return 24 * 60  # end-of-day closing time
    if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
        raise SlotConfigError(f"Invalid time string: {value!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM:SS"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}:00"


def normalize_time_str(value: str | time) -> str:
    """Normalize any accepted time representation to "HH:MM:SS"."""
    if isinstance(value, time):
        value = value.strftime("%H:%M")
    return minutes_to_time_str(time_str_to_minutes(value))


# ── Business operating hours ─────────────────────────────────────────────


@dataclass(frozen=True)
class BusinessHours:
    """
    Operating-hours triple a slot template is derived from.

    Frozen and hashable: instances are used directly as template cache keys
    and as batch-generation group keys. Times are normalized to "HH:MM:SS".

    Attributes:
        opening_time: Local opening time
        closing_time: Local closing time (no overnight wrap)
        slot_duration: Slot length in minutes
    """
    opening_time: str
    closing_time: str
    slot_duration: int

    def __post_init__(self):
        """Normalize and validate."""
        if not self.opening_time or not self.closing_time or not self.slot_duration:
            raise SlotConfigError(
                "Invalid slot generation configuration: "
                "missing opening_time, closing_time, or slot_duration"
            )
        if isinstance(self.slot_duration, bool) or not isinstance(self.slot_duration, int):
            raise SlotConfigError(f"slot_duration must be an integer, got {self.slot_duration!r}")
        if self.slot_duration <= 0:
            raise SlotConfigError(f"slot_duration must be positive, got {self.slot_duration}")

        opening = normalize_time_str(self.opening_time)
        closing = normalize_time_str(self.closing_time)
        if time_str_to_minutes(opening) >= time_str_to_minutes(closing):
            raise SlotConfigError(
                f"opening_time must be before closing_time, got {opening} - {closing}"
            )

        object.__setattr__(self, "opening_time", opening)
        object.__setattr__(self, "closing_time", closing)

    @property
    def config_key(self) -> str:
        """Stable string key, e.g. "09:00:00-18:00:00-30"."""
        return f"{self.opening_time}-{self.closing_time}-{self.slot_duration}"

    @classmethod
    def from_business(cls, business) -> "BusinessHours":
        """Build from a business row (anything with the three attributes)."""
        if business is None:
            raise SlotConfigError("Business configuration not found")
        return cls(
            opening_time=business.opening_time,
            closing_time=business.closing_time,
            slot_duration=business.slot_duration,
        )

    def hours_for(self, dt: date) -> "BusinessHours":
        """Same hours every day."""
        return self


# ── Downtime and weekday special hours ──────────────────────────────────


@dataclass(frozen=True)
class SpecialHours:
    """Weekday override; a missing time falls back to the regular hours."""
    opening_time: str | None = None
    closing_time: str | None = None
    is_closed: bool = False


@dataclass(frozen=True)
class BusinessSchedule:
    """
    Regular hours plus downtime, resolved to BusinessHours per date.

    Attributes:
        base: Regular operating hours
        closed_ranges: Inclusive (start, end) date ranges the business is
                       closed (holidays are one-day ranges)
        special_hours: Weekday (0 = Monday) → SpecialHours
    """
    base: BusinessHours
    closed_ranges: tuple[tuple[date, date], ...] = ()
    special_hours: dict[int, SpecialHours] = field(default_factory=dict, hash=False)

    def is_closed(self, dt: date) -> bool:
        if any(start <= dt <= end for start, end in self.closed_ranges):
            return True
        special = self.special_hours.get(dt.weekday())
        return special is not None and special.is_closed

    def hours_for(self, dt: date) -> BusinessHours | None:
        """
        Hours that apply on dt, or None when the business is closed.

        Raises:
            SlotConfigError: special hours for dt form an invalid window
        """
        if self.is_closed(dt):
            return None
        special = self.special_hours.get(dt.weekday())
        if special is None or not (special.opening_time or special.closing_time):
            return self.base
        return BusinessHours(
            opening_time=special.opening_time or self.base.opening_time,
            closing_time=special.closing_time or self.base.closing_time,
            slot_duration=self.base.slot_duration,
        )


# ── Engine configuration ─────────────────────────────────────────────────


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the slot engine.

    Attributes:
        hold_minutes: Default reservation TTL
        template_cache_size: Max distinct BusinessHours kept in the template cache
        generation_window_days: Days ahead pre-generated by housekeeping
        generation_workers: Thread pool size for batch generation
        generation_retries: Extra attempts for idempotent read-side generation
        sweep_batch_limit: Max rows rewritten per batch sweep
    """
    hold_minutes: int = 10
    template_cache_size: int = 100
    generation_window_days: int = 7
    generation_workers: int = 8
    generation_retries: int = 2
    sweep_batch_limit: int = 500

    def __post_init__(self):
        """Validate configuration."""
        if self.hold_minutes <= 0:
            raise ValueError(f"hold_minutes must be positive, got {self.hold_minutes}")
        if self.template_cache_size <= 0:
            raise ValueError(f"template_cache_size must be positive, got {self.template_cache_size}")
        if self.generation_workers <= 0:
            raise ValueError(f"generation_workers must be positive, got {self.generation_workers}")
        if self.generation_retries < 0:
            raise ValueError(f"generation_retries must be >= 0, got {self.generation_retries}")


@lru_cache
def get_engine_config() -> EngineConfig:
    """Get engine configuration (singleton, from settings)."""
    return EngineConfig(
        hold_minutes=settings.slot_hold_minutes,
        template_cache_size=settings.template_cache_size,
        generation_window_days=settings.generation_window_days,
        generation_workers=settings.generation_workers,
        generation_retries=settings.generation_retries,
        sweep_batch_limit=settings.sweep_batch_limit,
    )
