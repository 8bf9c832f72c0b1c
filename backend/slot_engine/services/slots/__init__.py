# backend/slot_engine/services/slots/__init__.py
"""
Slot availability & reservation engine.

Template cache → store → generation → availability / reservations.
"""

from .config import BusinessHours, BusinessSchedule, EngineConfig, SpecialHours, get_engine_config
from .template_cache import SlotTemplateCache
from .store import SlotStore
from .generation import GenerationRequest, GenerationResult, SlotGenerator
from .availability import AvailableSlot, AvailabilityResolver
from .reservation import ReservationCoordinator
from .engine import SlotEngine, build_slot_engine, get_slot_engine
from .exceptions import (
    SlotConfigError,
    SlotEngineError,
    SlotNotFoundError,
    SlotStoreError,
    SlotUnavailableError,
)

__all__ = [
    "BusinessHours",
    "BusinessSchedule",
    "SpecialHours",
    "EngineConfig",
    "get_engine_config",
    "SlotTemplateCache",
    "SlotStore",
    "GenerationRequest",
    "GenerationResult",
    "SlotGenerator",
    "AvailableSlot",
    "AvailabilityResolver",
    "ReservationCoordinator",
    "SlotEngine",
    "build_slot_engine",
    "get_slot_engine",
    "SlotConfigError",
    "SlotEngineError",
    "SlotNotFoundError",
    "SlotStoreError",
    "SlotUnavailableError",
]
