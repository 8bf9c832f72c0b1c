# backend/slot_engine/services/slots/engine.py
"""
Wiring of the slot engine components.

One SlotEngine per process holds the shared in-memory state (template
cache, in-flight generation table). Tests build their own with
build_slot_engine() and an isolated session factory.
"""

from dataclasses import dataclass
from functools import lru_cache

from redis import Redis
from sqlalchemy.orm import sessionmaker

from .availability import AvailabilityResolver
from .config import EngineConfig, get_engine_config
from .events import SlotEventEmitter
from .generation import SlotGenerator
from .reservation import ReservationCoordinator
from .store import SlotStore
from .template_cache import SlotTemplateCache


@dataclass
class SlotEngine:
    config: EngineConfig
    template_cache: SlotTemplateCache
    store: SlotStore
    generator: SlotGenerator
    availability: AvailabilityResolver
    reservations: ReservationCoordinator


def build_slot_engine(
    session_factory: sessionmaker,
    redis: Redis | None = None,
    config: EngineConfig | None = None,
    sweep_on_read: bool = False,
) -> SlotEngine:
    config = config or get_engine_config()
    template_cache = SlotTemplateCache(max_size=config.template_cache_size)
    store = SlotStore(session_factory)
    generator = SlotGenerator(
        store,
        template_cache,
        max_workers=config.generation_workers,
        retries=config.generation_retries,
    )
    return SlotEngine(
        config=config,
        template_cache=template_cache,
        store=store,
        generator=generator,
        availability=AvailabilityResolver(
            store,
            generator,
            sweep_on_read=sweep_on_read,
            prefetch_days=config.generation_window_days,
        ),
        reservations=ReservationCoordinator(
            store,
            emitter=SlotEventEmitter(redis),
            hold_minutes=config.hold_minutes,
            sweep_batch_limit=config.sweep_batch_limit,
        ),
    )


@lru_cache
def get_slot_engine() -> SlotEngine:
    """Process-wide engine bound to SessionLocal and the shared Redis client."""
    from ...database import SessionLocal
    from ...redis_client import redis_client

    return build_slot_engine(SessionLocal, redis_client)
