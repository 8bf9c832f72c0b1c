"""
backend/slot_engine/services/slots/events.py

Slot event emitter: pushes slot lifecycle events to a Redis queue for
consumers (notifications, calendar sync, audit).

Queue:
- events:slots: slot_reserved / slot_booked / slot_released

Emission is best-effort: a failed push is logged, never raised, so a
Redis outage cannot undo or fail a state transition.
"""

import json
import logging
import time

from redis import Redis

from .state import SlotSnapshot

logger = logging.getLogger(__name__)

SLOT_EVENTS_QUEUE = "events:slots"

SLOT_RESERVED = "slot_reserved"
SLOT_BOOKED = "slot_booked"
SLOT_RELEASED = "slot_released"


class SlotEventEmitter:
    def __init__(self, redis: Redis | None, queue: str = SLOT_EVENTS_QUEUE):
        self.redis = redis
        self.queue = queue

    def emit(self, event_type: str, slot: SlotSnapshot, **extra) -> None:
        """Push one event for slot onto the queue."""
        if self.redis is None:
            return

        event = {
            "type": event_type,
            "slot_id": slot.id,
            "business_id": slot.business_id,
            "date": slot.date.isoformat(),
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "status": slot.status,
            "reserved_until": slot.reserved_until.isoformat() if slot.reserved_until else None,
            **extra,
            "ts": int(time.time()),
        }
        try:
            self.redis.rpush(self.queue, json.dumps(event))
            logger.info(f"Event emitted: {event_type} slot={slot.id} → {self.queue}")
        except Exception as e:
            logger.error(f"Failed to emit event {event_type} for slot {slot.id}: {e}")
