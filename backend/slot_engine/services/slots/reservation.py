# backend/slot_engine/services/slots/reservation.py
"""
Reservation state transitions.

  hold_slot      available / expired-reserved → reserved (with TTL)
  confirm        reserved → booked
  cancel_held    reserved → available
  cancel_booked  booked   → available

Each call is one conditional store write whose returned row is the
result; nothing is retried and nothing is read back. A lost race
raises SlotUnavailableError (pick another slot), an unknown or foreign
slot id raises SlotNotFoundError, store outages raise SlotStoreError.
"""

import logging
from datetime import date, datetime, timedelta

from ...models.tables import Slots
from .events import SLOT_BOOKED, SLOT_RELEASED, SLOT_RESERVED, SlotEventEmitter
from .exceptions import SlotNotFoundError, SlotUnavailableError
from .state import SlotSnapshot, effective_status, utcnow
from .store import SlotStore

logger = logging.getLogger(__name__)


class ReservationCoordinator:
    def __init__(
        self,
        store: SlotStore,
        emitter: SlotEventEmitter | None = None,
        hold_minutes: int = 10,
        sweep_batch_limit: int = 500,
    ):
        self.store = store
        self.emitter = emitter
        self.hold_minutes = hold_minutes
        self.sweep_batch_limit = sweep_batch_limit

    def hold_slot(
        self,
        slot_id: str,
        business_id: str,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> SlotSnapshot:
        """Reserve slot until now + ttl (default hold_minutes)."""
        now = now or utcnow()
        ttl = ttl if ttl is not None else timedelta(minutes=self.hold_minutes)
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}")

        row = self.store.reserve(slot_id, business_id, now + ttl, now)
        if row is None:
            self._raise_failure(slot_id, business_id, "reserve", now)
        return self._after_transition(row, SLOT_RESERVED, now)

    def confirm(self, slot_id: str, business_id: str, now: datetime | None = None) -> SlotSnapshot:
        """Turn an active hold into a booking."""
        now = now or utcnow()
        row = self.store.confirm_booking(slot_id, business_id, now)
        if row is None:
            self._raise_failure(slot_id, business_id, "book", now)
        return self._after_transition(row, SLOT_BOOKED, now)

    def cancel_held(self, slot_id: str, business_id: str) -> SlotSnapshot:
        """Release a hold (pending booking cancelled or rejected)."""
        row = self.store.release(slot_id, business_id)
        if row is None:
            self._raise_failure(slot_id, business_id, "release")
        return self._after_transition(row, SLOT_RELEASED, reason="released")

    def cancel_booked(self, slot_id: str, business_id: str) -> SlotSnapshot:
        """Free a slot whose confirmed booking was cancelled."""
        row = self.store.release_from_booked(slot_id, business_id)
        if row is None:
            self._raise_failure(slot_id, business_id, "unbook")
        return self._after_transition(row, SLOT_RELEASED, reason="booking_cancelled")

    # ── Expiry ───────────────────────────────────────────────────────────

    def reclaim_expired(self, business_id: str, dt: date, now: datetime | None = None) -> int:
        """Opportunistic sweep of one business+date."""
        return self.store.sweep_expired(business_id, dt, now)

    def sweep_expired(self, limit: int | None = None, now: datetime | None = None) -> int:
        """Periodic batch sweep, bounded by limit."""
        return self.store.sweep_expired_batch(limit or self.sweep_batch_limit, now)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _raise_failure(
        self,
        slot_id: str,
        business_id: str,
        action: str,
        now: datetime | None = None,
    ) -> None:
        # Zero rows updated: either the slot is not ours to touch or we lost a race
        row = self.store.get_slot(slot_id, business_id)
        if row is None:
            raise SlotNotFoundError(slot_id, business_id)

        current = effective_status(row.status, row.reserved_until, now or utcnow())
        logger.info(f"Slot contention: {action} slot={slot_id} business={business_id} status={current}")
        raise SlotUnavailableError(slot_id, action, current)

    def _after_transition(
        self,
        row: Slots,
        event_type: str,
        now: datetime | None = None,
        **extra,
    ) -> SlotSnapshot:
        # row is what the UPDATE wrote; no further store access
        slot = SlotSnapshot.from_row(row, now)
        if self.emitter is not None:
            self.emitter.emit(event_type, slot, **extra)
        return slot
