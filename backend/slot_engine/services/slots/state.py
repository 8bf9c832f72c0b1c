# backend/slot_engine/services/slots/state.py
"""
Slot state machine and the reservation-expiry predicate.

Edges (event: from → to):
  reserve: available → reserved   (also reclaims an expired reservation)
  book:    reserved  → booked
  release: reserved  → available
  expire:  reserved  → available  (sweeps only)
  unbook:  booked    → available  (cancellation of a confirmed booking)

The expiry predicate lives here in both forms (SQL clause and Python) so
the lazy read path, the reclaiming reserve, and the sweeps cannot drift.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import and_

from ...models.tables import Slots, SlotStatus

AVAILABLE = SlotStatus.AVAILABLE
RESERVED = SlotStatus.RESERVED
BOOKED = SlotStatus.BOOKED

TRANSITIONS: dict[tuple[str, str], str] = {
    (AVAILABLE, "reserve"): RESERVED,
    (RESERVED, "book"): BOOKED,
    (RESERVED, "release"): AVAILABLE,
    (RESERVED, "expire"): AVAILABLE,
    (BOOKED, "unbook"): AVAILABLE,
}


def next_state(status: str, event: str) -> str | None:
    """Target state of event from status, or None if the edge does not exist."""
    return TRANSITIONS.get((status, event))


def allowed_from(event: str) -> tuple[str, ...]:
    """Prior states from which event is legal."""
    return tuple(sorted(src for (src, ev) in TRANSITIONS if ev == event))


def utcnow() -> datetime:
    """Naive UTC now; reserved_until is stored naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ── Expiry predicate ─────────────────────────────────────────────────────


def expired_reservation_clause(now: datetime):
    """SQL: reserved and reserved_until < now."""
    return and_(Slots.status == RESERVED, Slots.reserved_until < now)


def active_reservation_clause(now: datetime):
    """SQL: reserved and reserved_until >= now."""
    return and_(Slots.status == RESERVED, Slots.reserved_until >= now)


def is_expired_reservation(status: str, reserved_until: datetime | None, now: datetime) -> bool:
    """Python twin of expired_reservation_clause."""
    return status == RESERVED and reserved_until is not None and reserved_until < now


def effective_status(status: str, reserved_until: datetime | None, now: datetime) -> str:
    """Status as readers must see it: expired reservations read as available."""
    if is_expired_reservation(status, reserved_until, now):
        return AVAILABLE
    return status


@dataclass(frozen=True)
class SlotSnapshot:
    """Detached, lazy-expiry-resolved view of a slot row."""
    id: str
    business_id: str
    date: date
    start_time: str
    end_time: str
    status: str
    reserved_until: datetime | None

    @classmethod
    def from_row(cls, row: Slots, now: datetime | None = None) -> "SlotSnapshot":
        now = now or utcnow()
        status = effective_status(row.status, row.reserved_until, now)
        return cls(
            id=row.id,
            business_id=row.business_id,
            date=row.date,
            start_time=row.start_time,
            end_time=row.end_time,
            status=status,
            reserved_until=row.reserved_until if status == RESERVED else None,
        )
