# backend/slot_engine/services/slots/store.py
"""
Durable slot storage (SQLAlchemy).

Every mutation is a conditional transition:
  UPDATE slots SET ... WHERE id = :id AND business_id = :bid AND <prior state>
  RETURNING *
The returned row is the result. Exactly one of N concurrent callers matches
the prior state; the rest get None.

business_id is part of every WHERE clause: a slot id alone never reaches
another tenant's row.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator

from sqlalchemy import insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...models.tables import Slots
from .calculator import TimeWindow
from .exceptions import SlotStoreError
from .state import (
    AVAILABLE,
    BOOKED,
    active_reservation_clause,
    allowed_from,
    expired_reservation_clause,
    next_state,
    utcnow,
)

logger = logging.getLogger(__name__)


class SlotStore:
    """Slot persistence with conditional state transitions."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise SlotStoreError(f"Slot store failure: {e}") from e
        finally:
            db.close()

    # ── Write: generation ────────────────────────────────────────────────

    def insert_slots(self, rows: list[dict]) -> int:
        """
        Insert slot rows for one business+date in a single batch.

        A unique-constraint violation means another writer already generated
        this day; it is logged and reported as 0 rows inserted.

        Returns:
            Number of inserted rows.
        """
        if not rows:
            return 0

        with self._session() as db:
            try:
                db.execute(insert(Slots), rows)
                db.commit()
            except IntegrityError:
                db.rollback()
                first = rows[0]
                logger.warning(
                    f"Duplicate slot insert ignored for business={first['business_id']} "
                    f"date={first['date']}"
                )
                return 0

        return len(rows)

    # ── Write: conditional transitions ───────────────────────────────────

    def _transition(
        self,
        slot_id: str,
        business_id: str,
        event: str,
        condition,
        reserved_until: datetime | None = None,
    ) -> Slots | None:
        """
        Apply event to one slot if condition holds.

        The written row comes back from UPDATE ... RETURNING, so a committed
        transition is never followed by a read that could fail.

        Returns:
            The updated row (detached), or None if no row matched.
        """
        (target,) = {next_state(src, event) for src in allowed_from(event)}
        stmt = (
            update(Slots)
            .where(Slots.id == slot_id, Slots.business_id == business_id, condition)
            .values(status=target, reserved_until=reserved_until)
            .returning(Slots)
            .execution_options(synchronize_session=False)
        )
        with self._session() as db:
            row = db.execute(stmt).scalars().first()
            if row is not None:
                db.expunge(row)
            db.commit()
            return row

    def reserve(
        self,
        slot_id: str,
        business_id: str,
        reserved_until: datetime,
        now: datetime | None = None,
    ) -> Slots | None:
        """
        available → reserved, or reclaim an expired reservation, atomically.

        Returns:
            The reserved row if this call acquired the slot, else None.
        """
        now = now or utcnow()
        if reserved_until <= now:
            raise ValueError("reserved_until must be in the future")

        condition = or_(
            Slots.status.in_(allowed_from("reserve")),
            expired_reservation_clause(now),
        )
        return self._transition(slot_id, business_id, "reserve", condition, reserved_until)

    def confirm_booking(
        self,
        slot_id: str,
        business_id: str,
        now: datetime | None = None,
    ) -> Slots | None:
        """reserved (unexpired) → booked."""
        now = now or utcnow()
        return self._transition(slot_id, business_id, "book", active_reservation_clause(now))

    def release(self, slot_id: str, business_id: str) -> Slots | None:
        """reserved → available."""
        return self._transition(
            slot_id, business_id, "release", Slots.status.in_(allowed_from("release"))
        )

    def release_from_booked(self, slot_id: str, business_id: str) -> Slots | None:
        """booked → available (a confirmed booking was cancelled)."""
        return self._transition(
            slot_id, business_id, "unbook", Slots.status.in_(allowed_from("unbook"))
        )

    # ── Write: expiry sweeps ─────────────────────────────────────────────

    def sweep_expired(self, business_id: str, dt: date, now: datetime | None = None) -> int:
        """Rewrite expired reservations of one business+date to available."""
        now = now or utcnow()
        stmt = (
            update(Slots)
            .where(
                Slots.business_id == business_id,
                Slots.date == dt,
                expired_reservation_clause(now),
            )
            .values(status=AVAILABLE, reserved_until=None)
            .execution_options(synchronize_session=False)
        )
        with self._session() as db:
            result = db.execute(stmt)
            db.commit()
            released = result.rowcount

        if released:
            logger.info(f"Released {released} expired reservations for business={business_id} date={dt}")
        return released

    def sweep_expired_batch(self, limit: int, now: datetime | None = None) -> int:
        """
        Rewrite at most `limit` expired reservations (any business) to available.

        The predicate is re-checked in the UPDATE, so a row reclaimed by a
        concurrent reserve between SELECT and UPDATE is left alone.
        """
        if limit <= 0:
            return 0
        now = now or utcnow()

        with self._session() as db:
            ids = list(
                db.execute(
                    select(Slots.id).where(expired_reservation_clause(now)).limit(limit)
                ).scalars()
            )
            if not ids:
                return 0

            result = db.execute(
                update(Slots)
                .where(Slots.id.in_(ids), expired_reservation_clause(now))
                .values(status=AVAILABLE, reserved_until=None)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            released = result.rowcount

        logger.info(f"Batch sweep released {released} expired reservations (limit={limit})")
        return released

    # ── Read ─────────────────────────────────────────────────────────────

    def has_slots(self, business_id: str, dt: date) -> bool:
        """Existence check: any slot row for business+date."""
        stmt = (
            select(Slots.id)
            .where(Slots.business_id == business_id, Slots.date == dt)
            .limit(1)
        )
        with self._session() as db:
            return db.execute(stmt).first() is not None

    def existing_dates(self, business_id: str, dates: list[date]) -> set[date]:
        """Subset of dates that already have slot rows (one query)."""
        if not dates:
            return set()
        stmt = (
            select(Slots.date)
            .where(Slots.business_id == business_id, Slots.date.in_(dates))
            .distinct()
        )
        with self._session() as db:
            return set(db.execute(stmt).scalars())

    def get_slot(self, slot_id: str, business_id: str) -> Slots | None:
        stmt = select(Slots).where(Slots.id == slot_id, Slots.business_id == business_id)
        with self._session() as db:
            return db.execute(stmt).scalars().first()

    def list_slots(self, business_id: str, dt: date) -> list[Slots]:
        stmt = (
            select(Slots)
            .where(Slots.business_id == business_id, Slots.date == dt)
            .order_by(Slots.start_time)
        )
        with self._session() as db:
            return list(db.execute(stmt).scalars())

    def list_slots_in_range(
        self,
        business_id: str,
        date_start: date,
        date_end: date,
    ) -> list[Slots]:
        """Slots for business in [date_start, date_end], ordered by date, start."""
        stmt = (
            select(Slots)
            .where(
                Slots.business_id == business_id,
                Slots.date >= date_start,
                Slots.date <= date_end,
            )
            .order_by(Slots.date, Slots.start_time)
        )
        with self._session() as db:
            return list(db.execute(stmt).scalars())

    def get_occupied_intervals(
        self,
        business_id: str,
        dt: date,
        now: datetime | None = None,
    ) -> list[TimeWindow]:
        """
        Booked intervals plus reserved intervals with reserved_until >= now.

        Expired reservations are excluded: lazy expiry on the read path.
        """
        now = now or utcnow()
        stmt = (
            select(Slots.start_time, Slots.end_time)
            .where(
                Slots.business_id == business_id,
                Slots.date == dt,
                or_(Slots.status == BOOKED, active_reservation_clause(now)),
            )
            .order_by(Slots.start_time)
        )
        with self._session() as db:
            return [(start, end) for start, end in db.execute(stmt)]
