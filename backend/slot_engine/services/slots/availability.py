# backend/slot_engine/services/slots/availability.py
"""
Availability calculation.

Open slots for a business on a day = template(hours) minus occupied
intervals, matched by exact (start, end).

Takes into account:
- Lazy generation of the day's rows
- Booked slots
- Reserved slots whose reservation has not expired

Expired reservations are read as available without any write.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .config import BusinessHours, BusinessSchedule
from .exceptions import SlotConfigError
from .generation import SlotGenerator
from .state import SlotSnapshot, utcnow
from .store import SlotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailableSlot:
    id: str
    business_id: str
    date: date
    start_time: str
    end_time: str


class AvailabilityResolver:
    """Answers "what can be booked for this business, this day, right now"."""

    def __init__(
        self,
        store: SlotStore,
        generator: SlotGenerator,
        sweep_on_read: bool = False,
        prefetch_days: int = 0,
    ):
        self.store = store
        self.generator = generator
        self.sweep_on_read = sweep_on_read
        self.prefetch_days = prefetch_days

    def get_available_slots(
        self,
        business_id: str,
        target_date: date,
        hours: BusinessHours | None,
        now: datetime | None = None,
        local_now: datetime | None = None,
        schedule: BusinessSchedule | None = None,
    ) -> list[AvailableSlot]:
        """
        Ordered open slots for business on target_date.

        Args:
            hours: Business operating hours; None is a configuration error
            now: UTC reference time for reservation expiry
            local_now: Business-local current time; when given, windows that
                       have already started are hidden
            schedule: When given and this call generated target_date, the rest
                      of the prefetch window is generated too, with hours
                      resolved per date

        Raises:
            SlotConfigError: hours missing or not a BusinessHours
        """
        if hours is None:
            raise SlotConfigError(f"Business {business_id} has no operating hours configured")
        if not isinstance(hours, BusinessHours):
            raise SlotConfigError(f"Invalid operating hours for business {business_id}")

        now = now or utcnow()

        # Step 1: Make sure the day exists
        created = self.generator.ensure_generated(business_id, target_date, hours)
        if created and schedule is not None and self.prefetch_days > 1:
            self._prefetch(business_id, target_date, schedule)

        # Step 2: Template minus occupied
        template = self.generator.template_cache.get_template(hours)
        occupied = set(self.store.get_occupied_intervals(business_id, target_date, now))
        open_windows = [w for w in template if w not in occupied]

        # Step 3: Hide windows that already started (business-local)
        if local_now is not None:
            open_windows = _drop_started(open_windows, target_date, local_now)

        # Step 4: Attach slot ids so callers can hold them
        rows = {
            (row.start_time, row.end_time): row
            for row in self.store.list_slots(business_id, target_date)
        }
        orphaned = [w for w in open_windows if w not in rows]
        if orphaned:
            # Hours changed after the day was generated
            logger.warning(
                f"{len(orphaned)} template windows have no slot row: "
                f"business={business_id} date={target_date}"
            )
        available = [
            AvailableSlot(
                id=rows[window].id,
                business_id=business_id,
                date=target_date,
                start_time=window[0],
                end_time=window[1],
            )
            for window in open_windows
            if window in rows
        ]

        if self.sweep_on_read:
            self.store.sweep_expired(business_id, target_date, now)

        return available

    def _prefetch(self, business_id: str, target_date: date, schedule: BusinessSchedule) -> None:
        """First request for a day: also generate the days after it in the window."""
        results = self.generator.generate_ahead(
            [(business_id, schedule)],
            start=target_date + timedelta(days=1),
            days=self.prefetch_days - 1,
        )
        failed = [r for r in results if not r.ok]
        if failed:
            # Read path keeps going; those days are generated lazily later
            logger.warning(f"Prefetch failed for {len(failed)} days: business={business_id}")

    def list_slots(
        self,
        business_id: str,
        date_start: date,
        date_end: date,
        now: datetime | None = None,
    ) -> list[SlotSnapshot]:
        """All existing slots in [date_start, date_end] with effective status."""
        if date_start > date_end:
            date_start, date_end = date_end, date_start
        now = now or utcnow()
        return [
            SlotSnapshot.from_row(row, now)
            for row in self.store.list_slots_in_range(business_id, date_start, date_end)
        ]


def _drop_started(
    windows: list[tuple[str, str]],
    target_date: date,
    local_now: datetime,
) -> list[tuple[str, str]]:
    today = local_now.date()
    if target_date < today:
        return []
    if target_date > today:
        return windows
    now_str = local_now.strftime("%H:%M:%S")
    return [w for w in windows if w[0] > now_str]
