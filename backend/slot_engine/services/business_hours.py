# backend/slot_engine/services/business_hours.py
"""
Business configuration source for slot generation.

The businesses, business_closures and business_special_hours tables are
owned by the business profile service; the slot engine only reads them and
resolves them into a BusinessSchedule (regular hours + downtime).
"""

import logging
from collections import defaultdict
from datetime import date

from sqlalchemy.orm import Session

from ..models.tables import BusinessClosures, Businesses, BusinessSpecialHours
from .slots.config import BusinessHours, BusinessSchedule, SpecialHours
from .slots.exceptions import SlotConfigError

logger = logging.getLogger(__name__)


def get_business_schedule(db: Session, business_id: str, since: date | None = None) -> BusinessSchedule:
    """
    Regular hours and downtime for one business.

    Args:
        since: Closures ending before this date are not loaded

    Raises:
        SlotConfigError: business missing or hours incomplete/invalid
    """
    business = db.get(Businesses, business_id)
    if business is None:
        raise SlotConfigError(f"Business {business_id} not found")

    closures = _load_closures(db, [business_id], since)
    special = _load_special_hours(db, [business_id])
    return _build_schedule(business, closures[business_id], special[business_id])


def list_business_schedules(db: Session, since: date | None = None) -> list[tuple[str, BusinessSchedule]]:
    """All businesses with a valid configuration; invalid ones are skipped."""
    businesses = db.query(Businesses).order_by(Businesses.id).all()
    ids = [b.id for b in businesses]
    closures = _load_closures(db, ids, since)
    special = _load_special_hours(db, ids)

    result = []
    for business in businesses:
        try:
            schedule = _build_schedule(business, closures[business.id], special[business.id])
        except SlotConfigError as e:
            logger.warning(f"Skipping business {business.id}: {e}")
            continue
        result.append((business.id, schedule))
    return result


# ── Helpers ──────────────────────────────────────────────────────────────


def _build_schedule(business, closures, special_hours) -> BusinessSchedule:
    return BusinessSchedule(
        base=BusinessHours.from_business(business),
        closed_ranges=tuple((c.date_start, c.date_end) for c in closures),
        special_hours={
            row.day_of_week: SpecialHours(
                opening_time=row.opening_time,
                closing_time=row.closing_time,
                is_closed=bool(row.is_closed),
            )
            for row in special_hours
        },
    )


def _load_closures(db: Session, business_ids: list[str], since: date | None) -> dict[str, list]:
    grouped = defaultdict(list)
    if not business_ids:
        return grouped
    query = db.query(BusinessClosures).filter(BusinessClosures.business_id.in_(business_ids))
    if since is not None:
        query = query.filter(BusinessClosures.date_end >= since)
    for row in query.order_by(BusinessClosures.date_start).all():
        grouped[row.business_id].append(row)
    return grouped


def _load_special_hours(db: Session, business_ids: list[str]) -> dict[str, list]:
    grouped = defaultdict(list)
    if not business_ids:
        return grouped
    rows = (
        db.query(BusinessSpecialHours)
        .filter(BusinessSpecialHours.business_id.in_(business_ids))
        .all()
    )
    for row in rows:
        grouped[row.business_id].append(row)
    return grouped
