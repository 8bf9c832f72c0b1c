# backend/slot_engine/routers/internal.py
"""
Internal housekeeping endpoints.

Called by the periodic scheduler (cron), NOT exposed through the public
proxy. The engine never schedules itself.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.slots import GenerateResponse, GenerationResultRead, SweepResponse, TemplateCacheStats
from ..services.business_hours import list_business_schedules
from ..services.slots import SlotEngine, get_slot_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal/slots", tags=["internal"])


@router.post("/sweep", response_model=SweepResponse)
def sweep_expired_reservations(
    limit: int | None = Query(None, gt=0, le=10000),
    engine: SlotEngine = Depends(get_slot_engine),
):
    """Release expired reservations in one bounded batch."""
    released = engine.reservations.sweep_expired(limit)
    return SweepResponse(released_count=released)


@router.post("/generate", response_model=GenerateResponse)
def pregenerate_slots(
    days: int | None = Query(None, gt=0, le=90),
    start_date: date | None = None,
    db: Session = Depends(get_db),
    engine: SlotEngine = Depends(get_slot_engine),
):
    """Pre-generate the next N days for every configured business (closed days skipped)."""
    days = days or engine.config.generation_window_days
    start_date = start_date or date.today()

    businesses = list_business_schedules(db, since=start_date)
    results = engine.generator.generate_ahead(businesses, start_date, days)

    failed = [r for r in results if not r.ok]
    if failed:
        logger.warning(f"Pre-generation finished with {len(failed)} failed days")

    return GenerateResponse(
        start_date=start_date,
        days=days,
        requested=len(results),
        created=sum(1 for r in results if r.created),
        failed=len(failed),
        results=[GenerationResultRead.model_validate(r) for r in results],
    )


@router.get("/cache", response_model=TemplateCacheStats)
def template_cache_stats(engine: SlotEngine = Depends(get_slot_engine)):
    """Template cache occupancy and hit rate."""
    return engine.template_cache.stats()
