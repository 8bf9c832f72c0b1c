# backend/slot_engine/routers/slots.py
"""
Slots API endpoints.

Read:  GET /slots/available - open slots for a business on a day
       GET /slots           - all slots in a date range (effective status)
Write: POST /slots/{slot_id}/hold | confirm | release | release-booked

Engine errors are mapped to HTTP responses in error_handlers.py.
"""

import logging
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.slots import (
    AvailableSlotRead,
    AvailableSlotsResponse,
    SlotActionRequest,
    SlotHoldRequest,
    SlotRead,
)
from ..services.business_hours import get_business_schedule
from ..services.slots import SlotEngine, get_slot_engine

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 31

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
def get_available_slots(
    business_id: str,
    target_date: date = Query(..., alias="date"),
    local_now: datetime | None = Query(
        None, description="Business-local current time; defaults to the server's local time"
    ),
    db: Session = Depends(get_db),
    engine: SlotEngine = Depends(get_slot_engine),
):
    """Open slots for a business on a day (generates the day on first request)."""
    schedule = get_business_schedule(db, business_id, since=target_date)
    hours = schedule.hours_for(target_date)
    if hours is None:
        logger.info(f"Business {business_id} closed on {target_date}")
        return AvailableSlotsResponse(
            business_id=business_id, date=target_date, slots=[], total_slots=0, closed=True
        )

    slots = engine.availability.get_available_slots(
        business_id,
        target_date,
        hours,
        local_now=local_now or datetime.now(),
        schedule=schedule,
    )

    return AvailableSlotsResponse(
        business_id=business_id,
        date=target_date,
        slots=[AvailableSlotRead.model_validate(s) for s in slots],
        total_slots=len(slots),
    )


@router.get("", response_model=list[SlotRead])
def list_slots(
    business_id: str,
    start_date: date,
    end_date: date | None = None,
    engine: SlotEngine = Depends(get_slot_engine),
):
    """Existing slots in [start_date, end_date]; no generation."""
    if end_date is None:
        end_date = start_date
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")
    if end_date - start_date > timedelta(days=MAX_RANGE_DAYS):
        raise HTTPException(status_code=400, detail=f"Range cannot exceed {MAX_RANGE_DAYS} days")

    return engine.availability.list_slots(business_id, start_date, end_date)


@router.post("/{slot_id}/hold", response_model=SlotRead)
def hold_slot(
    slot_id: str,
    data: SlotHoldRequest,
    engine: SlotEngine = Depends(get_slot_engine),
):
    ttl = timedelta(minutes=data.ttl_minutes) if data.ttl_minutes else None
    return engine.reservations.hold_slot(slot_id, data.business_id, ttl)


@router.post("/{slot_id}/confirm", response_model=SlotRead)
def confirm_slot(
    slot_id: str,
    data: SlotActionRequest,
    engine: SlotEngine = Depends(get_slot_engine),
):
    return engine.reservations.confirm(slot_id, data.business_id)


@router.post("/{slot_id}/release", response_model=SlotRead)
def release_slot(
    slot_id: str,
    data: SlotActionRequest,
    engine: SlotEngine = Depends(get_slot_engine),
):
    return engine.reservations.cancel_held(slot_id, data.business_id)


@router.post("/{slot_id}/release-booked", response_model=SlotRead)
def release_booked_slot(
    slot_id: str,
    data: SlotActionRequest,
    engine: SlotEngine = Depends(get_slot_engine),
):
    return engine.reservations.cancel_booked(slot_id, data.business_id)
