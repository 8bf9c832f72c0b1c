# backend/slot_engine/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date, datetime
from pydantic import BaseModel, Field


class AvailableSlotRead(BaseModel):
    """An open slot that can be held."""
    id: str
    date: date
    start_time: str  # "HH:MM:SS"
    end_time: str

    model_config = {"from_attributes": True}


class AvailableSlotsResponse(BaseModel):
    business_id: str
    date: date
    slots: list[AvailableSlotRead]
    total_slots: int
    closed: bool = False  # holiday, closure or closed weekday

    model_config = {"from_attributes": True}


class SlotRead(BaseModel):
    """Slot with effective status (expired holds read as available)."""
    id: str
    business_id: str
    date: date
    start_time: str
    end_time: str
    status: str
    reserved_until: datetime | None = None

    model_config = {"from_attributes": True}


class SlotHoldRequest(BaseModel):
    business_id: str
    ttl_minutes: int | None = Field(None, gt=0, le=24 * 60, description="Defaults to slot_hold_minutes")


class SlotActionRequest(BaseModel):
    business_id: str


class SweepResponse(BaseModel):
    released_count: int


class GenerationResultRead(BaseModel):
    business_id: str
    date: date
    created: bool
    error: str | None = None

    model_config = {"from_attributes": True}


class GenerateResponse(BaseModel):
    start_date: date
    days: int
    requested: int
    created: int
    failed: int
    results: list[GenerationResultRead]


class TemplateCacheStats(BaseModel):
    size: int
    max_size: int
    hits: int
    misses: int
    keys: list[str]
