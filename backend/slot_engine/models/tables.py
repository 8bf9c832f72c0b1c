from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class SlotStatus:
    AVAILABLE = "available"
    RESERVED = "reserved"
    BOOKED = "booked"

    ALL = (AVAILABLE, RESERVED, BOOKED)


def new_slot_id() -> str:
    return str(uuid4())


class Businesses(Base):
    """Operating-hours source for slot generation (owned by the business profile service)."""
    __tablename__ = 'businesses'

    id = Column(String(64), primary_key=True)
    name = Column(Text, nullable=False)
    opening_time = Column(String(8))
    closing_time = Column(String(8))
    slot_duration = Column(Integer)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class Slots(Base):
    __tablename__ = 'slots'
    __table_args__ = (
        UniqueConstraint('business_id', 'date', 'start_time', 'end_time', name='uq_slots_window'),
        CheckConstraint(
            "status IN ('available', 'reserved', 'booked')",
            name='ck_slots_status',
        ),
        CheckConstraint(
            "(status = 'reserved' AND reserved_until IS NOT NULL) "
            "OR (status <> 'reserved' AND reserved_until IS NULL)",
            name='ck_slots_reserved_until',
        ),
        Index('ix_slots_business_date_status', 'business_id', 'date', 'status'),
        Index('ix_slots_status_reserved_until', 'status', 'reserved_until'),
    )

    id = Column(String(36), primary_key=True, default=new_slot_id)
    business_id = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(8), nullable=False)  # "HH:MM:SS", business-local
    end_time = Column(String(8), nullable=False)
    status = Column(String(16), nullable=False, server_default=text("'available'"))
    reserved_until = Column(DateTime)  # naive UTC, set only while reserved
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class BusinessClosures(Base):
    """Dates a business is closed: holidays (one day) and longer closures."""
    __tablename__ = 'business_closures'
    __table_args__ = (
        CheckConstraint('date_end >= date_start', name='ck_business_closures_range'),
        Index('ix_business_closures_business_end', 'business_id', 'date_end'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(String(64), nullable=False)
    date_start = Column(Date, nullable=False)
    date_end = Column(Date, nullable=False)  # inclusive
    kind = Column(String(16), nullable=False, server_default=text("'closure'"))  # holiday | closure
    reason = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class BusinessSpecialHours(Base):
    """Per-weekday hours that replace the regular ones (or close the day)."""
    __tablename__ = 'business_special_hours'
    __table_args__ = (
        UniqueConstraint('business_id', 'day_of_week', name='uq_business_special_hours_day'),
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_business_special_hours_day'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(String(64), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday, 6 = Sunday
    opening_time = Column(String(8))
    closing_time = Column(String(8))
    is_closed = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
