"""
Shared fixtures: isolated SQLite database per test, fresh engine wiring.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from slot_engine.models.tables import Base
from slot_engine.services.slots import BusinessHours, EngineConfig, build_slot_engine

BUSINESS_ID = "salon-1"
OTHER_BUSINESS_ID = "salon-2"
TARGET_DATE = date(2030, 1, 15)


@pytest.fixture
def session_factory(tmp_path):
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'slots.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(db_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db_engine.dispose()


@pytest.fixture
def redis():
    return MagicMock()


@pytest.fixture
def engine_config():
    return EngineConfig(
        hold_minutes=10,
        template_cache_size=100,
        generation_workers=4,
        generation_retries=1,
        sweep_batch_limit=500,
    )


@pytest.fixture
def engine(session_factory, redis, engine_config):
    return build_slot_engine(session_factory, redis, engine_config)


@pytest.fixture
def hours():
    return BusinessHours("09:00", "18:00", 30)


@pytest.fixture
def generated_day(engine, hours):
    """TARGET_DATE generated for BUSINESS_ID; returns slot rows ordered by start."""
    engine.generator.ensure_generated(BUSINESS_ID, TARGET_DATE, hours)
    return engine.store.list_slots(BUSINESS_ID, TARGET_DATE)
