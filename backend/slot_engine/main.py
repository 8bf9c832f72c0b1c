import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from .config import settings
from .database import SessionLocal
from .error_handlers import register_exception_handlers
from .redis_client import redis_client
from .routers import internal, slots
from .services.slots import get_slot_engine
from .services.slots.sweeper import expiry_sweeper_loop

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = None
    if settings.sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            expiry_sweeper_loop(
                get_slot_engine().reservations,
                settings.sweep_interval_seconds,
                settings.sweep_batch_limit,
            )
        )
    yield
    if sweeper is not None:
        sweeper.cancel()
        await asyncio.gather(sweeper, return_exceptions=True)


app = FastAPI(title="Slot Engine API", lifespan=lifespan)
register_exception_handlers(app)
app.include_router(slots.router)
app.include_router(internal.router)


@app.get("/health")
def health():
    db_ok = True
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_ok = False
    finally:
        db.close()

    try:
        redis_ok = bool(redis_client.ping())
    except Exception:
        logger.warning("Redis health check failed")
        redis_ok = False

    return {"database": db_ok, "redis": redis_ok}
