from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from .services.slots.exceptions import (
    SlotConfigError,
    SlotNotFoundError,
    SlotStoreError,
    SlotUnavailableError,
)

logger = logging.getLogger(__name__)

MSG_SLOT_TAKEN = "This slot was just taken, please choose another"
MSG_STORE_UNAVAILABLE = "Slot storage is temporarily unavailable, please retry"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SlotUnavailableError)
    async def slot_unavailable_handler(request: Request, exc: SlotUnavailableError):
        return JSONResponse(
            status_code=409,
            content={
                "error": "slot_unavailable",
                "detail": MSG_SLOT_TAKEN,
                "slot_id": exc.slot_id,
                "current_status": exc.current_status,
            },
        )

    @app.exception_handler(SlotNotFoundError)
    async def slot_not_found_handler(request: Request, exc: SlotNotFoundError):
        return JSONResponse(
            status_code=404,
            content={"error": "slot_not_found", "detail": str(exc)},
        )

    @app.exception_handler(SlotConfigError)
    async def slot_config_handler(request: Request, exc: SlotConfigError):
        logger.warning(f"[SlotConfigError] {exc} | Path={request.url.path}")
        return JSONResponse(
            status_code=422,
            content={"error": "invalid_business_configuration", "detail": str(exc)},
        )

    @app.exception_handler(SlotStoreError)
    async def slot_store_handler(request: Request, exc: SlotStoreError):
        logger.error(f"[SlotStoreError] {exc} | Path={request.url.path}")
        return JSONResponse(
            status_code=503,
            content={"error": "store_unavailable", "detail": MSG_STORE_UNAVAILABLE},
        )
