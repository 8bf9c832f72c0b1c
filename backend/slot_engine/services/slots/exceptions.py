# backend/slot_engine/services/slots/exceptions.py
"""
Error taxonomy of the slot engine.

Contention is an expected outcome, infrastructure failure is not:
callers pick another slot on SlotUnavailableError and retry the
operation (not the slot) on SlotStoreError.
"""


class SlotEngineError(Exception):
    """Base class for all slot engine errors."""


class SlotUnavailableError(SlotEngineError):
    """A conditional transition lost: the slot is no longer in the expected state."""

    def __init__(self, slot_id: str, action: str, current_status: str | None = None):
        self.slot_id = slot_id
        self.action = action
        self.current_status = current_status
        msg = f"Cannot {action} slot {slot_id}"
        if current_status:
            msg += f" (current status: {current_status})"
        super().__init__(msg)


class SlotNotFoundError(SlotEngineError):
    """Slot id does not exist or belongs to another business."""

    def __init__(self, slot_id: str, business_id: str):
        self.slot_id = slot_id
        self.business_id = business_id
        super().__init__(f"Slot {slot_id} not found for business {business_id}")


class SlotConfigError(SlotEngineError, ValueError):
    """Missing or invalid opening_time / closing_time / slot_duration."""


class SlotStoreError(SlotEngineError):
    """The durable store is unreachable or returned an unexpected error."""
