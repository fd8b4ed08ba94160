"""
Error taxonomy for the order lifecycle.

OrderRejected is recoverable: the proposed batch is discarded, the ledger is left
untouched and the caller may retry with corrected intents on a later step.
InvariantViolation marks a state the engine must never reach (e.g. reversing a
terminal order status); callers should treat it as fatal for the instrument.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class RejectReason(Enum):
    TARGET_CROSSED = "target_crossed"
    STOP_WRONG_SIDE = "stop_wrong_side"
    EXIT_WRONG_SIDE = "exit_wrong_side"
    CAPACITY = "capacity"


class EngineError(Exception):
    """Base class for all engine errors."""


class OrderRejected(EngineError):
    def __init__(self, reason: RejectReason, detail: Optional[str] = None) -> None:
        self.reason = reason
        self.detail = detail
        message = reason.value if detail is None else f"{reason.value}: {detail}"
        super().__init__(message)


class InvariantViolation(EngineError):
    pass
