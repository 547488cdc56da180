"""Typed rejections raised by minter operations.

Every error aborts the current request. Callers run each request inside their
own transaction, so raising is enough to discard any pending writes.
"""

from __future__ import annotations


class MinterError(Exception):
    """Base class for all request rejections.

    Attributes
    ----------
    code : str
        Stable machine-readable identifier surfaced to callers.
    """

    code = "minter_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_json(self) -> dict:
        return {"code": self.code, "message": self.message}


class Unauthorized(MinterError):
    """Caller identity does not match the required identity."""

    code = "unauthorized"


class PreconditionFailed(MinterError):
    """A state-dependent guard rejected the operation."""

    code = "precondition_failed"


class InvalidRequest(MinterError):
    """The command or payload is malformed or out of range."""

    code = "invalid_request"


class NotConfigured(MinterError):
    code = "not_configured"


class MintingDisabled(MinterError):
    code = "minting_disabled"


class InventoryExhausted(MinterError):
    code = "inventory_exhausted"


class InsufficientInventory(MinterError):
    code = "insufficient_inventory"


class CapExceeded(MinterError):
    code = "cap_exceeded"


class PaymentMismatch(MinterError):
    code = "payment_mismatch"


class NotEligible(MinterError):
    code = "not_eligible"


class AlreadyClaimed(MinterError):
    code = "already_claimed"


class NotFound(MinterError):
    """A persisted record expected by an invariant is missing."""

    code = "not_found"


__all__ = [
    "MinterError",
    "Unauthorized",
    "PreconditionFailed",
    "InvalidRequest",
    "NotConfigured",
    "MintingDisabled",
    "InventoryExhausted",
    "InsufficientInventory",
    "CapExceeded",
    "PaymentMismatch",
    "NotEligible",
    "AlreadyClaimed",
    "NotFound",
]
