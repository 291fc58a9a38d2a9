"""Error kinds raised by the sales document engine.

Ledger errors are recoverable input mistakes.  Lifecycle errors are policy
violations; each carries a ``remedy`` the UI can offer to the user.
``PersistenceError`` wraps any failure of the document store and is passed
through unchanged.
"""

from __future__ import annotations


# ─── Ledger ───────────────────────────────────────────────────────────────────


class LedgerError(ValueError):
    code = "LEDGER_ERROR"


class InvalidQuantity(LedgerError):
    code = "INVALID_QUANTITY"


class InvalidPrice(LedgerError):
    code = "INVALID_PRICE"


class IndexOutOfRange(LedgerError, IndexError):
    code = "INDEX_OUT_OF_RANGE"


# ─── Lifecycle ────────────────────────────────────────────────────────────────


class LifecycleError(ValueError):
    code = "LIFECYCLE_ERROR"

    def __init__(self, message: str, remedy: str | None = None) -> None:
        self.remedy = remedy
        super().__init__(message)


class DocumentExpired(LifecycleError):
    code = "DOCUMENT_EXPIRED"


class InvalidStateForConversion(LifecycleError):
    code = "INVALID_STATE_FOR_CONVERSION"


class UnsupportedConversion(LifecycleError):
    code = "UNSUPPORTED_CONVERSION"


class InvalidTransition(LifecycleError):
    code = "INVALID_TRANSITION"


class DocumentLocked(LifecycleError):
    code = "DOCUMENT_LOCKED"


# ─── Persistence ──────────────────────────────────────────────────────────────


class PersistenceError(Exception):
    """The document store did not complete the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
