"""Ledger engine package."""

from tallyroll.ledger.engine import (
    DEFAULT_ROUNDING_PLACES,
    EntryNotFoundError,
    InvalidValueError,
    LedgerEngine,
    LedgerError,
    round_value,
)

__all__ = [
    "DEFAULT_ROUNDING_PLACES",
    "EntryNotFoundError",
    "InvalidValueError",
    "LedgerEngine",
    "LedgerError",
    "round_value",
]
