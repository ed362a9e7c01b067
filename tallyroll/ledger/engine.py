"""
Ledger Engine

Owns the ordered sequence of committed Add/Subtract entries and keeps the
running-total invariant:

    entries[i].running_total == round(sum(signed(entries[0..i])))

DESIGN DECISION: After an edit or delete, totals are re-derived from an
empty accumulator over the whole sequence, never patched incrementally.
Ledgers are typed by hand, so O(n) per mutation is irrelevant, and a full
walk can never carry a stale partial sum forward.

Mutations are atomic from the caller's view: if anything fails after a
mutation started, the previous sequence and totals are restored exactly.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from tallyroll.models.ledger import Operation, OperationKind


DEFAULT_ROUNDING_PLACES = 8

# Doubles this large carry no fractional digits worth rounding
_ROUNDING_CEILING = 1e15


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidValueError(LedgerError):
    """Value is not a finite number."""
    pass


class EntryNotFoundError(LedgerError):
    """No entry with the requested id."""

    def __init__(self, entry_id: Any):
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


def round_value(value: float, places: int = DEFAULT_ROUNDING_PLACES) -> float:
    """
    Round half-up to a fixed number of decimal places.

    Suppresses binary floating-point drift (0.1 + 0.2 -> 0.3).
    Also normalizes negative zero to zero.
    """
    if not math.isfinite(value) or abs(value) >= _ROUNDING_CEILING:
        return value
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0


class LedgerEngine:
    """
    Ordered, editable sequence of signed entries with cached running totals.

    Entries are appended at the end, edited in place, or removed; they are
    never reordered.
    """

    def __init__(self, rounding_places: int = DEFAULT_ROUNDING_PLACES):
        self._operations: list[Operation] = []
        self._total = 0.0
        self._next_sequence = 1
        self._rounding_places = rounding_places

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def total(self) -> float:
        """Current grand total (0 when empty)."""
        return self._total

    def entries(self) -> tuple[Operation, ...]:
        """Read-only copy of the entries, in insertion order."""
        return tuple(op.model_copy() for op in self._operations)

    def get(self, entry_id: str) -> Operation:
        """Copy of a single entry."""
        return self._operations[self._index_of(entry_id)].model_copy()

    @property
    def is_empty(self) -> bool:
        return not self._operations

    def __len__(self) -> int:
        return len(self._operations)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def append(self, kind: OperationKind, value: float) -> Operation:
        """
        Commit a new entry at the end of the tape.

        Raises:
            InvalidValueError: If value is not a finite number
        """
        kind = OperationKind(kind)
        value = self._validate_value(value)

        operation = Operation(
            kind=kind,
            value=value,
            created_at=self._next_sequence,
        )
        running_total = self._round(self._total + operation.signed)
        if not math.isfinite(running_total):
            raise InvalidValueError(f"Total out of range after adding {value}")
        operation.running_total = running_total

        self._operations.append(operation)
        self._next_sequence += 1
        self._total = running_total
        return operation.model_copy()

    def edit(self, entry_id: str, new_value: float) -> Operation:
        """
        Replace an entry's value, keeping its kind and position.

        Raises:
            EntryNotFoundError: If no entry has this id
            InvalidValueError: If new_value is not a finite number
        """
        index = self._index_of(entry_id)
        value = self._validate_value(new_value)

        checkpoint = self._checkpoint()
        try:
            self._operations[index].value = value
            self.recalculate_all()
        except Exception:
            self._rollback(checkpoint)
            raise
        return self._operations[index].model_copy()

    def remove(self, entry_id: str) -> Operation:
        """
        Delete an entry and re-derive every running total.

        Raises:
            EntryNotFoundError: If no entry has this id
        """
        index = self._index_of(entry_id)

        checkpoint = self._checkpoint()
        try:
            removed = self._operations.pop(index)
            self.recalculate_all()
        except Exception:
            self._rollback(checkpoint)
            raise
        return removed.model_copy()

    def recalculate_all(self) -> None:
        """
        Re-derive every running total from an empty accumulator.

        Idempotent: calling it twice yields identical totals.

        Raises:
            InvalidValueError: If the total leaves the finite range
        """
        accumulator = 0.0
        for operation in self._operations:
            accumulator = self._round(accumulator + operation.signed)
            if not math.isfinite(accumulator):
                raise InvalidValueError("Total out of range")
            operation.running_total = accumulator
        self._total = accumulator

    def clear(self) -> None:
        """Empty the tape. Ids are never reused, so the sequence keeps counting."""
        self._operations = []
        self._total = 0.0

    def restore(self, operations: Iterable[Operation]) -> None:
        """
        Replace the whole sequence, e.g. from a snapshot.

        Cached running totals are ignored and re-derived.

        Raises:
            LedgerError: If ids repeat or the totals leave the finite range
        """
        restored = [op.model_copy() for op in operations]
        ids = [op.id for op in restored]
        if len(ids) != len(set(ids)):
            raise LedgerError("Cannot restore entries with duplicate ids")

        checkpoint = self._checkpoint()
        try:
            self._operations = restored
            self.recalculate_all()
        except Exception:
            self._rollback(checkpoint)
            raise
        self._next_sequence = max(
            [self._next_sequence] + [op.created_at + 1 for op in restored]
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _round(self, value: float) -> float:
        return round_value(value, self._rounding_places)

    def _index_of(self, entry_id: str) -> int:
        key = str(entry_id)
        for index, operation in enumerate(self._operations):
            if operation.id == key:
                return index
        raise EntryNotFoundError(entry_id)

    @staticmethod
    def _validate_value(value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise InvalidValueError(f"Not a number: {value!r}")
        number = float(value)
        if not math.isfinite(number):
            raise InvalidValueError(f"Not a finite number: {value!r}")
        return number

    def _checkpoint(self) -> tuple[list[Operation], list[tuple[float, float]], float]:
        return (
            list(self._operations),
            [(op.value, op.running_total) for op in self._operations],
            self._total,
        )

    def _rollback(
        self,
        checkpoint: tuple[list[Operation], list[tuple[float, float]], float],
    ) -> None:
        operations, values, total = checkpoint
        for operation, (value, running_total) in zip(operations, values):
            operation.value = value
            operation.running_total = running_total
        self._operations = operations
        self._total = total
