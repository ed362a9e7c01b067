"""
Snapshot Wire Format

A snapshot is a flat key-value record that an external storage collaborator
persists between sessions. Keys are camelCase:

    currentEntry, previousValue, pendingOperator, awaitingNewEntry,
    lastAddedValue, displayMode, operationHistory

DESIGN DECISION: Loading is a versioned union, tried in order:
1. Current schema (record carries operationHistory)
2. Legacy schema (bare list of added numbers, or a record with addedNumbers)
3. Default state

Within a schema, a malformed field falls back to its default value on its
own. Fields are never merged across schemas: a legacy record never produces
ledger entries, because its numbers have no stable identity to edit or delete.
"""

from enum import Enum
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel, to_snake

from tallyroll.models.ledger import Operation
from tallyroll.models.state import CalculatorState


OPERATION_HISTORY_KEY = "operationHistory"
LEGACY_NUMBERS_KEY = "addedNumbers"

ModelT = TypeVar("ModelT", bound=BaseModel)


class SnapshotSource(str, Enum):
    """Which schema a loaded snapshot was read from."""
    CURRENT = "current"
    LEGACY = "legacy"
    DEFAULT = "default"


class Snapshot(CalculatorState):
    """
    Complete persisted session: calculator state plus the ledger.

    running_total values are stored for readers of the raw record, but the
    ledger re-derives them on restore rather than trusting them.
    """

    operation_history: list[Operation] = Field(
        default_factory=list,
        description="Ledger entries in insertion order"
    )

    @field_validator("operation_history")
    @classmethod
    def validate_unique_ids(cls, v: list[Operation]) -> list[Operation]:
        """Entries must keep distinct identities to be editable."""
        ids = [op.id for op in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Operation history contains duplicate ids")
        return v

    @classmethod
    def from_components(
        cls,
        state: CalculatorState,
        entries: Iterable[Operation],
    ) -> "Snapshot":
        """Build a snapshot from the live state and ledger entries."""
        return cls(
            **state.model_dump(),
            operation_history=[op.model_copy() for op in entries],
        )

    def calculator_state(self) -> CalculatorState:
        """The calculator part of this snapshot."""
        return CalculatorState(
            **self.model_dump(exclude={"operation_history"})
        )

    def to_wire(self) -> dict[str, Any]:
        """Convert to a JSON-compatible camelCase record."""
        return self.model_dump(mode="json", by_alias=True)


class LegacySnapshot(CalculatorState):
    """
    Older record shape: scalar calculator fields plus a flat list of the
    numbers that were added, with no per-entry identity.
    """

    added_numbers: list[float] = Field(
        default_factory=list,
        description="Raw added numbers (discarded on load)"
    )


class SnapshotLoadResult(BaseModel):
    """Outcome of decoding a raw snapshot record."""

    snapshot: Snapshot
    source: SnapshotSource
    dropped_fields: list[str] = Field(
        default_factory=list,
        description="Top-level fields that were malformed and reset to defaults"
    )


# =============================================================================
# DESERIALIZER
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_legacy(raw: Any) -> bool:
    if isinstance(raw, list):
        return all(_is_number(item) for item in raw)
    return isinstance(raw, dict) and LEGACY_NUMBERS_KEY in raw


def _validate_leniently(
    model: type[ModelT],
    record: dict[str, Any],
) -> tuple[ModelT, list[str]]:
    """
    Validate a record, resetting each malformed top-level field to its default.

    Returns the model and the names of the fields that were dropped.
    """
    data = dict(record)
    dropped: list[str] = []

    while True:
        try:
            return model.model_validate(data), dropped
        except ValidationError as exc:
            bad_keys = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            removable = [
                key
                for bad in bad_keys
                for key in {bad, to_camel(bad), to_snake(bad)}
                if key in data
            ]
            if not removable:
                # Model-level failure with nothing left to drop
                return model(), sorted(data)
            for key in removable:
                data.pop(key)
                dropped.append(key)


def load_snapshot(raw: Any) -> SnapshotLoadResult:
    """
    Decode a raw snapshot record of any known shape.

    Never raises: unusable input yields the default state.
    """
    if isinstance(raw, dict) and OPERATION_HISTORY_KEY in raw:
        snapshot, dropped = _validate_leniently(Snapshot, raw)
        return SnapshotLoadResult(
            snapshot=snapshot,
            source=SnapshotSource.CURRENT,
            dropped_fields=dropped,
        )

    if _is_legacy(raw):
        record = raw if isinstance(raw, dict) else {}
        legacy, dropped = _validate_leniently(LegacySnapshot, record)
        snapshot = Snapshot(
            **legacy.model_dump(exclude={"added_numbers", "last_added_value"})
        )
        return SnapshotLoadResult(
            snapshot=snapshot,
            source=SnapshotSource.LEGACY,
            dropped_fields=dropped,
        )

    if isinstance(raw, dict):
        snapshot, dropped = _validate_leniently(Snapshot, raw)
        return SnapshotLoadResult(
            snapshot=snapshot,
            source=SnapshotSource.CURRENT,
            dropped_fields=dropped,
        )

    return SnapshotLoadResult(snapshot=Snapshot(), source=SnapshotSource.DEFAULT)
