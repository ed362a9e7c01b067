"""
Core Ledger Models for tallyroll

These models define the entries that make up the adding-machine tape.
They are designed to:
1. Keep identity stable (id, kind and creation order never change)
2. Reject non-finite values at the model boundary
3. Serialize to the camelCase snapshot format without extra mapping code

DESIGN DECISION: Operator names live in enums, never in free strings.
The enum values double as the wire strings used by snapshots, so the only
translation point is pydantic serialization.
"""

from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class OperationKind(str, Enum):
    """
    Kinds of entries that can be committed to the ledger.

    Only additions and subtractions ever reach the tape.
    """
    ADD = "Add"
    SUBTRACT = "Subtract"


class Operator(str, Enum):
    """Binary operators understood by the calculator."""
    ADD = "Add"
    SUBTRACT = "Subtract"
    MULTIPLY = "Multiply"
    DIVIDE = "Divide"

    @property
    def ledger_kind(self) -> Optional[OperationKind]:
        """The ledger entry kind this operator commits, if any."""
        if self is Operator.ADD:
            return OperationKind.ADD
        if self is Operator.SUBTRACT:
            return OperationKind.SUBTRACT
        return None


class DisplayMode(str, Enum):
    """
    How numeric input is interpreted and rendered.

    CURRENCY treats integer input as minor units (cents).
    """
    PLAIN = "Plain"
    CURRENCY = "Currency"


# =============================================================================
# LEDGER ENTRY
# =============================================================================

class Operation(BaseModel):
    """
    A single committed ledger entry.

    Identity is immutable: id, kind and creation order are frozen.
    The value may be edited in place; running_total is a cached field that
    the ledger engine rewrites whenever the sequence changes.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        frozen=True,
        description="Opaque unique token, never reused"
    )
    kind: OperationKind = Field(
        ...,
        frozen=True,
        description="Add or Subtract"
    )
    value: float = Field(
        ...,
        allow_inf_nan=False,
        description="Magnitude of the entry; the sign comes from kind"
    )
    created_at: int = Field(
        ...,
        ge=0,
        frozen=True,
        description="Monotonic creation order marker"
    )
    running_total: float = Field(
        default=0.0,
        allow_inf_nan=False,
        description="Cumulative total up to and including this entry"
    )

    @property
    def signed(self) -> float:
        """Contribution of this entry to the total."""
        if self.kind is OperationKind.ADD:
            return self.value
        return -self.value
