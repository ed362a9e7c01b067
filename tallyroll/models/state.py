"""
Calculator State Model

Everything the calculator needs to know between two key presses.
The ledger itself is NOT part of this model; it is owned by the ledger
engine and only referenced by the state machine.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from tallyroll.models.ledger import DisplayMode, Operator


# Leading sign, digits, at most one decimal point ("0." is a valid entry)
ENTRY_PATTERN = r"^-?\d+(\.\d*)?$"

DEFAULT_ENTRY = "0"


class CalculatorState(BaseModel):
    """
    In-progress input and pending-operator state.

    DESIGN DECISION: validate_assignment is on, so the state machine can
    never store a malformed entry buffer even by accident.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    current_entry: str = Field(
        default=DEFAULT_ENTRY,
        pattern=ENTRY_PATTERN,
        description="Number being typed, as text"
    )
    previous_value: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Left operand staged for the pending operator"
    )
    pending_operator: Optional[Operator] = Field(
        default=None,
        description="Operator waiting for its right operand"
    )
    awaiting_new_entry: bool = Field(
        default=False,
        description="Next digit starts a fresh entry"
    )
    last_added_value: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Most recent Add operand, for repeat-add"
    )
    display_mode: DisplayMode = Field(
        default=DisplayMode.PLAIN,
        description="Plain numbers or currency (minor units)"
    )

    @model_validator(mode="after")
    def drop_orphan_operator(self) -> "CalculatorState":
        """A pending operator needs a staged left operand."""
        if self.previous_value is None and self.pending_operator is not None:
            self.pending_operator = None
        return self

    @property
    def is_pristine(self) -> bool:
        """True when nothing has been typed or staged."""
        return (
            self.current_entry == DEFAULT_ENTRY
            and self.previous_value is None
            and self.pending_operator is None
            and not self.awaiting_new_entry
        )
