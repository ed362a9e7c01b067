"""Calculator package: state machine, key map and display formatting."""

from tallyroll.calculator.state_machine import (
    DIGIT_KEYS,
    CalculatorError,
    CalculatorStateMachine,
    DivideByZeroError,
    ValueOutOfRangeError,
)
from tallyroll.calculator.keys import KeyAction, ResolvedKey, resolve_key
from tallyroll.calculator.formatting import (
    format_amount,
    format_currency,
    format_ledger_line,
    format_primary,
    format_secondary,
    number_to_text,
    parse_entry,
)

__all__ = [
    "DIGIT_KEYS",
    "CalculatorError",
    "CalculatorStateMachine",
    "DivideByZeroError",
    "ValueOutOfRangeError",
    "KeyAction",
    "ResolvedKey",
    "resolve_key",
    "format_amount",
    "format_currency",
    "format_ledger_line",
    "format_primary",
    "format_secondary",
    "number_to_text",
    "parse_entry",
]
