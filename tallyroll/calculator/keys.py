"""
Key Map

Translates on-screen action names and keyboard keys into calculator actions.
The UI layer forwards raw key names; everything it can send is listed here.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from tallyroll.calculator.state_machine import DIGIT_KEYS
from tallyroll.models.ledger import Operator


class KeyAction(str, Enum):
    """What a key press asks the calculator to do."""
    DIGIT = "digit"
    DECIMAL = "decimal"
    OPERATOR = "operator"
    EQUALS = "equals"
    CLEAR = "clear"
    SIGN = "sign"
    PERCENT = "percent"
    BACKSPACE = "backspace"


class ResolvedKey(BaseModel):
    """A key press resolved to an action and its argument."""

    action: KeyAction
    digit: Optional[str] = None
    operator: Optional[Operator] = None


# On-screen button actions
ACTION_NAMES: dict[str, ResolvedKey] = {
    "add": ResolvedKey(action=KeyAction.OPERATOR, operator=Operator.ADD),
    "subtract": ResolvedKey(action=KeyAction.OPERATOR, operator=Operator.SUBTRACT),
    "multiply": ResolvedKey(action=KeyAction.OPERATOR, operator=Operator.MULTIPLY),
    "divide": ResolvedKey(action=KeyAction.OPERATOR, operator=Operator.DIVIDE),
    "equals": ResolvedKey(action=KeyAction.EQUALS),
    "decimal": ResolvedKey(action=KeyAction.DECIMAL),
    "clear": ResolvedKey(action=KeyAction.CLEAR),
    "sign": ResolvedKey(action=KeyAction.SIGN),
    "percent": ResolvedKey(action=KeyAction.PERCENT),
    "backspace": ResolvedKey(action=KeyAction.BACKSPACE),
}

# Keyboard keys and printed key symbols, mapped onto action names
KEYBOARD_KEYS: dict[str, str] = {
    "+": "add",
    "-": "subtract",
    "−": "subtract",
    "*": "multiply",
    "×": "multiply",
    "/": "divide",
    "÷": "divide",
    "=": "equals",
    "Enter": "equals",
    ".": "decimal",
    "Escape": "clear",
    "Backspace": "backspace",
    "%": "percent",
}


def resolve_key(key: str) -> Optional[ResolvedKey]:
    """Resolve a key or action name. Unknown keys resolve to None."""
    if key in DIGIT_KEYS:
        return ResolvedKey(action=KeyAction.DIGIT, digit=key)
    name = KEYBOARD_KEYS.get(key, key)
    return ACTION_NAMES.get(name)
