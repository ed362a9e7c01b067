"""
Display Formatting

Turns numbers and calculator state into the exact text a UI shows.
Nothing here mutates state.
"""

import math
import re
from decimal import Decimal
from typing import Optional

from tallyroll.config import DisplaySettings, get_settings
from tallyroll.models.ledger import DisplayMode, Operation, OperationKind, Operator
from tallyroll.models.state import CalculatorState
from tallyroll.models.view import LedgerLine


OPERATOR_SYMBOLS = {
    Operator.ADD: "+",
    Operator.SUBTRACT: "−",
    Operator.MULTIPLY: "×",
    Operator.DIVIDE: "÷",
}

ENTRY_PREFIXES = {
    OperationKind.ADD: "+",
    OperationKind.SUBTRACT: "−",
}

# Display switches to exponent notation outside this magnitude band
LARGE_MAGNITUDE = 1e12
SMALL_MAGNITUDE = 1e-6

_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))")
_PLAIN_NUMBER = re.compile(r"(-?)(\d+)(\.\d*)?")


def _display(display: Optional[DisplaySettings]) -> DisplaySettings:
    return display or get_settings().display


# =============================================================================
# NUMBER <-> TEXT
# =============================================================================

def number_to_text(value: float) -> str:
    """
    Shortest plain decimal text for a number: 5.0 -> '5', 1e-05 -> '0.00001'.

    Never uses exponent notation, so the result is always a valid entry.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot represent {value!r} as an entry")
    return format(Decimal(repr(value + 0.0)).normalize(), "f")


def parse_entry(text: str, mode: DisplayMode = DisplayMode.PLAIN) -> float:
    """
    Numeric value of an entry buffer.

    In currency mode, text without a decimal point is minor units:
    '525' -> 5.25, while '5.25' -> 5.25.
    """
    number = float(text)
    if mode is DisplayMode.CURRENCY and "." not in text:
        return number / 100
    return number


def group_thousands(text: str) -> str:
    """Insert thousands separators into the integer part, keep the rest as typed."""
    match = _PLAIN_NUMBER.fullmatch(text)
    if not match:
        return text
    sign, integer, fraction = match.groups()
    return f"{sign}{_THOUSANDS.sub(',', integer)}{fraction or ''}"


def to_exponential(value: float, digits: int) -> str:
    """Exponent notation with an unpadded exponent: 1.234560e+12."""
    mantissa, exponent = f"{value:.{digits}e}".split("e")
    return f"{mantissa}e{int(exponent):+d}"


def to_precision(value: float, digits: int) -> str:
    """
    Round to a number of significant digits.

    Uses fixed notation unless the exponent is below -6 or at least the
    digit count, mirroring the usual calculator convention.
    """
    if not math.isfinite(value):
        return str(value)
    rounded = f"{Decimal(repr(value)):.{digits - 1}e}"
    exponent = int(rounded.split("e")[1])
    if exponent < -6 or exponent >= digits:
        return to_exponential(value, digits - 1)
    return f"{Decimal(repr(value)):.{digits - 1 - exponent}f}"


def format_currency(value: float, symbol: str = "$") -> str:
    """Currency text with two decimals: -1234.5 -> '-$1,234.50'."""
    if not math.isfinite(value):
        return f"{symbol}{value}"
    text = f"{value:.2f}"
    digits = text.lstrip("-")
    negative = text.startswith("-") and float(digits) != 0
    return f"{'-' if negative else ''}{symbol}{group_thousands(digits)}"


def format_amount(
    value: float,
    mode: DisplayMode,
    display: Optional[DisplaySettings] = None,
) -> str:
    """A committed value or total, as shown on the tape."""
    display = _display(display)
    if mode is DisplayMode.CURRENCY:
        return format_currency(value, display.currency_symbol)
    return group_thousands(number_to_text(value))


# =============================================================================
# CALCULATOR DISPLAY
# =============================================================================

def format_plain_entry(
    entry: str,
    display: Optional[DisplaySettings] = None,
) -> str:
    """
    Primary display text for an entry in plain mode.

    Long entries are shortened to significant digits, or to exponent
    notation when very large or very small.
    """
    display = _display(display)
    text = entry

    if len(text) > display.max_display_length:
        number = float(text)
        if not math.isfinite(number):
            return str(number)
        magnitude = abs(number)
        if magnitude >= LARGE_MAGNITUDE or (number != 0 and magnitude < SMALL_MAGNITUDE):
            return to_exponential(number, display.exponent_digits)
        text = to_precision(number, display.significant_digits)
        if "." in text:
            text = text.rstrip("0").rstrip(".")

    return group_thousands(text)


def format_primary(
    state: CalculatorState,
    display: Optional[DisplaySettings] = None,
) -> str:
    """Main display line."""
    display = _display(display)

    if state.display_mode is DisplayMode.CURRENCY:
        if state.awaiting_new_entry and state.previous_value is not None:
            value = state.previous_value
        else:
            value = parse_entry(state.current_entry, state.display_mode)
        return format_currency(value, display.currency_symbol)

    return format_plain_entry(state.current_entry, display)


def format_secondary(
    state: CalculatorState,
    display: Optional[DisplaySettings] = None,
) -> str:
    """Staged operand and pending operator, e.g. '1,250 +'."""
    if state.previous_value is None or state.pending_operator is None:
        return ""
    display = _display(display)

    if state.display_mode is DisplayMode.CURRENCY:
        previous = format_currency(state.previous_value, display.currency_symbol)
    else:
        previous = group_thousands(number_to_text(state.previous_value))
        if len(previous) > 10:
            previous = to_precision(state.previous_value, 6)

    return f"{previous} {OPERATOR_SYMBOLS[state.pending_operator]}"


def format_ledger_line(
    operation: Operation,
    mode: DisplayMode,
    display: Optional[DisplaySettings] = None,
) -> LedgerLine:
    """One tape line: signed amount and the running total after it."""
    display = _display(display)
    return LedgerLine(
        entry_id=operation.id,
        kind=operation.kind,
        amount_text=ENTRY_PREFIXES[operation.kind] + format_amount(operation.value, mode, display),
        total_text="= " + format_amount(operation.running_total, mode, display),
        is_negative_total=operation.running_total < 0,
    )
