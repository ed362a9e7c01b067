"""
Calculator State Machine

Interprets key presses and decides when an arithmetic operation commits to
the ledger:

    Entering        -> digits build current_entry
    OperatorPending -> operator chosen, waiting for the right operand
    Result          -> result shown, next digit starts a fresh entry

DESIGN DECISION: Only Add and Subtract ever touch the ledger. Multiply and
Divide transform the number on display and leave the tape alone, like a
physical adding machine.

Every operation either completes or raises before mutating anything, so a
rejected key press (divide by zero, overflow) leaves state and ledger as
they were.
"""

import math
from typing import Optional, Union

from tallyroll.calculator.formatting import number_to_text, parse_entry
from tallyroll.ledger.engine import DEFAULT_ROUNDING_PLACES, LedgerEngine, round_value
from tallyroll.models.ledger import DisplayMode, OperationKind, Operator
from tallyroll.models.state import DEFAULT_ENTRY, CalculatorState


DIGIT_KEYS = frozenset("0123456789") | {"00"}


class CalculatorError(Exception):
    """Base exception for rejected calculator operations."""

    user_message = "Invalid operation"


class DivideByZeroError(CalculatorError):
    """Division with a zero right operand."""

    user_message = "Cannot divide by zero"

    def __init__(self, left_operand: float):
        super().__init__(f"Cannot divide {left_operand} by zero")
        self.left_operand = left_operand


class ValueOutOfRangeError(CalculatorError):
    """An entry or result does not fit in a finite float."""

    user_message = "Number too large"


class CalculatorStateMachine:
    """
    Owns CalculatorState and is the only writer to the ledger it references.
    """

    def __init__(
        self,
        ledger: LedgerEngine,
        state: Optional[CalculatorState] = None,
        rounding_places: int = DEFAULT_ROUNDING_PLACES,
    ):
        self._ledger = ledger
        self._state = state.model_copy() if state else CalculatorState()
        self._rounding_places = rounding_places

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def state(self) -> CalculatorState:
        """Copy of the current state."""
        return self._state.model_copy()

    @property
    def ledger(self) -> LedgerEngine:
        return self._ledger

    @property
    def current_entry(self) -> str:
        return self._state.current_entry

    @property
    def clear_label(self) -> str:
        """'AC' when a clear would reset nothing but the defaults, 'C' otherwise."""
        if self._state.is_pristine and self._ledger.is_empty:
            return "AC"
        return "C"

    def entry_value(self) -> float:
        """
        Numeric value of current_entry, honouring currency mode.

        Raises:
            ValueOutOfRangeError: If the entry overflows a float
        """
        value = parse_entry(self._state.current_entry, self._state.display_mode)
        if not math.isfinite(value):
            raise ValueOutOfRangeError(f"Entry out of range: {self._state.current_entry}")
        return value

    # -------------------------------------------------------------------------
    # Entry editing
    # -------------------------------------------------------------------------

    def input_digit(self, digit: str) -> None:
        """Append a digit (or the '00' key) to the entry."""
        if digit not in DIGIT_KEYS:
            raise ValueError(f"Not a digit key: {digit!r}")

        if self._state.awaiting_new_entry:
            base = DEFAULT_ENTRY
        else:
            base = self._state.current_entry

        if base in ("0", "-0"):
            sign = "-" if base.startswith("-") else ""
            entry = sign + (digit.lstrip("0") or "0")
        else:
            entry = base + digit

        self._state.current_entry = entry
        self._state.awaiting_new_entry = False

    def input_decimal_point(self) -> None:
        if self._state.awaiting_new_entry:
            self._state.current_entry = "0."
            self._state.awaiting_new_entry = False
        elif "." not in self._state.current_entry:
            self._state.current_entry += "."

    def toggle_sign(self) -> None:
        entry = self._state.current_entry
        if entry == DEFAULT_ENTRY:
            return
        self._state.current_entry = entry[1:] if entry.startswith("-") else "-" + entry

    def input_percent(self) -> None:
        """Replace the entry with its value divided by 100."""
        value = round_value(self.entry_value() / 100, self._rounding_places)
        self._state.current_entry = self._to_entry(value)

    def backspace(self) -> None:
        entry = self._state.current_entry[:-1]
        if entry in ("", "-"):
            entry = DEFAULT_ENTRY
        self._state.current_entry = entry

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def set_operator(self, operator: Union[Operator, str]) -> None:
        """
        Choose the next operator, resolving or seeding as needed.

        Raises:
            DivideByZeroError: If resolving a pending division by zero
            ValueOutOfRangeError: If the entry or result overflows
        """
        operator = Operator(operator)
        state = self._state

        # Repeat-plus: Add again with no new digits re-adds the last addend
        if (
            operator is Operator.ADD
            and state.pending_operator is Operator.ADD
            and state.awaiting_new_entry
            and state.last_added_value is not None
        ):
            result = self._perform_calculation(right=state.last_added_value)
            state.current_entry = self._to_entry(result)
            state.previous_value = result
            return

        if state.previous_value is None:
            value = self.entry_value()
            # The first operand seeds an empty tape
            if operator.ledger_kind is not None and self._ledger.is_empty:
                self._ledger.append(OperationKind.ADD, value)
                if operator is Operator.ADD:
                    state.last_added_value = value
            state.previous_value = value
        # While awaiting the right operand, a new operator only replaces the
        # pending one; resolving here would commit the same operand twice.
        elif state.pending_operator is not None and not state.awaiting_new_entry:
            result = self._perform_calculation()
            state.current_entry = self._to_entry(result)
            state.previous_value = result

        state.pending_operator = operator
        state.awaiting_new_entry = True

    def equals(self) -> None:
        """
        Resolve the pending operation. No-op without one.

        Raises:
            DivideByZeroError: State is left untouched
            ValueOutOfRangeError: State is left untouched
        """
        state = self._state
        if state.previous_value is None or state.pending_operator is None:
            return

        result = self._perform_calculation()
        state.current_entry = self._to_entry(result)
        state.previous_value = None
        state.pending_operator = None
        state.awaiting_new_entry = True

    def _perform_calculation(self, right: Optional[float] = None) -> float:
        """
        Apply the pending operator to previous_value and the right operand.

        Add/Subtract also commit the right operand to the ledger. All checks
        run before the ledger is touched.
        """
        left = self._state.previous_value
        operator = self._state.pending_operator
        if right is None:
            right = self.entry_value()
        if left is None or operator is None:
            return right

        if operator is Operator.ADD:
            raw = left + right
        elif operator is Operator.SUBTRACT:
            raw = left - right
        elif operator is Operator.MULTIPLY:
            raw = left * right
        else:
            if right == 0:
                raise DivideByZeroError(left)
            raw = left / right

        result = round_value(raw, self._rounding_places)
        if not math.isfinite(result):
            raise ValueOutOfRangeError(f"Result out of range: {left} {operator.value} {right}")

        if operator.ledger_kind is not None:
            self._ledger.append(operator.ledger_kind, right)
            if operator is Operator.ADD:
                self._state.last_added_value = right

        return result

    # -------------------------------------------------------------------------
    # Clearing and modes
    # -------------------------------------------------------------------------

    def clear(self, full_reset: bool) -> None:
        """
        full_reset=True zeroes everything, ledger included (display mode is a
        preference and survives). False only resets the entry to '0'.
        """
        if full_reset:
            self._ledger.clear()
            self._state = CalculatorState(display_mode=self._state.display_mode)
        else:
            self._state.current_entry = DEFAULT_ENTRY

    def press_clear(self) -> bool:
        """
        The AC/C key. Returns True when it performed a full reset.

        'C' with an entry of '0' escalates to a full reset.
        """
        full_reset = (
            self.clear_label == "AC"
            or self._state.current_entry == DEFAULT_ENTRY
        )
        self.clear(full_reset)
        return full_reset

    def set_display_mode(self, mode: Union[DisplayMode, str]) -> None:
        self._state.display_mode = DisplayMode(mode)

    def toggle_display_mode(self) -> DisplayMode:
        if self._state.display_mode is DisplayMode.PLAIN:
            self._state.display_mode = DisplayMode.CURRENCY
        else:
            self._state.display_mode = DisplayMode.PLAIN
        return self._state.display_mode

    def restore(self, state: CalculatorState) -> None:
        self._state = state.model_copy()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _to_entry(self, value: float) -> str:
        text = number_to_text(value)
        # A currency result must keep reading as dollars, not cents
        if self._state.display_mode is DisplayMode.CURRENCY and "." not in text:
            text += ".00"
        return text
