"""Tests for display formatting and the key map."""

import pytest

from tallyroll.calculator.formatting import (
    format_amount,
    format_currency,
    format_ledger_line,
    format_plain_entry,
    format_primary,
    format_secondary,
    group_thousands,
    number_to_text,
    parse_entry,
    to_exponential,
    to_precision,
)
from tallyroll.calculator.keys import KeyAction, resolve_key
from tallyroll.config import DisplaySettings
from tallyroll.models.ledger import DisplayMode, Operation, OperationKind, Operator
from tallyroll.models.state import CalculatorState


@pytest.fixture
def display():
    return DisplaySettings()


class TestNumberText:
    """Tests for number <-> entry text conversion."""

    @pytest.mark.parametrize("value,expected", [
        (5.0, "5"),
        (100.0, "100"),
        (0.25, "0.25"),
        (1e-05, "0.00001"),
        (-0.0, "0"),
        (-12.5, "-12.5"),
    ])
    def test_number_to_text(self, value, expected):
        """Test shortest plain text without exponents."""
        assert number_to_text(value) == expected

    def test_number_to_text_rejects_non_finite(self):
        """Test infinity cannot become an entry."""
        with pytest.raises(ValueError):
            number_to_text(float("inf"))

    def test_parse_plain(self):
        """Test plain entries parse as typed."""
        assert parse_entry("525") == 525
        assert parse_entry("0.") == 0

    def test_parse_currency(self):
        """Test currency entries without a point are minor units."""
        assert parse_entry("525", DisplayMode.CURRENCY) == 5.25
        assert parse_entry("5.25", DisplayMode.CURRENCY) == 5.25


class TestNumberFormats:
    """Tests for grouping, exponent and currency helpers."""

    def test_group_thousands(self):
        """Test separators go into the integer part only."""
        assert group_thousands("1234567.891") == "1,234,567.891"
        assert group_thousands("-1000") == "-1,000"
        assert group_thousands("999") == "999"
        assert group_thousands("0.") == "0."

    def test_to_exponential(self):
        """Test exponent is unpadded."""
        assert to_exponential(1234567890123, 6) == "1.234568e+12"
        assert to_exponential(0.00000012, 2) == "1.20e-7"

    def test_to_precision(self):
        """Test significant digit rounding."""
        assert to_precision(123.456, 6) == "123.456"
        assert to_precision(12345678901, 6) == "1.23457e+10"

    @pytest.mark.parametrize("value,expected", [
        (5.25, "$5.25"),
        (1234.5, "$1,234.50"),
        (-1234.5, "-$1,234.50"),
        (-0.001, "$0.00"),
        (0, "$0.00"),
    ])
    def test_format_currency(self, value, expected):
        """Test currency text with two decimals and a leading sign."""
        assert format_currency(value) == expected

    def test_format_amount(self, display):
        """Test tape amounts in both modes."""
        assert format_amount(1234.5, DisplayMode.PLAIN, display) == "1,234.5"
        assert format_amount(1234.5, DisplayMode.CURRENCY, display) == "$1,234.50"


class TestCalculatorDisplay:
    """Tests for the primary and secondary display lines."""

    def test_plain_entry_grouped(self, display):
        """Test typed entries get separators and keep a trailing point."""
        assert format_plain_entry("1234567", display) == "1,234,567"
        assert format_plain_entry("12.", display) == "12."

    def test_long_large_entry_uses_exponent(self, display):
        """Test entries past the display width switch to exponent notation."""
        assert format_plain_entry("1234567890123", display) == "1.234568e+12"

    def test_long_fraction_is_shortened(self, display):
        """Test long fractions are cut to significant digits."""
        assert format_plain_entry("0.1234567890123", display) == "0.123456789012"

    def test_primary_currency(self, display):
        """Test currency mode shows minor units as dollars."""
        state = CalculatorState(current_entry="525", display_mode=DisplayMode.CURRENCY)
        assert format_primary(state, display) == "$5.25"

    def test_primary_currency_shows_staged_value(self, display):
        """Test the staged operand is shown while waiting for the next entry."""
        state = CalculatorState(
            current_entry="525",
            previous_value=5.25,
            pending_operator=Operator.ADD,
            awaiting_new_entry=True,
            display_mode=DisplayMode.CURRENCY,
        )
        assert format_primary(state, display) == "$5.25"

    def test_secondary(self, display):
        """Test staged operand and operator symbol."""
        state = CalculatorState(previous_value=1250, pending_operator=Operator.SUBTRACT)
        assert format_secondary(state, display) == "1,250 −"

    def test_secondary_empty_without_operator(self, display):
        """Test nothing staged shows nothing."""
        assert format_secondary(CalculatorState(), display) == ""

    def test_secondary_long_value(self, display):
        """Test long staged values are shortened."""
        state = CalculatorState(previous_value=12345678901, pending_operator=Operator.MULTIPLY)
        assert format_secondary(state, display) == "1.23457e+10 ×"

    def test_secondary_currency(self, display):
        """Test staged value in currency mode."""
        state = CalculatorState(
            previous_value=5.25,
            pending_operator=Operator.DIVIDE,
            display_mode=DisplayMode.CURRENCY,
        )
        assert format_secondary(state, display) == "$5.25 ÷"


class TestLedgerLine:
    """Tests for formatted tape lines."""

    def test_subtract_line(self, display):
        """Test sign prefix, total text and negative flag."""
        op = Operation(kind=OperationKind.SUBTRACT, value=3, created_at=2, running_total=-1)
        line = format_ledger_line(op, DisplayMode.PLAIN, display)
        assert line.entry_id == op.id
        assert line.amount_text == "−3"
        assert line.total_text == "= -1"
        assert line.is_negative_total is True

    def test_currency_line(self, display):
        """Test currency formatting on the tape."""
        op = Operation(kind=OperationKind.ADD, value=1250, created_at=1, running_total=1250)
        line = format_ledger_line(op, DisplayMode.CURRENCY, display)
        assert line.amount_text == "+$1,250.00"
        assert line.total_text == "= $1,250.00"
        assert line.is_negative_total is False


class TestResolveKey:
    """Tests for the key map."""

    @pytest.mark.parametrize("key", ["0", "7", "00"])
    def test_digits(self, key):
        """Test digit keys."""
        resolved = resolve_key(key)
        assert resolved.action is KeyAction.DIGIT
        assert resolved.digit == key

    @pytest.mark.parametrize("key,operator", [
        ("+", Operator.ADD),
        ("-", Operator.SUBTRACT),
        ("−", Operator.SUBTRACT),
        ("*", Operator.MULTIPLY),
        ("×", Operator.MULTIPLY),
        ("/", Operator.DIVIDE),
        ("divide", Operator.DIVIDE),
    ])
    def test_operators(self, key, operator):
        """Test keyboard keys, symbols and action names."""
        resolved = resolve_key(key)
        assert resolved.action is KeyAction.OPERATOR
        assert resolved.operator is operator

    @pytest.mark.parametrize("key,action", [
        ("=", KeyAction.EQUALS),
        ("Enter", KeyAction.EQUALS),
        (".", KeyAction.DECIMAL),
        ("Escape", KeyAction.CLEAR),
        ("Backspace", KeyAction.BACKSPACE),
        ("%", KeyAction.PERCENT),
        ("sign", KeyAction.SIGN),
    ])
    def test_actions(self, key, action):
        """Test non-operator keys."""
        assert resolve_key(key).action is action

    def test_unknown_key(self):
        """Test unknown keys resolve to None."""
        assert resolve_key("q") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
