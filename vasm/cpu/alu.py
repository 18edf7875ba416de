"""
ALU operations on machine values.

Every function takes Values and returns a new Value (or bool for
compare). Integer results wrap to 64 bits. Any combination of variants
an operation does not define raises MachineFault(TYPE_MISMATCH); the
engine attaches the PC.

Cross-type rules:
  ADD  Text + Text      -> concatenation
  MUL  Text * Integer   -> Text repeated n times (n <= 0 gives "")
       Integer * Text   -> same
  DIV  Text / Text      -> Integer len(left) - len(right)

Text results longer than max_text raise MachineFault(TEXT_TOO_LONG)
before the string is built.
"""

from ..config import MAX_TEXT_LENGTH
from ..errors import FaultKind, MachineFault
from ..program import CompareOp
from ..values import Integer, Text, Value, type_name


def _mismatch(op: str, left: Value, right: Value = None) -> MachineFault:
    if right is None:
        return MachineFault(FaultKind.TYPE_MISMATCH,
                            f"{op} is not defined for {type_name(left)} {left}")
    return MachineFault(FaultKind.TYPE_MISMATCH,
                        f"{op} is not defined for {type_name(left)} {left} "
                        f"and {type_name(right)} {right}")


def _check_length(op: str, length: int, max_text: int):
    if length > max_text:
        raise MachineFault(FaultKind.TEXT_TOO_LONG,
                           f"{op} would build a Text of {length} characters (limit {max_text})")


def add(left: Value, right: Value, max_text: int = MAX_TEXT_LENGTH) -> Value:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return Integer(left.value + right.value)
    if isinstance(left, Text) and isinstance(right, Text):
        _check_length("ADD", len(left.value) + len(right.value), max_text)
        return Text(left.value + right.value)
    raise _mismatch("ADD", left, right)


def sub(left: Value, right: Value) -> Value:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return Integer(left.value - right.value)
    raise _mismatch("SUB", left, right)


def mul(left: Value, right: Value, max_text: int = MAX_TEXT_LENGTH) -> Value:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return Integer(left.value * right.value)
    if isinstance(left, Text) and isinstance(right, Integer):
        text, count = left.value, max(right.value, 0)
    elif isinstance(left, Integer) and isinstance(right, Text):
        text, count = right.value, max(left.value, 0)
    else:
        raise _mismatch("MUL", left, right)
    _check_length("MUL", len(text) * count, max_text)
    return Text(text * count)


def div(left: Value, right: Value) -> Value:
    """Integer division truncates toward zero (-7 / 2 == -3)."""
    if isinstance(left, Integer) and isinstance(right, Integer):
        if right.value == 0:
            raise MachineFault(FaultKind.DIVIDE_BY_ZERO,
                               f"Division by zero in {left.value}/{right.value}")
        quotient = abs(left.value) // abs(right.value)
        if (left.value < 0) != (right.value < 0):
            quotient = -quotient
        return Integer(quotient)
    if isinstance(left, Text) and isinstance(right, Text):
        return Integer(len(left.value) - len(right.value))
    raise _mismatch("DIV", left, right)


def bit_and(left: Value, right: Value) -> Value:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return Integer(left.value & right.value)
    raise _mismatch("AND", left, right)


def bit_or(left: Value, right: Value) -> Value:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return Integer(left.value | right.value)
    raise _mismatch("OR", left, right)


def bit_xor(left: Value, right: Value) -> Value:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return Integer(left.value ^ right.value)
    raise _mismatch("XOR", left, right)


def bit_not(value: Value) -> Value:
    if isinstance(value, Integer):
        return Integer(~value.value)
    raise _mismatch("NOT", value)


def increment(value: Value, delta: int) -> Value:
    """INC/DEC: add delta to an Integer in place of the old value."""
    if isinstance(value, Integer):
        return Integer(value.value + delta)
    raise _mismatch("INC" if delta > 0 else "DEC", value)


def compare(left: Value, op: CompareOp, right: Value) -> bool:
    """Numeric compare for Integers, ordinal (code point) compare for Text."""
    if (isinstance(left, Integer) and isinstance(right, Integer)) or \
            (isinstance(left, Text) and isinstance(right, Text)):
        a, b = left.value, right.value
        ordering = (a > b) - (a < b)
        return op.holds(ordering)
    raise _mismatch(f"Comparison '{op.value}'", left, right)
