"""
Value model for the vasm machine.

Every register, memory slot, stack entry and constant holds exactly one of:
  Integer: 64-bit signed integer (results wrap in two's complement)
  Text   : immutable character string

Values are frozen; mutating a location means storing a new Value in it.
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Union

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def wrap64(n: int) -> int:
    """Wrap an unbounded Python int into the signed 64-bit range."""
    n &= 0xFFFFFFFFFFFFFFFF
    if n & 0x8000000000000000:
        n -= 1 << 64
    return n


@dataclass(frozen=True)
class Integer:
    value: int

    def __post_init__(self):
        if not INT64_MIN <= self.value <= INT64_MAX:
            object.__setattr__(self, "value", wrap64(self.value))

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Text:
    value: str

    def __str__(self):
        return json.dumps(self.value, ensure_ascii=False)


Value = Union[Integer, Text]

ZERO = Integer(0)


def type_name(value: Value) -> str:
    if isinstance(value, Integer):
        return "Integer"
    if isinstance(value, Text):
        return "Text"
    raise TypeError(f"not a machine value: {value!r}")
