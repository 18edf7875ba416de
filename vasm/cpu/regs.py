"""
Register file for the vasm machine.

Register model:
  R0..R8: general purpose, hold any Value
  A     : accumulator; every ALU result lands here
  F     : flags register; modeled and dumped, but no operand can name it
           and no opcode reads or writes it
"""

from typing import Dict

from ..config import FLAGS_REGISTER, REGISTER_NAMES
from ..values import ZERO, Value


class Registers:
    """Fixed set of named registers, all starting at Integer(0)."""

    __slots__ = ('_values',)

    def __init__(self):
        self.reset()

    def reset(self):
        self._values: Dict[str, Value] = {name: ZERO for name in REGISTER_NAMES}

    def __getitem__(self, name: str) -> Value:
        return self._values[name]

    def __setitem__(self, name: str, value: Value):
        if name not in self._values:
            raise KeyError(f"Register '{name}' does not exist")
        self._values[name] = value

    @property
    def F(self) -> Value:
        return self._values[FLAGS_REGISTER]

    def snapshot(self) -> Dict[str, Value]:
        return dict(self._values)

    def display(self) -> str:
        """One-line register dump for traces."""
        return " ".join(f"{name}={value}" for name, value in self._values.items())
