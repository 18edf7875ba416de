"""
Memory bank for the vasm machine.

A flat, fixed-size array of MEMORY_SLOTS Values (index 0..255), every
slot starting at Integer(0). Each access is bounds-checked; a bad index
raises MachineFault(OUT_OF_RANGE_ADDRESS).
"""

from typing import Iterator, List, Tuple

from ..config import MEMORY_SLOTS
from ..errors import FaultKind, MachineFault
from ..values import ZERO, Value


class Memory:
    """256-slot value memory."""

    def __init__(self, size: int = MEMORY_SLOTS):
        self.size = size
        self._slots: List[Value] = [ZERO] * size

    def _check(self, addr: int) -> int:
        if not 0 <= addr < self.size:
            raise MachineFault(FaultKind.OUT_OF_RANGE_ADDRESS,
                               f"Address {addr} out of range 0..{self.size - 1}")
        return addr

    def read(self, addr: int) -> Value:
        return self._slots[self._check(addr)]

    def write(self, addr: int, value: Value):
        self._slots[self._check(addr)] = value

    def used(self) -> Iterator[Tuple[int, Value]]:
        """Yield (address, value) for every slot that no longer holds Integer(0)."""
        for addr, value in enumerate(self._slots):
            if value != ZERO:
                yield addr, value

    def __len__(self):
        return self.size
