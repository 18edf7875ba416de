"""
Program representation: opcodes, operands, instructions.

Produced by the assembler (assembler.py) and consumed by the execution
engine (emu.py). Each node is a plain dataclass; operands are already
resolved, so the engine never looks at source text again.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .values import Value


# ──────────────────────────────────────────────
# Opcodes
# ──────────────────────────────────────────────

class Opcode(enum.Enum):
    SET = "SET"
    STORE = "STORE"
    LOAD = "LOAD"
    CLEAR = "CLEAR"
    MOV = "MOV"
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    INC = "INC"
    DEC = "DEC"
    AND = "AND"
    OR = "OR"
    XOR = "XOR"
    NOT = "NOT"
    JMP = "JMP"
    CALL = "CALL"
    RET = "RET"
    PUSH = "PUSH"
    POP = "POP"
    HALT = "HALT"


# DEFINE is a declaration, not an instruction: it never gets an index.
DEFINE_KEYWORD = "DEFINE"


class CompareOp(enum.Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    def holds(self, ordering: int) -> bool:
        """Apply the operator to a three-way ordering (-1, 0, 1)."""
        if self is CompareOp.EQ:
            return ordering == 0
        if self is CompareOp.NE:
            return ordering != 0
        if self is CompareOp.LT:
            return ordering < 0
        if self is CompareOp.LE:
            return ordering <= 0
        if self is CompareOp.GT:
            return ordering > 0
        return ordering >= 0


# ──────────────────────────────────────────────
# Operands (one class per addressing mode)
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Register:
    name: str                   # canonical upper-case, e.g. "R3", "A"

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class DirectAddress:
    address: int                # may be out of range; checked at run time

    def __str__(self):
        return f"%{self.address}"


@dataclass(frozen=True)
class IndirectAddress:
    register: str               # address is the Integer held in this register

    def __str__(self):
        return f"%{self.register}"


@dataclass(frozen=True)
class Literal:
    value: Value

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class ConstantRef:
    name: str
    value: Value                # resolved at parse time

    def __str__(self):
        return f".{self.name}"


@dataclass(frozen=True)
class LabelRef:
    name: str
    index: int

    def __str__(self):
        return self.name


Operand = Union[Register, DirectAddress, IndirectAddress, Literal, ConstantRef, LabelRef]
MemoryOperand = (DirectAddress, IndirectAddress)
WritableOperand = (Register, DirectAddress, IndirectAddress)
ReadableOperand = (Register, DirectAddress, IndirectAddress, Literal, ConstantRef)


@dataclass(frozen=True)
class Comparison:
    left: Operand
    op: CompareOp
    right: Operand

    def __str__(self):
        return f"{self.left}{self.op.value}{self.right}"


# ──────────────────────────────────────────────
# Instructions and programs
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    opcode: Opcode
    operands: Tuple[Operand, ...] = ()
    comparison: Optional[Comparison] = None
    line_num: int = 0
    source: str = ""

    def __str__(self):
        parts = [self.opcode.value]
        if self.operands:
            parts.append(", ".join(str(op) for op in self.operands))
        if self.comparison is not None:
            parts.append(str(self.comparison))
        return " ".join(parts)


@dataclass
class Program:
    """Decoded instructions plus the symbol table they were resolved against."""
    instructions: List[Instruction] = field(default_factory=list)
    labels: Dict[str, int] = field(default_factory=dict)
    constants: Dict[str, Value] = field(default_factory=dict)

    def __len__(self):
        return len(self.instructions)

    def listing(self) -> str:
        """Return a human-readable listing: index, labels, instruction, source line."""
        by_index: Dict[int, List[str]] = {}
        for name, index in self.labels.items():
            by_index.setdefault(index, []).append(name)

        lines = [f"{'IDX':>4}  {'INSTRUCTION':<32}  LINE", "-" * 60]
        for name, value in self.constants.items():
            lines.append(f"{'':>4}  {'.' + name + ' = ' + str(value):<32}")
        for index, instr in enumerate(self.instructions):
            for name in by_index.get(index, []):
                lines.append(f"{'':>4}  {name}:")
            lines.append(f"{index:>4}  {str(instr):<32}  {instr.line_num}")
        # labels placed after the last instruction point one past the end
        for name in by_index.get(len(self.instructions), []):
            lines.append(f"{'':>4}  {name}:")
        return "\n".join(lines)
