"""
Error types for the vasm parser and execution engine.

Two families:
  ParseError     : raised by parse(); always carries the offending line.
  ExecutionError : raised by run()/step(); carries the PC, the instruction
                    and the machine state at the moment of the fault.

ALU and memory helpers raise MachineFault, which has no notion of PC.
The engine catches it and re-raises an ExecutionError.
"""

from __future__ import annotations
import enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .program import Instruction
    from .emu import MachineState


class ParseErrorKind(enum.Enum):
    UNKNOWN_OPCODE = "UnknownOpcode"
    MIXED_CASE_OPCODE = "MixedCaseOpcode"
    UNRESOLVED_OPERAND = "UnresolvedOperand"
    DUPLICATE_LABEL = "DuplicateLabel"
    DUPLICATE_CONSTANT = "DuplicateConstant"
    UNKNOWN_LABEL_REFERENCE = "UnknownLabelReference"
    MALFORMED_LITERAL = "MalformedLiteral"
    WRONG_OPERAND_COUNT = "WrongOperandCount"
    INVALID_OPERAND = "InvalidOperand"


class FaultKind(enum.Enum):
    TYPE_MISMATCH = "TypeMismatch"
    DIVIDE_BY_ZERO = "DivideByZero"
    OUT_OF_RANGE_ADDRESS = "OutOfRangeAddress"
    STACK_UNDERFLOW = "StackUnderflow"
    CALL_STACK_UNDERFLOW = "CallStackUnderflow"
    EXECUTION_LIMIT_EXCEEDED = "ExecutionLimitExceeded"
    TEXT_TOO_LONG = "TextTooLong"


class VasmError(Exception):
    """Base class for every error raised by vasm."""


class ParseError(VasmError):
    """Raised when source text cannot be turned into a Program."""
    def __init__(self, kind: ParseErrorKind, message: str,
                 line_num: int = 0, line_text: str = ""):
        self.kind = kind
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        text = f"{kind.value}: {message}"
        super().__init__(f"Line {line_num}: {text}" if line_num else text)


class MachineFault(VasmError):
    """Raised by value/memory operations; has no PC attached yet."""
    def __init__(self, kind: FaultKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


class ExecutionError(VasmError):
    """A fatal runtime fault, reported with the PC and instruction."""
    def __init__(self, kind: FaultKind, message: str, pc: int,
                 instruction: Optional["Instruction"] = None,
                 state: Optional["MachineState"] = None):
        self.kind = kind
        self.message = message
        self.pc = pc
        self.instruction = instruction
        self.state = state
        where = f"PC {pc}"
        if instruction is not None:
            where += f" (line {instruction.line_num}: {instruction})"
        super().__init__(f"{where}: {kind.value}: {message}")
