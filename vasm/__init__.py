"""
vasm: Deterministic Assembly Interpreter for Puzzle Games
=========================================================
A textual assembly dialect for a small fictional CPU, and an interpreter
that runs programs written in it against a sandboxed, fully deterministic
machine: 9 general registers plus an accumulator, 256 value slots of
memory, a data stack and a call stack.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌──────────┐    ┌──────────────┐
    │  Source  │───>│  Lexer   │───>│ Assembler │───>│ Program  │───>│   Machine    │
    │  (.asm)  │    │ (lines)  │    │ (2 passes)│    │ (instrs) │    │ (fetch/exec) │
    └──────────┘    └──────────┘    └───────────┘    └──────────┘    └──────────────┘

    - lexer.py:     Per-line tokenizer (labels, DEFINE, opcode, operands)
    - parser.py:    Operand resolver + instruction decoder
    - assembler.py: Two-pass symbol table (labels, constants) -> Program
    - program.py:   Opcode enum, operand dataclasses, Instruction, Program
    - values.py:    Integer / Text value model
    - emu.py:       Execution engine, MachineState, StopReason
    - cpu/alu.py:   Value arithmetic, bitwise ops and comparisons
"""

__version__ = "0.1.0"

from .assembler import Assembler, parse
from .config import RUN_PROFILES, RunConfig
from .emu import Machine, MachineState, StopReason, run
from .errors import (
    ExecutionError, FaultKind, MachineFault, ParseError, ParseErrorKind, VasmError,
)
from .program import Instruction, Opcode, Program
from .values import Integer, Text, Value

__all__ = [
    'Assembler', 'parse', 'RunConfig', 'RUN_PROFILES',
    'Machine', 'MachineState', 'StopReason', 'run', 'run_source',
    'ExecutionError', 'FaultKind', 'MachineFault', 'ParseError', 'ParseErrorKind',
    'VasmError', 'Instruction', 'Opcode', 'Program', 'Integer', 'Text', 'Value',
]


def run_source(source: str, config: RunConfig = None) -> MachineState:
    """Parse and run source text in one call.

    Full pipeline: Lexer -> Assembler -> Program -> Machine.

    Raises ParseError or ExecutionError.
    """
    return run(parse(source), config)
