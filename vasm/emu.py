"""
vasm Execution Engine

Runs a Program (from assembler.py) against a fresh MachineState.

Execution model, per step:
  1. Stop if halted, or if PC has run past the last instruction
     (an implicit halt, not an error)
  2. Check the instruction budget (RunConfig.max_instructions)
  3. Fetch instructions[PC]
  4. Dispatch on the opcode; the handler reads/writes registers, memory
     and stacks and may redirect PC (JMP, CALL, RET)
  5. PC <- redirected target, else PC + 1

Termination reasons:
  - HALT:   HALT instruction executed
  - END:    PC ran past the last instruction
  - ERROR:  a runtime fault (raised to the caller as ExecutionError)

Every fault is fatal: the machine is marked halted and the ExecutionError
carries enough context (PC and state) for inspection.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable, Dict, List, Optional

from .config import ACCUMULATOR, RunConfig
from .cpu import alu
from .cpu.regs import Registers
from .errors import ExecutionError, FaultKind, MachineFault
from .mem.memory import Memory
from .program import (
    ConstantRef, DirectAddress, IndirectAddress, Instruction, LabelRef,
    Literal, Opcode, Operand, Program, Register,
)
from .values import ZERO, Integer, Value

logger = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    END = 'END'
    ERROR = 'ERROR'


@dataclass
class MachineState:
    """Everything one run owns. Built fresh per run, never shared."""
    regs: Registers = field(default_factory=Registers)
    mem: Memory = field(default_factory=Memory)
    call_stack: List[int] = field(default_factory=list)
    data_stack: List[Value] = field(default_factory=list)
    pc: int = 0
    halted: bool = False
    steps: int = 0
    stop_reason: Optional[StopReason] = None

    def display(self, memory: bool = False) -> str:
        lines = [
            f"PC: {self.pc}  halted: {self.halted}  steps: {self.steps}  "
            f"stop: {self.stop_reason.value if self.stop_reason else '-'}",
            "Registers:",
        ]
        for name, value in self.regs.snapshot().items():
            lines.append(f"  {name:<3}= {value}")
        lines.append("Data stack (top last): " + ", ".join(str(v) for v in self.data_stack))
        lines.append("Call stack (top last): " + ", ".join(str(i) for i in self.call_stack))
        if memory:
            lines.append("Memory (non-zero slots):")
            for addr, value in self.mem.used():
                lines.append(f"  %{addr:<3} (0x{addr:02X}) = {value}")
        return "\n".join(lines)


class Machine:
    """Fetch-decode-execute engine for one Program.

    Usage:
        machine = Machine(parse(source), RunConfig(max_instructions=1000))
        state = machine.run()
        print(state.regs["A"])
    """

    def __init__(self, program: Program, config: Optional[RunConfig] = None):
        self.program = program
        self.config = config or RunConfig()
        self.state = MachineState()
        self._next_pc = 0
        self._trace_output: List[str] = []
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None.

        Raises ExecutionError on any runtime fault.
        """
        state = self.state
        if state.halted:
            return state.stop_reason

        pc = state.pc
        if not 0 <= pc < len(self.program.instructions):
            state.halted = True
            state.stop_reason = StopReason.END
            logger.info("Program ended at PC %d after %d step(s)", pc, state.steps)
            return StopReason.END

        instr = self.program.instructions[pc]

        limit = self.config.max_instructions
        if limit is not None and state.steps >= limit:
            self._fail(FaultKind.EXECUTION_LIMIT_EXCEEDED,
                       f"Instruction budget of {limit} exhausted", instr)

        if self.config.trace:
            line = f"{pc:4d}: {str(instr):<28} {state.regs.display()}"
            self._trace_output.append(line)
            logger.debug(line)

        self._next_pc = pc + 1
        try:
            self._dispatch[instr.opcode](instr)
        except MachineFault as fault:
            self._fail(fault.kind, fault.message, instr, fault)

        state.steps += 1
        state.pc = self._next_pc

        if state.halted:
            state.stop_reason = StopReason.HALT
            logger.info("HALT at PC %d after %d step(s)", pc, state.steps)
            return StopReason.HALT
        return None

    def run(self) -> MachineState:
        """Run until HALT, end of program, or a fault."""
        while self.step() is None:
            pass
        return self.state

    def _fail(self, kind: FaultKind, message: str, instr: Instruction,
              cause: Optional[Exception] = None):
        state = self.state
        state.halted = True
        state.stop_reason = StopReason.ERROR
        logger.warning("Fault at PC %d (line %d, %s): %s: %s",
                       state.pc, instr.line_num, instr, kind.value, message)
        raise ExecutionError(kind, message, state.pc, instr, state) from cause

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    # ══════════════════════════════════════════════
    # Operand access
    # ══════════════════════════════════════════════

    def _address(self, operand: Operand) -> int:
        if isinstance(operand, DirectAddress):
            return operand.address
        held = self.state.regs[operand.register]
        if not isinstance(held, Integer):
            raise MachineFault(FaultKind.TYPE_MISMATCH,
                               f"Indirect address %{operand.register} holds Text {held}")
        return held.value

    def _read(self, operand: Operand) -> Value:
        if isinstance(operand, Register):
            return self.state.regs[operand.name]
        if isinstance(operand, (DirectAddress, IndirectAddress)):
            return self.state.mem.read(self._address(operand))
        if isinstance(operand, (Literal, ConstantRef)):
            return operand.value
        raise TypeError(f"operand {operand!r} has no value")

    def _write(self, operand: Operand, value: Value):
        if isinstance(operand, Register):
            self.state.regs[operand.name] = value
        elif isinstance(operand, (DirectAddress, IndirectAddress)):
            self.state.mem.write(self._address(operand), value)
        else:
            raise TypeError(f"operand {operand!r} is not writable")

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> Dict[Opcode, Callable[[Instruction], None]]:
        """Build the opcode -> handler table; every Opcode must be covered."""
        max_text = self.config.max_text_length
        table = {
            # ── Data movement ──
            Opcode.SET:   self._op_set,
            Opcode.STORE: self._op_store,
            Opcode.LOAD:  self._op_load,
            Opcode.CLEAR: self._op_clear,
            Opcode.MOV:   self._op_mov,

            # ── Arithmetic / logic (result -> A) ──
            Opcode.ADD:   self._alu_handler(partial(alu.add, max_text=max_text)),
            Opcode.SUB:   self._alu_handler(alu.sub),
            Opcode.MUL:   self._alu_handler(partial(alu.mul, max_text=max_text)),
            Opcode.DIV:   self._alu_handler(alu.div),
            Opcode.AND:   self._alu_handler(alu.bit_and),
            Opcode.OR:    self._alu_handler(alu.bit_or),
            Opcode.XOR:   self._alu_handler(alu.bit_xor),
            Opcode.NOT:   self._op_not,
            Opcode.INC:   self._op_inc,
            Opcode.DEC:   self._op_dec,

            # ── Control flow ──
            Opcode.JMP:   self._op_jmp,
            Opcode.CALL:  self._op_call,
            Opcode.RET:   self._op_ret,
            Opcode.HALT:  self._op_halt,

            # ── Data stack ──
            Opcode.PUSH:  self._op_push,
            Opcode.POP:   self._op_pop,
        }
        missing = set(Opcode) - set(table)
        if missing:
            raise NotImplementedError(
                "No handler for: " + ", ".join(sorted(op.value for op in missing)))
        return table

    def _op_set(self, instr: Instruction):
        dest, value = instr.operands
        self._write(dest, self._read(value))

    def _op_store(self, instr: Instruction):
        reg, addr = instr.operands
        self._write(addr, self._read(reg))

    def _op_load(self, instr: Instruction):
        addr, reg = instr.operands
        self._write(reg, self._read(addr))

    def _op_clear(self, instr: Instruction):
        self._write(instr.operands[0], ZERO)

    def _op_mov(self, instr: Instruction):
        src, dest = instr.operands
        self._write(dest, self._read(src))

    def _alu_handler(self, func: Callable[[Value, Value], Value]):
        def handler(instr: Instruction):
            left, right = instr.operands
            self.state.regs[ACCUMULATOR] = func(self._read(left), self._read(right))
        return handler

    def _op_not(self, instr: Instruction):
        self.state.regs[ACCUMULATOR] = alu.bit_not(self._read(instr.operands[0]))

    def _op_inc(self, instr: Instruction):
        dest = instr.operands[0]
        self._write(dest, alu.increment(self._read(dest), 1))

    def _op_dec(self, instr: Instruction):
        dest = instr.operands[0]
        self._write(dest, alu.increment(self._read(dest), -1))

    def _op_jmp(self, instr: Instruction):
        target: LabelRef = instr.operands[0]
        cmp = instr.comparison
        if cmp is not None and not alu.compare(self._read(cmp.left), cmp.op, self._read(cmp.right)):
            return
        self._next_pc = target.index

    def _op_call(self, instr: Instruction):
        target: LabelRef = instr.operands[0]
        self.state.call_stack.append(self.state.pc + 1)
        self._next_pc = target.index

    def _op_ret(self, instr: Instruction):
        if not self.state.call_stack:
            raise MachineFault(FaultKind.CALL_STACK_UNDERFLOW,
                               "RET with an empty call stack")
        self._next_pc = self.state.call_stack.pop()

    def _op_halt(self, instr: Instruction):
        self.state.halted = True

    def _op_push(self, instr: Instruction):
        self.state.data_stack.append(self._read(instr.operands[0]))

    def _op_pop(self, instr: Instruction):
        if not self.state.data_stack:
            raise MachineFault(FaultKind.STACK_UNDERFLOW,
                               "POP with an empty data stack")
        value = self.state.data_stack.pop()
        if instr.operands:
            self._write(instr.operands[0], value)


def run(program: Program, config: Optional[RunConfig] = None) -> MachineState:
    """Execute a Program on a fresh machine. Raises ExecutionError."""
    return Machine(program, config).run()
