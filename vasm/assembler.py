"""
Two-pass assembler: source text -> Program.

How the two passes work:
  Pass 1: Lex every line. Labels get the index of the next instruction,
          DEFINE constants are evaluated, opcodes are validated so the
          instruction count (and therefore every label index) is exact.
  Pass 2: Decode every instruction line with the now-complete symbol
          table, so labels and constants may be referenced before they
          are declared.

Declaration lines (labels, DEFINE, comments, blanks) occupy no index.
The first error aborts assembly; a Program is never partially built.
"""

from __future__ import annotations
import logging
from typing import Dict, List

from .errors import ParseError, ParseErrorKind
from .lexer import IDENT_RE, SourceLine, TokenType, tokenize_line
from .parser import decode_instruction, lookup_opcode, parse_constant_value
from .program import Instruction, Program
from .values import Value

__all__ = ['Assembler', 'parse']

logger = logging.getLogger(__name__)


class Assembler:
    """Two-pass vasm assembler.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)
        print(program.listing())
    """

    def __init__(self):
        self.labels: Dict[str, int] = {}        # label name -> instruction index
        self.constants: Dict[str, Value] = {}   # constant name (no dot) -> value
        self._lines: List[SourceLine] = []

    def assemble(self, source: str) -> Program:
        self.labels = {}
        self.constants = {}
        self._lines = []

        self._pass1(source)
        instructions = self._pass2()

        logger.debug("Assembled %d instruction(s), %d label(s), %d constant(s)",
                     len(instructions), len(self.labels), len(self.constants))
        logger.debug("Label table: %s", self.labels)
        return Program(instructions, dict(self.labels), dict(self.constants))

    def _pass1(self, source: str):
        """Pass 1: lex lines, collect labels and constants, count instructions."""
        index = 0
        for line_num, raw in enumerate(source.split("\n"), 1):
            line = tokenize_line(raw, line_num)
            self._lines.append(line)

            if line.label is not None:
                if line.label in self.labels:
                    raise ParseError(ParseErrorKind.DUPLICATE_LABEL,
                                     f"Label already defined: {line.label}",
                                     line.line_num, line.raw)
                self.labels[line.label] = index

            if line.is_define:
                self._define(line)
            elif line.is_instruction:
                lookup_opcode(line)
                index += 1

    def _define(self, line: SourceLine):
        """Handle 'DEFINE .name value'."""
        if len(line.operands) != 2:
            raise ParseError(ParseErrorKind.WRONG_OPERAND_COUNT,
                             f"DEFINE takes a name and a value, got {len(line.operands)} operand(s)",
                             line.line_num, line.raw)
        name_tok, value_tok = line.operands
        if (name_tok.type is not TokenType.WORD or not name_tok.value.startswith(".")
                or not IDENT_RE.match(name_tok.value[1:])):
            raise ParseError(ParseErrorKind.INVALID_OPERAND,
                             f"Constant name must look like '.name', got {name_tok.value!r}",
                             line.line_num, line.raw)
        name = name_tok.value[1:]
        if name in self.constants:
            raise ParseError(ParseErrorKind.DUPLICATE_CONSTANT,
                             f"Constant already defined: .{name}",
                             line.line_num, line.raw)
        self.constants[name] = parse_constant_value(value_tok, line)

    def _pass2(self) -> List[Instruction]:
        """Pass 2: decode instructions against the full symbol table."""
        return [decode_instruction(line, self.labels, self.constants)
                for line in self._lines if line.is_instruction]


def parse(source: str) -> Program:
    """Assemble source text into a Program. Raises ParseError."""
    return Assembler().assemble(source)
