"""
Operand resolver and instruction decoder.

Takes lexed SourceLines (lexer.py) plus a finished symbol table and
produces Instruction nodes (program.py) with every operand classified.

Addressing modes:
  REG   : R0..R8, A                      e.g. MOV R1, A
  DIR   : %N, %0xNN, %0bNNNN             e.g. LOAD %0xFF, R1
  IND   : %Rn (address held in Rn)       e.g. LOAD %R2, R3
  LIT   : 42, -7, 0x2A, 0b101, "text"    e.g. SET R1, "hi"
  CONST : .name (resolved at parse time) e.g. ADD R1, .age
  LABEL : bare identifier (JMP/CALL)     e.g. CALL print
"""

from __future__ import annotations
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ADDRESSABLE_REGISTERS, GENERAL_REGISTERS
from .errors import ParseError, ParseErrorKind
from .lexer import IDENT_RE, SourceLine, Token, TokenType
from .program import (
    CompareOp, Comparison, ConstantRef, DirectAddress, IndirectAddress,
    Instruction, LabelRef, Literal, MemoryOperand, Opcode, Operand,
    ReadableOperand, Register, WritableOperand,
)
from .values import INT64_MAX, INT64_MIN, Integer, Text, Value


# ──────────────────────────────────────────────
# Operand shape table
# ──────────────────────────────────────────────

READ = "readable"
WRITE = "writable"
REG = "register"
MEM = "memory address"
LABEL = "label"

OPERAND_RULES: Dict[Opcode, Tuple[str, ...]] = {
    Opcode.SET:   (WRITE, READ),
    Opcode.STORE: (REG, MEM),
    Opcode.LOAD:  (MEM, REG),
    Opcode.CLEAR: (WRITE,),
    Opcode.MOV:   (READ, WRITE),
    Opcode.ADD:   (READ, READ),
    Opcode.SUB:   (READ, READ),
    Opcode.MUL:   (READ, READ),
    Opcode.DIV:   (READ, READ),
    Opcode.INC:   (WRITE,),
    Opcode.DEC:   (WRITE,),
    Opcode.AND:   (READ, READ),
    Opcode.OR:    (READ, READ),
    Opcode.XOR:   (READ, READ),
    Opcode.NOT:   (READ,),
    Opcode.JMP:   (LABEL,),     # + optional comparison clause
    Opcode.CALL:  (LABEL,),
    Opcode.RET:   (),
    Opcode.PUSH:  (READ,),
    Opcode.POP:   (WRITE,),     # operand optional
    Opcode.HALT:  (),
}

OPTIONAL_OPERAND = {Opcode.POP}

_KIND_TYPES = {
    READ: ReadableOperand,
    WRITE: WritableOperand,
    REG: (Register,),
    MEM: MemoryOperand,
}

COMPARE_OPS = {op.value: op for op in CompareOp}

HEX_DIGITS_RE = re.compile(r"^[0-9A-Fa-f]+$")
BIN_DIGITS_RE = re.compile(r"^[01]+$")
DEC_DIGITS_RE = re.compile(r"^[0-9]+$")


def lookup_opcode(line: SourceLine) -> Opcode:
    """Map the line's keyword to an Opcode (case already validated by the lexer)."""
    try:
        return Opcode(line.keyword.upper())
    except ValueError:
        raise ParseError(ParseErrorKind.UNKNOWN_OPCODE,
                         f"Unknown opcode: {line.keyword}", line.line_num, line.raw) from None


# ──────────────────────────────────────────────
# Literal parsing
# ──────────────────────────────────────────────

def parse_integer(text: str) -> int:
    """Parse a signed decimal, 0x hex or 0b binary integer.

    Raises ValueError on bad digits; range is not checked here.
    """
    body = text
    negative = False
    if body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]
    prefix, digits = body[:2].lower(), body[2:]
    if prefix == "0x" and HEX_DIGITS_RE.match(digits):
        n = int(digits, 16)
    elif prefix == "0b" and BIN_DIGITS_RE.match(digits):
        n = int(digits, 2)
    elif DEC_DIGITS_RE.match(body):
        n = int(body)
    else:
        raise ValueError(f"invalid integer literal: {text!r}")
    return -n if negative else n


def _looks_numeric(text: str) -> bool:
    if text[:1] in ("+", "-"):
        text = text[1:]
    return text[:1].isdigit()


def _integer_literal(token: Token, line: SourceLine) -> Integer:
    try:
        n = parse_integer(token.value)
    except ValueError:
        raise ParseError(ParseErrorKind.MALFORMED_LITERAL,
                         f"Malformed integer literal: {token.value!r}",
                         line.line_num, line.raw) from None
    if not INT64_MIN <= n <= INT64_MAX:
        raise ParseError(ParseErrorKind.MALFORMED_LITERAL,
                         f"Integer literal out of 64-bit range: {token.value}",
                         line.line_num, line.raw)
    return Integer(n)


def parse_constant_value(token: Token, line: SourceLine) -> Value:
    """Evaluate the value of a DEFINE: a literal, never a runtime expression."""
    if token.type is TokenType.STRING:
        return Text(token.value)
    if token.type is TokenType.WORD and _looks_numeric(token.value):
        return _integer_literal(token, line)
    raise ParseError(ParseErrorKind.INVALID_OPERAND,
                     f"DEFINE value must be an integer or string literal, got {token.value!r}",
                     line.line_num, line.raw)


# ──────────────────────────────────────────────
# Operand classification
# ──────────────────────────────────────────────

def _memory_operand(token: Token, line: SourceLine) -> Operand:
    body = token.value[1:]
    if body[:1] in ("r", "R") and body[1:2].isdigit():
        reg = body.upper()
        if reg not in GENERAL_REGISTERS:
            raise ParseError(ParseErrorKind.UNRESOLVED_OPERAND,
                             f"Unknown register in indirect address: {token.value}",
                             line.line_num, line.raw)
        return IndirectAddress(reg)
    if not body:
        raise ParseError(ParseErrorKind.MALFORMED_LITERAL,
                         "Empty memory address '%'", line.line_num, line.raw)
    try:
        return DirectAddress(parse_integer(body))
    except ValueError:
        raise ParseError(ParseErrorKind.MALFORMED_LITERAL,
                         f"Malformed memory address: {token.value!r}",
                         line.line_num, line.raw) from None


def resolve_operand(token: Token, constants: Dict[str, Value], line: SourceLine) -> Operand:
    """Classify one operand token into exactly one addressing mode."""
    if token.type is TokenType.STRING:
        return Literal(Text(token.value))

    if token.type is not TokenType.WORD:
        raise ParseError(ParseErrorKind.UNRESOLVED_OPERAND,
                         f"Unexpected {token.value!r} at column {token.col}",
                         line.line_num, line.raw)

    text = token.value
    if text.upper() in ADDRESSABLE_REGISTERS:
        return Register(text.upper())

    if text.startswith("%"):
        return _memory_operand(token, line)

    if text.startswith("."):
        name = text[1:]
        if name in constants:
            return ConstantRef(name, constants[name])
        raise ParseError(ParseErrorKind.UNRESOLVED_OPERAND,
                         f"Undefined constant: {text}", line.line_num, line.raw)

    if _looks_numeric(text):
        return Literal(_integer_literal(token, line))

    raise ParseError(ParseErrorKind.UNRESOLVED_OPERAND,
                     f"Cannot resolve operand: {text!r}", line.line_num, line.raw)


def resolve_label(token: Token, labels: Dict[str, int], line: SourceLine) -> LabelRef:
    if token.type is not TokenType.WORD or not IDENT_RE.match(token.value):
        raise ParseError(ParseErrorKind.INVALID_OPERAND,
                         f"Expected a label name, got {token.value!r}",
                         line.line_num, line.raw)
    if token.value not in labels:
        raise ParseError(ParseErrorKind.UNKNOWN_LABEL_REFERENCE,
                         f"Label not found: {token.value}", line.line_num, line.raw)
    return LabelRef(token.value, labels[token.value])


def parse_comparison(tokens: Sequence[Token], constants: Dict[str, Value],
                     line: SourceLine) -> Comparison:
    """Parse 'left OP right', optionally wrapped in parentheses."""
    tokens = list(tokens)
    if tokens and tokens[0].type is TokenType.LPAREN:
        if tokens[-1].type is not TokenType.RPAREN:
            raise ParseError(ParseErrorKind.INVALID_OPERAND,
                             "Unbalanced parenthesis in comparison", line.line_num, line.raw)
        tokens = tokens[1:-1]
    if len(tokens) != 3 or tokens[1].type is not TokenType.COMPARE:
        shown = " ".join(t.value for t in tokens)
        raise ParseError(ParseErrorKind.INVALID_OPERAND,
                         f"Malformed comparison: {shown!r} (expected: left OP right)",
                         line.line_num, line.raw)
    left = resolve_operand(tokens[0], constants, line)
    right = resolve_operand(tokens[2], constants, line)
    return Comparison(left, COMPARE_OPS[tokens[1].value], right)


def _check_kind(operand: Operand, kind: str, opcode: Opcode, line: SourceLine):
    if not isinstance(operand, _KIND_TYPES[kind]):
        raise ParseError(ParseErrorKind.INVALID_OPERAND,
                         f"{opcode.value}: operand '{operand}' is not a {kind}",
                         line.line_num, line.raw)


# ──────────────────────────────────────────────
# Instruction decoding
# ──────────────────────────────────────────────

def decode_instruction(line: SourceLine, labels: Dict[str, int],
                       constants: Dict[str, Value]) -> Instruction:
    """Decode one instruction line against a complete symbol table."""
    opcode = lookup_opcode(line)
    rules = OPERAND_RULES[opcode]
    tokens = line.operands
    comparison: Optional[Comparison] = None

    if opcode is Opcode.JMP and len(tokens) > 1:
        comparison = parse_comparison(tokens[1:], constants, line)
        tokens = tokens[:1]

    expected = len(rules)
    if len(tokens) != expected and not (opcode in OPTIONAL_OPERAND and not tokens):
        raise ParseError(ParseErrorKind.WRONG_OPERAND_COUNT,
                         f"{opcode.value} takes {expected} operand(s), got {len(tokens)}",
                         line.line_num, line.raw)

    operands: List[Operand] = []
    for token, kind in zip(tokens, rules):
        if kind == LABEL:
            operands.append(resolve_label(token, labels, line))
            continue
        operand = resolve_operand(token, constants, line)
        _check_kind(operand, kind, opcode, line)
        operands.append(operand)

    return Instruction(opcode, tuple(operands), comparison, line.line_num, line.text)
