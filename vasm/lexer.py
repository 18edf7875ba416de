"""
Line lexer for vasm assembly.

Turns one raw source line into a SourceLine: optional label, optional
opcode keyword, operand tokens, and the trailing comment.

Rules:
  - ';' starts a comment unless it sits inside a quoted string
  - tokens are separated by whitespace and commas
  - "..." and '...' are single STRING tokens (backslash escapes allowed)
  - comparison operators and parentheses are tokens of their own, so
    "JMP END R4=106" and "JMP END (R4 = 106)" lex the same way
  - "name:" as the first token declares a label
  - the keyword must be all upper-case or all lower-case
"""

from __future__ import annotations
import enum
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ParseError, ParseErrorKind
from .program import DEFINE_KEYWORD


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    WORD = "WORD"
    STRING = "STRING"
    COMPARE = "COMPARE"
    LPAREN = "("
    RPAREN = ")"


@dataclass
class Token:
    type: TokenType
    value: str
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, col {self.col})"


@dataclass
class SourceLine:
    """One lexed source line."""
    line_num: int
    raw: str
    label: Optional[str] = None
    keyword: Optional[str] = None
    operands: List[Token] = field(default_factory=list)
    comment: Optional[str] = None

    @property
    def is_define(self) -> bool:
        return self.keyword is not None and self.keyword.upper() == DEFINE_KEYWORD

    @property
    def is_instruction(self) -> bool:
        return self.keyword is not None and not self.is_define

    @property
    def text(self) -> str:
        """Source text without comment and surrounding whitespace."""
        return _strip_comment(self.raw)[0].strip()


IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


def _strip_comment(text: str):
    """Split text at the first ';' outside a quoted string."""
    quote = None
    escaped = False
    for i, ch in enumerate(text):
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in ('"', "'"):
            quote = ch
        elif ch == ";":
            return text[:i], text[i + 1:].strip()
    return text, None


def _read_string(text: str, start: int, line_num: int, raw: str):
    """Read a quoted string starting at text[start]. Returns (value, next_index)."""
    quote = text[start]
    chars: List[str] = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            if i + 1 >= len(text):
                break
            esc = text[i + 1]
            chars.append(ESCAPES.get(esc, esc))
            i += 2
            continue
        if ch == quote:
            return "".join(chars), i + 1
        chars.append(ch)
        i += 1
    raise ParseError(ParseErrorKind.MALFORMED_LITERAL,
                     f"Unterminated string literal starting at column {start + 1}",
                     line_num, raw)


def _split_tokens(text: str, line_num: int, raw: str) -> List[Token]:
    tokens: List[Token] = []
    word: List[str] = []
    word_col = 0

    def flush():
        if word:
            tokens.append(Token(TokenType.WORD, "".join(word), word_col))
            word.clear()

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace() or ch == ",":
            flush()
            i += 1
            continue
        if ch in ('"', "'"):
            flush()
            value, i_next = _read_string(text, i, line_num, raw)
            tokens.append(Token(TokenType.STRING, value, i + 1))
            i = i_next
            continue
        if ch in "<>=" or (ch == "!" and i + 1 < n and text[i + 1] == "="):
            flush()
            if ch != "=" and i + 1 < n and text[i + 1] == "=":
                tokens.append(Token(TokenType.COMPARE, ch + "=", i + 1))
                i += 2
            else:
                tokens.append(Token(TokenType.COMPARE, ch, i + 1))
                i += 1
            continue
        if ch == "(":
            flush()
            tokens.append(Token(TokenType.LPAREN, ch, i + 1))
            i += 1
            continue
        if ch == ")":
            flush()
            tokens.append(Token(TokenType.RPAREN, ch, i + 1))
            i += 1
            continue
        if not word:
            word_col = i + 1
        word.append(ch)
        i += 1
    flush()
    return tokens


def tokenize_line(raw: str, line_num: int = 0) -> SourceLine:
    """Lex one line of source into a SourceLine."""
    raw = raw.rstrip("\r\n")
    result = SourceLine(line_num=line_num, raw=raw)

    text, result.comment = _strip_comment(raw)
    text = text.strip()
    if not text:
        return result

    tokens = _split_tokens(text, line_num, raw)

    # Label declaration: "name:" as first token
    first = tokens[0]
    if first.type is TokenType.WORD and first.value.endswith(":"):
        name = first.value[:-1]
        if not IDENT_RE.match(name):
            raise ParseError(ParseErrorKind.INVALID_OPERAND,
                             f"Invalid label name: {first.value!r}", line_num, raw)
        result.label = name
        tokens = tokens[1:]

    if not tokens:
        return result

    head = tokens[0]
    if head.type is not TokenType.WORD or not IDENT_RE.match(head.value):
        raise ParseError(ParseErrorKind.UNKNOWN_OPCODE,
                         f"Expected an opcode, got {head.value!r}", line_num, raw)
    word = head.value
    if any(c.isalpha() for c in word) and not (word.isupper() or word.islower()):
        raise ParseError(ParseErrorKind.MIXED_CASE_OPCODE,
                         f"Opcode must be all upper-case or all lower-case: {head.value!r}",
                         line_num, raw)
    result.keyword = head.value
    result.operands = tokens[1:]
    return result


def tokenize(source: str) -> List[SourceLine]:
    """Lex every line of a program (line numbers start at 1)."""
    return [tokenize_line(line, i) for i, line in enumerate(source.split("\n"), 1)]
