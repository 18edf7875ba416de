"""
Lexer Tests for vasm.

Covers comment stripping, token splitting (whitespace, commas, quoted
strings, comparison operators), label and DEFINE recognition, and the
per-line opcode case rule.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from vasm.errors import ParseError, ParseErrorKind
from vasm.lexer import TokenType, tokenize, tokenize_line


def _values(line):
    return [t.value for t in line.operands]


class TestComments:
    def test_comment_stripped(self):
        line = tokenize_line("    jmp MAIN ; also a comment", 5)
        assert line.keyword == "jmp"
        assert _values(line) == ["MAIN"]
        assert line.comment == "also a comment"
        assert line.line_num == 5

    def test_comment_only_line_is_blank(self):
        line = tokenize_line("    ;this is a comment to help, maybe?")
        assert line.keyword is None
        assert line.label is None
        assert not line.is_instruction

    def test_empty_line(self):
        line = tokenize_line("   \t  ")
        assert line.keyword is None and line.operands == []

    def test_semicolon_inside_string_is_not_a_comment(self):
        line = tokenize_line('SET R1, "a;b" ; real comment')
        assert _values(line) == ["R1", "a;b"]
        assert line.operands[1].type is TokenType.STRING
        assert line.comment == "real comment"

    def test_comment_without_space(self):
        line = tokenize_line("LOAD %R2, R3;load from the address contained in R2")
        assert _values(line) == ["%R2", "R3"]


class TestTokenSplitting:
    def test_commas_and_whitespace(self):
        line = tokenize_line("ADD   %100,%200")
        assert line.keyword == "ADD"
        assert _values(line) == ["%100", "%200"]

    def test_quoted_string_keeps_whitespace(self):
        line = tokenize_line('PUSH "hello,  world"')
        assert len(line.operands) == 1
        assert line.operands[0].value == "hello,  world"

    def test_single_quoted_string(self):
        line = tokenize_line("PUSH 'x y'")
        assert line.operands[0].type is TokenType.STRING
        assert line.operands[0].value == "x y"

    def test_string_escapes(self):
        line = tokenize_line(r'SET R1, "say \"hi\"\n"')
        assert line.operands[1].value == 'say "hi"\n'

    def test_unterminated_string(self):
        with pytest.raises(ParseError) as exc:
            tokenize_line('PUSH "oops', 3)
        assert exc.value.kind is ParseErrorKind.MALFORMED_LITERAL
        assert exc.value.line_num == 3

    def test_comparison_without_spaces(self):
        line = tokenize_line("jmp END r4=106;befg")
        assert _values(line) == ["END", "r4", "=", "106"]
        assert line.operands[2].type is TokenType.COMPARE

    def test_two_char_comparisons(self):
        for op in ("<=", ">=", "!="):
            line = tokenize_line(f"JMP L R1{op}R2")
            assert _values(line) == ["L", "R1", op, "R2"], op

    def test_parenthesized_comparison(self):
        line = tokenize_line("JMP L (R3 < 5)")
        assert [t.type for t in line.operands] == [
            TokenType.WORD, TokenType.LPAREN, TokenType.WORD,
            TokenType.COMPARE, TokenType.WORD, TokenType.RPAREN,
        ]

    def test_negative_number_is_one_token(self):
        line = tokenize_line("SET R1, -42")
        assert _values(line) == ["R1", "-42"]


class TestDeclarations:
    def test_label_alone(self):
        line = tokenize_line("MAIN:")
        assert line.label == "MAIN"
        assert line.keyword is None

    def test_label_with_instruction(self):
        line = tokenize_line("LOOP: INC R1")
        assert line.label == "LOOP"
        assert line.keyword == "INC"
        assert _values(line) == ["R1"]

    def test_invalid_label_name(self):
        with pytest.raises(ParseError) as exc:
            tokenize_line("1abc:")
        assert exc.value.kind is ParseErrorKind.INVALID_OPERAND

    def test_define_upper_and_lower(self):
        assert tokenize_line('DEFINE .name "Jeffrey"').is_define
        assert tokenize_line("define .age 33").is_define
        assert not tokenize_line("define .age 33").is_instruction

    def test_define_mixed_case_rejected(self):
        with pytest.raises(ParseError) as exc:
            tokenize_line("Define .x 1")
        assert exc.value.kind is ParseErrorKind.MIXED_CASE_OPCODE


class TestOpcodeCase:
    def test_upper_and_lower_accepted(self):
        assert tokenize_line("HALT").keyword == "HALT"
        assert tokenize_line("halt").keyword == "halt"

    def test_mixed_case_rejected(self):
        with pytest.raises(ParseError) as exc:
            tokenize_line("    Set R1, 1", 7)
        assert exc.value.kind is ParseErrorKind.MIXED_CASE_OPCODE
        assert exc.value.line_num == 7
        assert "Line 7" in str(exc.value)

    def test_case_rule_is_per_line(self):
        lines = tokenize("SET R1, 1\nadd r1, 2\nHALT")
        assert [l.keyword for l in lines] == ["SET", "add", "HALT"]

    def test_non_word_opcode(self):
        with pytest.raises(ParseError) as exc:
            tokenize_line('"text" R1')
        assert exc.value.kind is ParseErrorKind.UNKNOWN_OPCODE

    def test_case_rule_needs_letters(self):
        assert tokenize_line("___ R1").keyword == "___"


def test_tokenize_numbers_lines_from_one():
    lines = tokenize("SET R1, 1\n\nHALT")
    assert [l.line_num for l in lines] == [1, 2, 3]
    assert lines[2].keyword == "HALT"
