"""
Assembler / Parser Tests for vasm.

Run: pytest tests/test_assembler.py -v
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from vasm import parse
from vasm.errors import ParseError, ParseErrorKind
from vasm.program import (
    CompareOp, ConstantRef, DirectAddress, IndirectAddress, LabelRef,
    Literal, Opcode, Register,
)
from vasm.values import INT64_MIN, Integer, Text


SAMPLE = """\
DEFINE .name "Jeffrey"
define .age 33
START:
    SET %0xFF, 1
    LOAD %0xFF, R1
    CLEAR R4

MAIN:
    SUB 100, .age
    ADD %100, %200
    ADD r4, 1
    mov a, r4
    jmp END r4=106;befg
    jmp MAIN ; also a comment
    not 10
    ;this is a comment to help, maybe?
END:
    LOAD %R2, R3
    PUSH .name
    POP r7
    HALT
"""


def _parse_error(source):
    with pytest.raises(ParseError) as exc:
        parse(source)
    return exc.value


def _single(line):
    """Assemble one instruction line and return its Instruction."""
    return parse(line).instructions[0]


# ──────────────────────────────────────────────
# Symbol table
# ──────────────────────────────────────────────

class TestSymbolTable:
    def test_sample_program_shape(self):
        program = parse(SAMPLE)
        assert len(program) == 14
        assert program.labels == {"START": 0, "MAIN": 3, "END": 10}
        assert program.constants == {"name": Text("Jeffrey"), "age": Integer(33)}

    def test_declarations_take_no_index(self):
        program = parse(SAMPLE)
        opcodes = [i.opcode for i in program.instructions]
        assert opcodes[:3] == [Opcode.SET, Opcode.LOAD, Opcode.CLEAR]
        assert opcodes[-1] is Opcode.HALT

    def test_instructions_keep_line_numbers(self):
        program = parse(SAMPLE)
        assert program.instructions[0].line_num == 4
        assert program.instructions[-1].line_num == 21

    def test_label_on_same_line_as_instruction(self):
        program = parse("SET R1, 1\nLOOP: INC R1\nJMP LOOP")
        assert program.labels == {"LOOP": 1}
        assert program.instructions[1].opcode is Opcode.INC

    def test_label_after_last_instruction(self):
        program = parse("JMP END\nEND:")
        assert program.labels["END"] == 1
        assert program.instructions[0].operands[0] == LabelRef("END", 1)

    def test_forward_label_reference(self):
        program = parse("CALL work\nHALT\nwork:\nRET")
        assert program.instructions[0].operands[0] == LabelRef("work", 2)

    def test_forward_constant_reference(self):
        program = parse("ADD .x, 1\nDEFINE .x 41\nHALT")
        assert program.instructions[0].operands[0] == ConstantRef("x", Integer(41))
        assert len(program) == 2

    def test_empty_source(self):
        program = parse("")
        assert len(program) == 0
        assert program.labels == {} and program.constants == {}

    def test_listing_shows_labels_and_constants(self):
        listing = parse(SAMPLE).listing()
        assert "MAIN:" in listing
        assert "END:" in listing
        assert '.name = "Jeffrey"' in listing
        assert "JMP END r4" not in listing
        assert "JMP END R4=106" in listing


# ──────────────────────────────────────────────
# Operand classification
# ──────────────────────────────────────────────

class TestOperands:
    def test_registers_are_case_insensitive(self):
        instr = _single("mov a, r4")
        assert instr.opcode is Opcode.MOV
        assert instr.operands == (Register("A"), Register("R4"))

    def test_direct_addresses(self):
        instr = _single("MOV %0x10, %200")
        assert instr.operands == (DirectAddress(16), DirectAddress(200))
        assert _single("CLEAR %0b101").operands == (DirectAddress(5),)

    def test_indirect_address(self):
        instr = _single("LOAD %R2, R3")
        assert instr.operands == (IndirectAddress("R2"), Register("R3"))
        assert _single("CLEAR %r8").operands == (IndirectAddress("R8"),)

    def test_integer_literals(self):
        assert _single("PUSH 42").operands == (Literal(Integer(42)),)
        assert _single("PUSH -0x10").operands == (Literal(Integer(-16)),)
        assert _single("PUSH 0b1010").operands == (Literal(Integer(10)),)
        assert _single("PUSH -9223372036854775808").operands == (Literal(Integer(INT64_MIN)),)

    def test_text_literal(self):
        assert _single('SET R1, "hi there"').operands[1] == Literal(Text("hi there"))

    def test_constant_reference(self):
        program = parse('DEFINE .greeting "hello"\nPUSH .greeting')
        assert program.instructions[0].operands == (ConstantRef("greeting", Text("hello")),)

    def test_out_of_range_direct_address_parses(self):
        assert _single("LOAD %300, R1").operands[0] == DirectAddress(300)

    def test_pop_operand_optional(self):
        assert _single("POP").operands == ()
        assert _single("POP R2").operands == (Register("R2"),)


class TestComparison:
    def test_compact_comparison(self):
        program = parse("L:\nJMP L R3=5")
        cmp = program.instructions[0].comparison
        assert cmp.left == Register("R3")
        assert cmp.op is CompareOp.EQ
        assert cmp.right == Literal(Integer(5))

    def test_parenthesized_comparison(self):
        program = parse("L:\nJMP L (R1 != R2)")
        cmp = program.instructions[0].comparison
        assert cmp.op is CompareOp.NE
        assert cmp.right == Register("R2")

    def test_unconditional_jump_has_no_comparison(self):
        assert parse("L:\nJMP L").instructions[0].comparison is None

    def test_malformed_comparison(self):
        err = _parse_error("L:\nJMP L R3 5")
        assert err.kind is ParseErrorKind.INVALID_OPERAND
        assert err.line_num == 2

    def test_unbalanced_parenthesis(self):
        err = _parse_error("L:\nJMP L (R3 = 5")
        assert err.kind is ParseErrorKind.INVALID_OPERAND


# ──────────────────────────────────────────────
# Parse errors
# ──────────────────────────────────────────────

class TestParseErrors:
    def test_unknown_opcode(self):
        err = _parse_error("SET R1, 1\nFOO R1")
        assert err.kind is ParseErrorKind.UNKNOWN_OPCODE
        assert err.line_num == 2
        assert err.line_text == "FOO R1"
        assert str(err).startswith("Line 2: UnknownOpcode")

    def test_mixed_case_opcode(self):
        err = _parse_error("HALT\n\nHaLt")
        assert err.kind is ParseErrorKind.MIXED_CASE_OPCODE
        assert err.line_num == 3

    def test_unresolved_operands(self):
        for source in ("PUSH foo", "PUSH .missing", "PUSH %R9", "PUSH F", "PUSH R9"):
            err = _parse_error(source)
            assert err.kind is ParseErrorKind.UNRESOLVED_OPERAND, source

    def test_duplicate_label(self):
        err = _parse_error("L:\nHALT\nL:\nHALT")
        assert err.kind is ParseErrorKind.DUPLICATE_LABEL
        assert err.line_num == 3

    def test_duplicate_constant(self):
        err = _parse_error("DEFINE .x 1\nDEFINE .x 2")
        assert err.kind is ParseErrorKind.DUPLICATE_CONSTANT
        assert err.line_num == 2

    def test_unknown_label_reference(self):
        err = _parse_error("JMP nowhere")
        assert err.kind is ParseErrorKind.UNKNOWN_LABEL_REFERENCE
        err = _parse_error("CALL nowhere")
        assert err.kind is ParseErrorKind.UNKNOWN_LABEL_REFERENCE

    def test_malformed_literals(self):
        for source in ("PUSH 12abc", "PUSH 0xZZ", "PUSH 9223372036854775808",
                       "CLEAR %0xZZ", "DEFINE .x 0b102", "PUSH 1_0", "PUSH 0x"):
            err = _parse_error(source)
            assert err.kind is ParseErrorKind.MALFORMED_LITERAL, source

    def test_prefixed_literals_reject_sign_and_underscore(self):
        for source in ("SET R1, 0x-5", "PUSH 0x+5", "PUSH 0x1_0", "PUSH 0b-1",
                       "CLEAR %0b1_0", "CLEAR %0x-1"):
            err = _parse_error(source)
            assert err.kind is ParseErrorKind.MALFORMED_LITERAL, source

    def test_opcode_without_letters(self):
        err = _parse_error("___ R1")
        assert err.kind is ParseErrorKind.UNKNOWN_OPCODE

    def test_wrong_operand_count(self):
        for source in ("ADD R1", "HALT R1", "RET 1", "SET R1, 2, 3", "DEFINE .x"):
            err = _parse_error(source)
            assert err.kind is ParseErrorKind.WRONG_OPERAND_COUNT, source

    def test_invalid_operands(self):
        for source in ("SET 5, R1", "LOAD R1, R2", "STORE %1, R2",
                       "INC 3", "DEFINE .x R1", "DEFINE x 1"):
            err = _parse_error(source)
            assert err.kind is ParseErrorKind.INVALID_OPERAND, source

    def test_constant_is_not_writable(self):
        err = _parse_error("DEFINE .x 1\nSET .x, 2")
        assert err.kind is ParseErrorKind.INVALID_OPERAND
        assert err.line_num == 2

    def test_first_error_wins(self):
        err = _parse_error("FOO\nBAR")
        assert err.line_num == 1
