"""
Assembler Tests for the TD4 toolchain.

Checks the instruction packer against the TD4 opcode card, both from typed
instruction tokens and from assembly source text.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from td4_compiler.assembler import Assembler, AssemblerError, ImmediateParseError, assemble
from td4_compiler.instructions import (
    Register, Mov, MovAB, MovBA, Add, Jmp, Jnc, In, OutB, OutIm,
)
from td4_emulator import Opcode, decode


def _compile(*instructions) -> bytes:
    return Assembler().compile(list(instructions))


class TestOpcodeEncoding:
    """Every instruction form against its machine-code byte."""

    def test_compile_mov_a(self):
        assert _compile(Mov(Register.A, "0001")) == bytes([0b00110001])

    def test_compile_mov_b(self):
        assert _compile(Mov(Register.B, "0001")) == bytes([0b01110001])

    def test_compile_mov_ab(self):
        assert _compile(MovAB()) == bytes([0b00010000])

    def test_compile_mov_ba(self):
        assert _compile(MovBA()) == bytes([0b01000000])

    def test_compile_add_a(self):
        assert _compile(Add(Register.A, "0001")) == bytes([0b00000001])

    def test_compile_add_b(self):
        assert _compile(Add(Register.B, "0001")) == bytes([0b01010001])

    def test_compile_jmp(self):
        assert _compile(Jmp("0001")) == bytes([0b11110001])

    def test_compile_jnc(self):
        assert _compile(Jnc("0001")) == bytes([0b11100001])

    def test_compile_in_a(self):
        assert _compile(In(Register.A)) == bytes([0b00100000])

    def test_compile_in_b(self):
        assert _compile(In(Register.B)) == bytes([0b01100000])

    def test_compile_out_im(self):
        assert _compile(OutIm("0001")) == bytes([0b10110001])

    def test_compile_out_b(self):
        assert _compile(OutB()) == bytes([0b10010000])

    def test_order_preserved(self):
        program = _compile(Mov(Register.A, "0011"), Add(Register.A, "0001"),
                           MovBA(), OutB(), Jmp("0100"))
        assert program == bytes([0b00110011, 0b00000001, 0b01000000,
                                 0b10010000, 0b11110100])

    def test_empty_program(self):
        assert _compile() == b''

    def test_bytes_decode_to_same_kind(self):
        """Assembler and decoder share one opcode table"""
        cases = [
            (Mov(Register.A, "1"), Opcode.MOV_A_IMM),
            (Mov(Register.B, "1"), Opcode.MOV_B_IMM),
            (MovAB(), Opcode.MOV_A_FROM_B),
            (MovBA(), Opcode.MOV_B_FROM_A),
            (Add(Register.A, "1"), Opcode.ADD_A),
            (Add(Register.B, "1"), Opcode.ADD_B),
            (Jmp("1"), Opcode.JMP),
            (Jnc("1"), Opcode.JNC),
            (In(Register.A), Opcode.IN_A),
            (In(Register.B), Opcode.IN_B),
            (OutB(), Opcode.OUT_B),
            (OutIm("1"), Opcode.OUT_IMM),
        ]
        for instr, opcode in cases:
            assert decode(_compile(instr)[0]).opcode is opcode, instr


class TestImmediates:

    def test_short_literals(self):
        assert _compile(Mov(Register.A, "1")) == bytes([0b00110001])
        assert _compile(Mov(Register.A, "101")) == bytes([0b00110101])

    def test_full_nibble(self):
        assert _compile(OutIm("1111")) == bytes([0b10111111])
        assert _compile(OutIm("0000")) == bytes([0b10110000])

    def test_stray_immediate_ignored(self):
        """Operand-less forms encode 0000 whatever text they carry"""
        assert _compile(MovAB("1111")) == bytes([0b00010000])
        assert _compile(MovBA("0101")) == bytes([0b01000000])
        assert _compile(In(Register.A, "1111")) == bytes([0b00100000])
        assert _compile(OutB("0110")) == bytes([0b10010000])

    def test_stray_immediate_not_validated(self):
        assert _compile(MovAB("not-binary")) == bytes([0b00010000])

    @pytest.mark.parametrize("text", ["0012", "00001", "", "abc", "0x1", "15"])
    def test_bad_immediate(self, text):
        with pytest.raises(ImmediateParseError) as exc:
            _compile(Mov(Register.A, text))
        assert exc.value.text == text
        assert repr(text) in str(exc.value)

    def test_missing_immediate(self):
        with pytest.raises(ImmediateParseError):
            _compile(Jmp(None))

    def test_bad_immediate_is_assembler_error(self):
        with pytest.raises(AssemblerError):
            _compile(Add(Register.B, "2"))

    def test_bad_immediate_stops_compilation(self):
        asm = Assembler()
        with pytest.raises(ImmediateParseError):
            asm.compile([Mov(Register.A, "0001"), Jnc("9")])
        assert asm.binary == bytearray()
        assert asm.instructions == []

    def test_failed_assembly_keeps_previous_listing(self):
        asm = Assembler()
        asm.assemble("mov A 0001\nout 0010")
        before = asm.get_listing()
        with pytest.raises(ImmediateParseError):
            asm.assemble("jmp 2222\nout 0011")
        assert asm.get_listing() == before
        assert '0000  00110001  31   mov A 0001' in asm.get_listing()
        assert asm.binary == bytearray([0x31, 0xB2])

    def test_error_reports_source_line(self):
        with pytest.raises(ImmediateParseError) as exc:
            assemble("mov A 0001\nadd A 0021\n")
        assert exc.value.line_num == 2
        assert str(exc.value).startswith("Line 2:")


class TestSourceAssembly:

    def test_simple_program(self):
        source = (
            "mov A 0011\n"
            "add A 0010\n"
            "mov B A\n"
            "out B\n"
            "jmp 0100\n"
        )
        assert assemble(source) == bytes([0x33, 0x02, 0x40, 0x90, 0xF4])

    def test_commas_case_and_comments(self):
        source = (
            "; header comment\n"
            "\n"
            "MOV A, 0001   ; load\n"
            "Add a,0001    # bump\n"
            "OUT 1010\n"
        )
        assert assemble(source) == bytes([0x31, 0x01, 0xBA])

    def test_legacy_in_operand(self):
        """IN A 0001 assembles as plain IN A"""
        assert assemble("in A 0001\nin B 1111") == bytes([0x20, 0x60])

    def test_listing(self):
        asm = Assembler()
        asm.assemble("mov A 0011\n\nout B   ; show\njmp 0010\n")
        listing = asm.get_listing().split('\n')
        assert listing[0].startswith('ADDR')
        assert listing[2] == '0000  00110011  33   mov A 0011'
        assert listing[3] == '0001  10010000  90   out B   ; show'
        assert listing[4] == '0010  11110010  F2   jmp 0010'
        assert len(listing) == 5

    def test_listing_for_token_input(self):
        """Tokens built in code have no source line; listing still shows bytes"""
        asm = Assembler()
        asm.compile([OutIm("0001")])
        assert asm.get_listing().split('\n')[2].rstrip() == '0000  10110001  B1'

    def test_assembler_does_not_limit_size(self):
        """The ROM, not the assembler, enforces the 16-byte ceiling"""
        assert len(assemble("out 0001\n" * 20)) == 20
