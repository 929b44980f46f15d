"""
TD4 Assembler back-end.

Packs typed instruction tokens into TD4 machine code, one byte each:

    byte = (opcode << 4) | (operand & 0x0F)

The opcode nibble comes from the emulator's opcode table, so the assembler
and the decoder can never disagree about an encoding. Operands:

  - ADD, MOV reg/Im, JMP, JNC, OUT Im: the immediate text parsed as a binary
    literal of 1 to 4 digits ("0001", "1", "1010").
  - MOV A,B / MOV B,A / IN A|B / OUT B: always 0000, whatever stray
    immediate text the token carries.

The assembler does not enforce the 16-byte ROM limit; td4_emulator.Rom does.
"""

from __future__ import annotations
import logging
import re
from typing import Iterable, List, Optional

from td4_emulator.cpu.decoder import Opcode

from .lexer import Lexer
from .parser import Parser
from .instructions import (
    Register, Instruction, Mov, MovAB, MovBA, Add, Jmp, Jnc, In, OutB, OutIm,
)

__all__ = ['Assembler', 'AssemblerError', 'ImmediateParseError', 'assemble']

logger = logging.getLogger(__name__)

_BINARY_NIBBLE = re.compile(r'[01]{1,4}')


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class ImmediateParseError(AssemblerError):
    """An immediate operand is not a 4-bit binary literal."""
    def __init__(self, text: Optional[str], line_num: int = 0):
        self.text = text
        super().__init__(
            f"Cannot parse immediate {text!r} as a 4-bit binary literal", line_num)


# (token type, register) -> opcode nibble. Register is None where it
# does not select the encoding.
OPCODE_MAP = {
    (Mov, Register.A): Opcode.MOV_A_IMM,
    (Mov, Register.B): Opcode.MOV_B_IMM,
    (MovAB, None):     Opcode.MOV_A_FROM_B,
    (MovBA, None):     Opcode.MOV_B_FROM_A,
    (Add, Register.A): Opcode.ADD_A,
    (Add, Register.B): Opcode.ADD_B,
    (Jmp, None):       Opcode.JMP,
    (Jnc, None):       Opcode.JNC,
    (In, Register.A):  Opcode.IN_A,
    (In, Register.B):  Opcode.IN_B,
    (OutB, None):      Opcode.OUT_B,
    (OutIm, None):     Opcode.OUT_IMM,
}

# Token types whose low nibble is always 0000
ZERO_PADDED = (MovAB, MovBA, In, OutB)


def parse_immediate(text: Optional[str], line_num: int = 0) -> int:
    """Parse a binary immediate such as "0001". Raises ImmediateParseError."""
    if text is None or not _BINARY_NIBBLE.fullmatch(text):
        raise ImmediateParseError(text, line_num)
    return int(text, 2)


class Assembler:
    """TD4 assembler.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)   # bytes, one per instruction
        print(asm.get_listing())

    or, for already-parsed tokens:
        program = Assembler().compile([Mov(Register.A, "0001")])
    """

    def __init__(self):
        self.binary: bytearray = bytearray()          # Last assembled program
        self.instructions: List[Instruction] = []     # Tokens behind self.binary
        self._source_lines: List[str] = []            # Raw source, for the listing

    def assemble(self, source: str) -> bytes:
        """Tokenize, parse and compile source text into machine code."""
        tokens = Lexer(source).tokenize()
        instructions = Parser(tokens).parse()
        return self._commit(instructions, source.split('\n'))

    def compile(self, instructions: Iterable[Instruction]) -> bytes:
        """Pack each instruction token into one byte, preserving order."""
        return self._commit(instructions, [])

    def _commit(self, instructions: Iterable[Instruction], source_lines: List[str]) -> bytes:
        # State is replaced only once every instruction encodes, so a failed
        # run leaves the previous listing intact.
        instructions = list(instructions)
        binary = bytearray(self._encode(instr) for instr in instructions)
        self.instructions = instructions
        self.binary = binary
        self._source_lines = source_lines
        logger.debug("Assembled %d instructions", len(binary))
        return bytes(binary)

    def _encode(self, instr: Instruction) -> int:
        register = instr.register if isinstance(instr, (Mov, Add, In)) else None
        try:
            opcode = OPCODE_MAP[(type(instr), register)]
        except KeyError:
            raise AssemblerError(f"Cannot encode {instr!r}", getattr(instr, 'line', 0)) from None

        if isinstance(instr, ZERO_PADDED):
            return self._gen_bin_code_with_zero_padding(opcode)
        return self._gen_bin_code(opcode, instr.im, instr.line)

    @staticmethod
    def _gen_bin_code(op: int, im: Optional[str], line_num: int = 0) -> int:
        return (op << 4) | (parse_immediate(im, line_num) & 0x0F)

    @staticmethod
    def _gen_bin_code_with_zero_padding(op: int) -> int:
        return (op << 4) | 0b0000

    def get_listing(self) -> str:
        """Return a human-readable listing: address, byte, source."""
        lines = []
        lines.append(f"{'ADDR':<4}  {'BYTE':<8}  {'HEX':<3}  SOURCE")
        lines.append("-" * 48)
        for addr, (instr, byte) in enumerate(zip(self.instructions, self.binary)):
            src = ""
            if instr.line and instr.line <= len(self._source_lines):
                src = self._source_lines[instr.line - 1].strip()
            lines.append(f"{addr:04b}  {byte:08b}  {byte:02X}   {src}")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> bytes:
    """Assemble source text, return the machine-code bytes."""
    return Assembler().assemble(source)
