"""
TD4 Emulator - Opcode Table / Decoder

Each instruction is one byte: the high nibble selects the operation, the low
nibble is a 4-bit immediate. Twelve of the sixteen operation codes are
assigned; 1000, 1010, 1100 and 1101 are unused and decode as illegal.

  Code  Kind           Assembler form   Operand
  0000  ADD_A          ADD A, Im        immediate
  0001  MOV_A_FROM_B   MOV A, B         forced 0000
  0010  IN_A           IN A             forced 0000
  0011  MOV_A_IMM      MOV A, Im        immediate
  0100  MOV_B_FROM_A   MOV B, A         forced 0000
  0101  ADD_B          ADD B, Im        immediate
  0110  IN_B           IN B             forced 0000
  0111  MOV_B_IMM      MOV B, Im        immediate
  1001  OUT_B          OUT B            forced 0000
  1011  OUT_IMM        OUT Im           immediate
  1110  JNC            JNC Im           immediate
  1111  JMP            JMP Im           immediate

The assembler packs bytes from the same table, so decode(encode(x)) holds
for every assembled instruction.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List


class Opcode(IntEnum):
    ADD_A = 0b0000
    MOV_A_FROM_B = 0b0001
    IN_A = 0b0010
    MOV_A_IMM = 0b0011
    MOV_B_FROM_A = 0b0100
    ADD_B = 0b0101
    IN_B = 0b0110
    MOV_B_IMM = 0b0111
    OUT_B = 0b1001
    OUT_IMM = 0b1011
    JNC = 0b1110
    JMP = 0b1111


# Kinds whose low nibble is a meaningful operand. The rest ignore it.
OPERAND_KINDS = frozenset({
    Opcode.ADD_A, Opcode.ADD_B,
    Opcode.MOV_A_IMM, Opcode.MOV_B_IMM,
    Opcode.JMP, Opcode.JNC,
    Opcode.OUT_IMM,
})

# Kinds that load PC themselves; every other kind advances PC by one.
JUMP_KINDS = frozenset({Opcode.JMP, Opcode.JNC})

# Opcode -> assembler text; {im} is the 4-bit operand in binary.
MNEMONICS = {
    Opcode.ADD_A:        'ADD A, {im}',
    Opcode.MOV_A_FROM_B: 'MOV A, B',
    Opcode.IN_A:         'IN A',
    Opcode.MOV_A_IMM:    'MOV A, {im}',
    Opcode.MOV_B_FROM_A: 'MOV B, A',
    Opcode.ADD_B:        'ADD B, {im}',
    Opcode.IN_B:         'IN B',
    Opcode.MOV_B_IMM:    'MOV B, {im}',
    Opcode.OUT_B:        'OUT B',
    Opcode.OUT_IMM:      'OUT {im}',
    Opcode.JNC:          'JNC {im}',
    Opcode.JMP:          'JMP {im}',
}


class UnknownOpcode(Exception):
    """Raised when a byte's high nibble is not an assigned operation code."""

    def __init__(self, code: int, data: int):
        self.code = code
        self.data = data
        super().__init__(f"Unknown opcode {code:04b} in byte {data:08b}")


@dataclass(frozen=True)
class DecodedInstruction:
    opcode: Opcode
    im: int = 0

    def format(self) -> str:
        return MNEMONICS[self.opcode].format(im=f'{self.im:04b}')

    def __str__(self) -> str:
        return self.format()


def has_operand(opcode: Opcode) -> bool:
    """True if the low nibble is an operand for this kind."""
    return opcode in OPERAND_KINDS


def decode(data: int) -> DecodedInstruction:
    """Split a fetched byte into (opcode, operand).

    Operand-less kinds always get operand 0, whatever bits the byte holds.
    Raises UnknownOpcode for the four unassigned codes.
    """
    code = (data >> 4) & 0x0F
    raw_im = data & 0x0F
    try:
        opcode = Opcode(code)
    except ValueError:
        raise UnknownOpcode(code, data & 0xFF) from None
    im = raw_im if opcode in OPERAND_KINDS else 0
    return DecodedInstruction(opcode, im)


def format_instruction(data: int) -> str:
    """Disassemble a single byte to assembler text."""
    return decode(data).format()


def disassemble(program: Iterable[int]) -> List[str]:
    """Disassemble a whole ROM image, one 'ADDR  BITS  TEXT' row per byte."""
    lines = []
    for addr, byte in enumerate(program):
        lines.append(f"{addr:04b}  {byte:08b}  {format_instruction(byte)}")
    return lines
