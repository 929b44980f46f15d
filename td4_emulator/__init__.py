# TD4 Emulator - software model of the TD4 4-bit CPU
#
# Two 4-bit registers (A, B), a 4-bit program counter, one carry flag,
# 16 bytes of instruction ROM, and a 4-bit input/output port pair.
# Programs are produced by td4_compiler and executed by TD4Emulator.

__version__ = "0.3.0"

from .cpu.regs import Registers
from .cpu.decoder import Opcode, DecodedInstruction, UnknownOpcode, decode, disassemble
from .mem.rom import Rom, OversizedProgram
from .periph.ports import Port
from .emu import TD4Emulator, StopReason
