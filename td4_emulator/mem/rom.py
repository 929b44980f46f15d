"""
TD4 Emulator - Instruction Memory (ROM)

The TD4 program counter is 4 bits wide, so the instruction memory holds at
most 16 bytes, one packed instruction per byte:

  bits 7-4  opcode
  bits 3-0  immediate operand (or 0000 for operand-less forms)

The ROM is read-only once built. Oversized images are rejected up front,
before the emulator ever fetches from them.
"""

from pathlib import Path
from typing import Iterable, Union


class OversizedProgram(Exception):
    """Raised when a ROM image exceeds the 16-byte address space."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Program is {size} bytes; TD4 ROM holds at most {limit}")


class Rom:
    """Immutable 16-byte instruction memory.

    Usage:
        rom = Rom([0b00110001, 0b11110001])
        rom.read8(0)      # 0x31
        len(rom)          # 2
    """

    MAX_SIZE = 16

    def __init__(self, data: Iterable[int] = b''):
        image = bytes(b & 0xFF for b in data)
        if len(image) > self.MAX_SIZE:
            raise OversizedProgram(len(image), self.MAX_SIZE)
        self._mem = image

    @classmethod
    def from_binary(cls, path_or_data: Union[str, Path, bytes, bytearray]) -> 'Rom':
        """Load a raw machine-code file or byte string."""
        if isinstance(path_or_data, (str, Path)):
            data = Path(path_or_data).read_bytes()
        else:
            data = bytes(path_or_data)
        return cls(data)

    def read8(self, addr: int) -> int:
        """Read the instruction byte at addr."""
        return self._mem[addr]

    @property
    def size(self) -> int:
        return len(self._mem)

    def __len__(self) -> int:
        return len(self._mem)

    def __bytes__(self) -> bytes:
        return self._mem

    def hexdump(self) -> str:
        """One row per address: address, hex byte, opcode/operand nibbles."""
        lines = []
        for addr, byte in enumerate(self._mem):
            lines.append(f"{addr:X}  {byte:02X}  {byte >> 4:04b} {byte & 0x0F:04b}")
        return '\n'.join(lines)
