"""
TD4 Emulator - CPU Register File

Register model for the TD4 4-bit CPU:
  A     - 4-bit general purpose register A
  B     - 4-bit general purpose register B
  PC    - 4-bit program counter (addresses the 16-byte ROM)
  carry - 1-bit carry flag, raised by ADD on unsigned overflow

Every write is masked to the field width, so the register file can never
hold an out-of-range value no matter what the caller passes in.
"""

NIBBLE_MASK = 0x0F
CARRY_MASK = 0x01


class Registers:
    """TD4 CPU register set. All fields start at zero."""

    __slots__ = ('_a', '_b', '_pc', '_carry')

    def __init__(self, a: int = 0, b: int = 0, pc: int = 0, carry: int = 0):
        self._a = a & NIBBLE_MASK
        self._b = b & NIBBLE_MASK
        self._pc = pc & NIBBLE_MASK
        self._carry = carry & CARRY_MASK

    # --- General purpose registers ---

    @property
    def A(self) -> int:
        return self._a

    @A.setter
    def A(self, value: int):
        self._a = value & NIBBLE_MASK

    @property
    def B(self) -> int:
        return self._b

    @B.setter
    def B(self, value: int):
        self._b = value & NIBBLE_MASK

    # --- Program counter ---

    @property
    def PC(self) -> int:
        return self._pc

    @PC.setter
    def PC(self, value: int):
        self._pc = value & NIBBLE_MASK

    def increment_pc(self):
        """Advance PC by one. Wraps within 4 bits like the hardware counter."""
        self._pc = (self._pc + 1) & NIBBLE_MASK

    # --- Carry flag ---

    @property
    def carry(self) -> int:
        return self._carry

    @carry.setter
    def carry(self, value: int):
        self._carry = value & CARRY_MASK

    # --- Display ---

    def display(self) -> str:
        """Format register state for trace output and the CLI summary."""
        return (f"PC={self._pc:04b} A={self._a:04b} B={self._b:04b} "
                f"C={self._carry}")

    def as_dict(self) -> dict:
        return {'a': self._a, 'b': self._b, 'pc': self._pc, 'carry': self._carry}

    def reset(self):
        """Reset CPU to power-on state."""
        self._a = 0
        self._b = 0
        self._pc = 0
        self._carry = 0

    def __repr__(self) -> str:
        return f"Registers({self.display()})"
