"""
TD4 Emulator - Main Emulator Class

Integrates:
  - CPU registers (cpu/regs.py)
  - Instruction ROM (mem/rom.py)
  - Opcode decoder (cpu/decoder.py)
  - I/O port (periph/ports.py)

Execution model:
  1. Fetch the byte at PC (0 if PC is past the end of ROM)
  2. Decode high nibble -> opcode, low nibble -> operand
  3. Execute the handler -> update registers, port, carry
  4. Advance PC by one unless the instruction was JMP or JNC
  5. Halt once PC reaches the last ROM address

Programs end with a jump-to-self on the final address; the halt rule turns
that idiom into a clean stop instead of spinning forever.

Carry flag policy (matches the TD4 hardware):
  - ADD sets carry when the unmasked sum exceeds 15 and otherwise leaves
    the flag as it was.
  - Every other instruction clears carry after acting.
So only ADD raises carry and only the next non-ADD instruction drops it.

Termination reasons:
  - HALT:     PC reached the last ROM address
  - TIMEOUT:  step budget exhausted (backward jumps can loop forever)
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from .cpu.regs import Registers, NIBBLE_MASK
from .cpu.decoder import Opcode, JUMP_KINDS, decode
from .mem.rom import Rom
from .periph.ports import Port

logger = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'


class TD4Emulator:
    """TD4 4-bit CPU emulator.

    Usage:
        emu = TD4Emulator(Rom([0b00110001, 0b11110001]))
        result = emu.run()
        print(emu.regs.display())    # PC=0001 A=0001 B=0000 C=0
    """

    DEFAULT_MAX_STEPS = 10_000

    def __init__(self, rom: Rom, regs: Optional[Registers] = None,
                 port: Optional[Port] = None):
        self.rom = rom
        self.regs = regs if regs is not None else Registers()
        self.port = port if port is not None else Port()

        # Number of instructions dispatched since construction/reset
        self.steps = 0

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def _fetch(self) -> int:
        pc = self.regs.PC
        if pc >= len(self.rom):
            return 0
        return self.rom.read8(pc)

    def does_halt(self) -> bool:
        """True once PC addresses the last ROM byte (or beyond)."""
        return self.regs.PC >= len(self.rom) - 1

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns HALT if the run is over, else None.

        Raises UnknownOpcode if the fetched byte has an unassigned opcode.
        """
        pc = self.regs.PC
        instr = decode(self._fetch())

        self._dispatch[instr.opcode](instr.im)

        if instr.opcode not in JUMP_KINDS:
            self.regs.increment_pc()
        self.steps += 1

        logger.debug("%s: %-12s %s", f"{pc:04b}", instr.format(), self.regs.display())
        if self._trace:
            self._trace_output.append(
                f"{pc:04b}: {instr.format():12s} {self.regs.display()} OUT={self.port.output:04b}"
            )

        if self.does_halt():
            return StopReason.HALT
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until the halt rule fires or the step budget runs out.

        Args:
            max_steps: Maximum instructions this call may dispatch before TIMEOUT.
                ``steps`` keeps counting across calls.

        Returns:
            StopReason indicating why execution stopped
        """
        if max_steps is None:
            max_steps = self.DEFAULT_MAX_STEPS

        logger.info("Running %d-byte program (max %d steps)", len(self.rom), max_steps)

        if len(self.rom) == 0:
            logger.info("Empty ROM, nothing to execute")
            return StopReason.HALT

        start = self.steps
        reason = StopReason.TIMEOUT
        while self.steps - start < max_steps:
            result = self.step()
            if result is not None:
                reason = result
                break

        if reason is StopReason.TIMEOUT:
            logger.warning("Step budget of %d exhausted at PC=%s", max_steps, f"{self.regs.PC:04b}")
        else:
            logger.info("Halted after %d steps: %s OUT=%s",
                        self.steps, self.regs.display(), f"{self.port.output:04b}")
        return reason

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(im)
    # im is already 0 for operand-less kinds (see decoder.decode)

    def _build_dispatch(self) -> Dict[Opcode, Callable[[int], None]]:
        """Build opcode -> handler dispatch table."""
        return {
            Opcode.ADD_A:        self._op_add_a,
            Opcode.ADD_B:        self._op_add_b,
            Opcode.MOV_A_IMM:    self._op_mov_a,
            Opcode.MOV_B_IMM:    self._op_mov_b,
            Opcode.MOV_A_FROM_B: self._op_mov_a_from_b,
            Opcode.MOV_B_FROM_A: self._op_mov_b_from_a,
            Opcode.JMP:          self._op_jmp,
            Opcode.JNC:          self._op_jnc,
            Opcode.IN_A:         self._op_in_a,
            Opcode.IN_B:         self._op_in_b,
            Opcode.OUT_B:        self._op_out_b,
            Opcode.OUT_IMM:      self._op_out_im,
        }

    # ── Transfer ──

    def _op_mov_a(self, im):
        self.regs.A = im
        self.regs.carry = 0

    def _op_mov_b(self, im):
        self.regs.B = im
        self.regs.carry = 0

    def _op_mov_a_from_b(self, im):
        self.regs.A = self.regs.B
        self.regs.carry = 0

    def _op_mov_b_from_a(self, im):
        self.regs.B = self.regs.A
        self.regs.carry = 0

    # ── Arithmetic ──
    # No overflow leaves carry untouched; it is NOT cleared here.

    def _op_add_a(self, im):
        total = self.regs.A + im
        if total > NIBBLE_MASK:
            self.regs.carry = 1
        self.regs.A = total & NIBBLE_MASK

    def _op_add_b(self, im):
        total = self.regs.B + im
        if total > NIBBLE_MASK:
            self.regs.carry = 1
        self.regs.B = total & NIBBLE_MASK

    # ── I/O ──

    def _op_in_a(self, im):
        self.regs.A = self.port.input
        self.regs.carry = 0

    def _op_in_b(self, im):
        self.regs.B = self.port.input
        self.regs.carry = 0

    def _op_out_b(self, im):
        self.port.output = self.regs.B
        self.regs.carry = 0

    def _op_out_im(self, im):
        self.port.output = im
        self.regs.carry = 0

    # ── Jumps ──

    def _op_jmp(self, im):
        self.regs.PC = im
        self.regs.carry = 0

    def _op_jnc(self, im):
        if self.regs.carry == 0:
            self.regs.PC = im
        self.regs.carry = 0

    # ══════════════════════════════════════════════
    # Results / Trace / Debug
    # ══════════════════════════════════════════════

    def state(self) -> dict:
        """Externally observable result: registers plus the output port."""
        result = self.regs.as_dict()
        result['output'] = self.port.output
        return result

    def enable_trace(self, enable: bool = True):
        """Enable per-instruction trace recording."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Full emulator reset. The ROM and port input are kept."""
        self.regs.reset()
        self.port.reset()
        self.steps = 0
        self._trace_output.clear()
