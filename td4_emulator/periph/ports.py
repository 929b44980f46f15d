"""
TD4 Emulator - I/O Port

The TD4 has a single 4-bit input port (DIP switches on the real board) and a
single 4-bit output port (four LEDs). The input level is supplied once when
the port is built and stays fixed for the whole run; the output latch is
written by OUT instructions and is the program's observable result.

Change callbacks let a harness watch the output LEDs:
  port.on_change(lambda old, new: print(f"OUT: {new:04b}"))
"""

from typing import Callable, List

NIBBLE_MASK = 0x0F


class Port:
    """4-bit input latch plus 4-bit output latch."""

    def __init__(self, input: int = 0b0000, output: int = 0b0000):
        self._input = input & NIBBLE_MASK
        self._output = output & NIBBLE_MASK
        self._change_callbacks: List[Callable[[int, int], None]] = []

    @property
    def input(self) -> int:
        """External input level. Read-only once the port exists."""
        return self._input

    @property
    def output(self) -> int:
        return self._output

    @output.setter
    def output(self, value: int):
        old = self._output
        self._output = value & NIBBLE_MASK
        if old != self._output:
            for cb in self._change_callbacks:
                cb(old, self._output)

    def on_change(self, callback: Callable[[int, int], None]):
        """Register callback(old_value, new_value) for output changes."""
        self._change_callbacks.append(callback)

    def reset(self):
        """Clear the output latch. The input is an external signal and stays.

        Goes through the setter, so change callbacks see the drop to 0000.
        """
        self.output = 0

    def __repr__(self) -> str:
        return f"Port(input={self._input:04b}, output={self._output:04b})"
