"""
Typed instruction tokens for the TD4 assembler.

The parser turns each source line into one of these dataclasses and the
assembler packs each one into a single machine-code byte. Immediates stay
as the source text (e.g. "0001") until the assembler validates them, so
a malformed literal is reported with the exact text the user wrote.

Operand-less forms (MovAB, MovBA, In, OutB) may carry stray immediate text
from legacy listings such as "IN A 0000"; the assembler always encodes
0000 for them.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Optional, Union

__all__ = [
    "Register", "Instruction",
    "Mov", "MovAB", "MovBA", "Add", "Jmp", "Jnc", "In", "OutB", "OutIm",
]


class Register(enum.Enum):
    A = "A"
    B = "B"


@dataclass
class Mov:
    """MOV A|B, Im  - load an immediate into a register."""
    register: Register
    im: str
    line: int = field(default=0, compare=False)


@dataclass
class MovAB:
    """MOV A, B  - copy B into A."""
    im: Optional[str] = None
    line: int = field(default=0, compare=False)


@dataclass
class MovBA:
    """MOV B, A  - copy A into B."""
    im: Optional[str] = None
    line: int = field(default=0, compare=False)


@dataclass
class Add:
    """ADD A|B, Im"""
    register: Register
    im: str
    line: int = field(default=0, compare=False)


@dataclass
class Jmp:
    im: str
    line: int = field(default=0, compare=False)


@dataclass
class Jnc:
    """JNC Im  - jump only when carry is clear."""
    im: str
    line: int = field(default=0, compare=False)


@dataclass
class In:
    """IN A|B  - read the input port."""
    register: Register
    im: Optional[str] = None
    line: int = field(default=0, compare=False)


@dataclass
class OutB:
    """OUT B  - drive the output port from B."""
    im: Optional[str] = None
    line: int = field(default=0, compare=False)


@dataclass
class OutIm:
    im: str
    line: int = field(default=0, compare=False)


Instruction = Union[Mov, MovAB, MovBA, Add, Jmp, Jnc, In, OutB, OutIm]
