"""
TD4 Assembler
=============
Translates TD4 mnemonic source into the 8-bit machine code consumed by
td4_emulator.

Pipeline:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────┐
    │ Source   │───>│  Lexer   │───>│  Parser  │───>│ Assembler │
    │ (.sasm)  │    │ (tokens) │    │ (instrs) │    │ (bytes)   │
    └──────────┘    └──────────┘    └──────────┘    └───────────┘

    - lexer.py:        line-oriented scanner (mnemonics, registers, immediates)
    - parser.py:       one typed instruction per source line
    - instructions.py: instruction dataclasses (Mov, Add, Jmp, ...)
    - assembler.py:    packs each instruction into one byte
"""

__version__ = "0.3.0"

from .lexer import Lexer, Token, TokenType, LexerError
from .instructions import *
from .parser import Parser, ParseError
from .assembler import Assembler, AssemblerError, ImmediateParseError, assemble


def compile_source(source: str) -> bytes:
    """Assemble TD4 source text to machine code.

    Full pipeline: Lexer -> Parser -> Assembler.
    """
    return Assembler().assemble(source)
