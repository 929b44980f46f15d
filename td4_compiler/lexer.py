"""
Lexer / Tokenizer for the TD4 assembler.

Converts assembly source into a stream of tokens for the parser. Source is
line oriented: one instruction per line, whitespace- and/or comma-separated
operands, immediates written as binary literals:

    mov A 0001      ; load A
    add A, 0001
    out B
    jmp 0011        # loop

Mnemonics and register names are case-insensitive. Comments start with ';'
or '#' and run to end of line. Immediates are kept as raw text; the
assembler decides whether they are valid 4-bit literals.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import List


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    MNEMONIC = "MNEMONIC"
    REGISTER = "REGISTER"
    IMMEDIATE = "IMMEDIATE"
    COMMA = ","
    NEWLINE = "NEWLINE"
    EOF = "EOF"


@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


MNEMONICS = frozenset({"MOV", "ADD", "JMP", "JNC", "IN", "OUT"})
REGISTERS = frozenset({"A", "B"})
COMMENT_CHARS = ";#"


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class LexerError(Exception):
    def __init__(self, message: str, line: int, col: int):
        self.line = line
        self.col = col
        super().__init__(f"Lexer error at L{line}:{col}: {message}")


class Lexer:
    """Tokenizes TD4 assembly source into a list of Tokens."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: List[Token] = []

    def _peek(self) -> str:
        return self.source[self.pos] if self.pos < len(self.source) else "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_comment(self):
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self._advance()

    def _read_word(self) -> str:
        start = self.pos
        while self.pos < len(self.source) and (self.source[self.pos].isalnum() or self.source[self.pos] == "_"):
            self._advance()
        return self.source[start:self.pos]

    def _emit_newline(self, line: int, col: int):
        # Blank and comment-only lines collapse into a single separator
        if self.tokens and self.tokens[-1].type != TokenType.NEWLINE:
            self.tokens.append(Token(TokenType.NEWLINE, "\n", line, col))

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return a list of tokens."""
        self.tokens = []

        while self.pos < len(self.source):
            ch = self._peek()

            if ch in " \t\r":
                self._advance()
                continue

            if ch == "\n":
                self._emit_newline(self.line, self.col)
                self._advance()
                continue

            if ch in COMMENT_CHARS:
                self._skip_comment()
                continue

            if ch == ",":
                self.tokens.append(Token(TokenType.COMMA, ch, self.line, self.col))
                self._advance()
                continue

            start_line, start_col = self.line, self.col

            # Immediate: digit-initial word, validated later by the assembler
            if ch.isdigit():
                text = self._read_word()
                self.tokens.append(Token(TokenType.IMMEDIATE, text, start_line, start_col))
                continue

            if ch.isalpha():
                text = self._read_word()
                upper = text.upper()
                if upper in MNEMONICS:
                    self.tokens.append(Token(TokenType.MNEMONIC, upper, start_line, start_col))
                elif upper in REGISTERS:
                    self.tokens.append(Token(TokenType.REGISTER, upper, start_line, start_col))
                else:
                    raise LexerError(f"Unknown word: {text!r}", start_line, start_col)
                continue

            raise LexerError(f"Unexpected character: {ch!r}", self.line, self.col)

        self._emit_newline(self.line, self.col)
        self.tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return self.tokens
