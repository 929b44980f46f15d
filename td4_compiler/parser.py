"""
Line parser for the TD4 assembler.

Turns the Lexer's token stream into typed instruction tokens, one per
source line:

    MOV A, Im    -> Mov(Register.A, Im)      MOV A, B  -> MovAB()
    MOV B, Im    -> Mov(Register.B, Im)      MOV B, A  -> MovBA()
    ADD A|B, Im  -> Add(reg, Im)
    JMP Im       -> Jmp(Im)                  JNC Im    -> Jnc(Im)
    IN A|B       -> In(reg)
    OUT B        -> OutB()                   OUT Im    -> OutIm(Im)

Operand-less forms tolerate one trailing immediate ("IN A 0000"); it is kept
as stray text and the assembler encodes 0000 regardless.
"""

from __future__ import annotations
from typing import List

from .lexer import Token, TokenType
from .instructions import (
    Register, Instruction, Mov, MovAB, MovBA, Add, Jmp, Jnc, In, OutB, OutIm,
)


class ParseError(Exception):
    def __init__(self, message: str, token: Token):
        self.token = token
        loc = f"L{token.line}:{token.col}"
        super().__init__(f"Parse error at {loc}: {message} (got {token.type.name} = {token.value!r})")


class Parser:
    """Builds one Instruction per non-blank source line."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _at(self, *types: TokenType) -> bool:
        return self._cur().type in types

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _operands(self) -> List[Token]:
        """Collect register/immediate operands up to end of line."""
        operands = []
        while not self._at(TokenType.NEWLINE, TokenType.EOF):
            tok = self._advance()
            if tok.type == TokenType.COMMA:
                continue
            if tok.type == TokenType.MNEMONIC:
                raise ParseError("Expected end of line", tok)
            operands.append(tok)
        return operands

    # ── Entry point ─────────────────────────

    def parse(self) -> List[Instruction]:
        instructions: List[Instruction] = []
        while not self._at(TokenType.EOF):
            if self._at(TokenType.NEWLINE):
                self._advance()
                continue
            mnem = self._cur()
            if mnem.type != TokenType.MNEMONIC:
                raise ParseError("Expected mnemonic", mnem)
            self._advance()
            operands = self._operands()
            instructions.append(self._build(mnem, operands))
        return instructions

    # ── Per-mnemonic forms ──────────────────

    def _build(self, mnem: Token, ops: List[Token]) -> Instruction:
        builder = {
            "MOV": self._build_mov,
            "ADD": self._build_add,
            "JMP": self._build_jump,
            "JNC": self._build_jump,
            "IN": self._build_in,
            "OUT": self._build_out,
        }[mnem.value]
        return builder(mnem, ops)

    def _shape(self, ops: List[Token]) -> tuple:
        return tuple(op.type for op in ops)

    def _arity_error(self, mnem: Token, ops: List[Token], expected: str) -> ParseError:
        tok = ops[0] if ops else mnem
        return ParseError(f"{mnem.value} expects {expected}", tok)

    def _build_mov(self, mnem: Token, ops: List[Token]) -> Instruction:
        shape = self._shape(ops)
        line = mnem.line
        if shape == (TokenType.REGISTER, TokenType.IMMEDIATE):
            return Mov(Register(ops[0].value), ops[1].value, line=line)
        if shape in ((TokenType.REGISTER, TokenType.REGISTER),
                     (TokenType.REGISTER, TokenType.REGISTER, TokenType.IMMEDIATE)):
            stray = ops[2].value if len(ops) == 3 else None
            pair = (ops[0].value, ops[1].value)
            if pair == ("A", "B"):
                return MovAB(stray, line=line)
            if pair == ("B", "A"):
                return MovBA(stray, line=line)
            raise ParseError("MOV between registers needs A, B or B, A", ops[1])
        raise self._arity_error(mnem, ops, "a register and an immediate, or two registers")

    def _build_add(self, mnem: Token, ops: List[Token]) -> Instruction:
        if self._shape(ops) == (TokenType.REGISTER, TokenType.IMMEDIATE):
            return Add(Register(ops[0].value), ops[1].value, line=mnem.line)
        raise self._arity_error(mnem, ops, "a register and an immediate")

    def _build_jump(self, mnem: Token, ops: List[Token]) -> Instruction:
        if self._shape(ops) != (TokenType.IMMEDIATE,):
            raise self._arity_error(mnem, ops, "one immediate address")
        if mnem.value == "JMP":
            return Jmp(ops[0].value, line=mnem.line)
        return Jnc(ops[0].value, line=mnem.line)

    def _build_in(self, mnem: Token, ops: List[Token]) -> Instruction:
        shape = self._shape(ops)
        if shape in ((TokenType.REGISTER,), (TokenType.REGISTER, TokenType.IMMEDIATE)):
            stray = ops[1].value if len(ops) == 2 else None
            return In(Register(ops[0].value), stray, line=mnem.line)
        raise self._arity_error(mnem, ops, "a register")

    def _build_out(self, mnem: Token, ops: List[Token]) -> Instruction:
        shape = self._shape(ops)
        if shape == (TokenType.IMMEDIATE,):
            return OutIm(ops[0].value, line=mnem.line)
        if shape in ((TokenType.REGISTER,), (TokenType.REGISTER, TokenType.IMMEDIATE)):
            if ops[0].value != "B":
                raise ParseError("OUT reads only from register B", ops[0])
            stray = ops[1].value if len(ops) == 2 else None
            return OutB(stray, line=mnem.line)
        raise self._arity_error(mnem, ops, "register B or an immediate")
