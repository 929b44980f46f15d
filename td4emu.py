#!/usr/bin/env python3
"""
td4emu - TD4 4-bit CPU assembler + emulator CLI

Usage:
    python td4emu.py <program.sasm> [--input-port 0b0101] [--trace] [--json]
                                    [-o program.bin] [--listing] [--tokens]
    python td4emu.py <program.bin> --binary

Assembles the source, loads it into a 16-byte ROM, runs it until the halt
rule fires, and prints the final register file and output port.

Examples:
    python td4emu.py examples/simple_calc.sasm
    python td4emu.py examples/echo_input.sasm --input-port 0b1010 --trace
    python td4emu.py examples/simple_calc.sasm -o simple_calc.bin --listing
    python td4emu.py simple_calc.bin --binary --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from td4_compiler import Lexer, LexerError, ParseError
from td4_compiler.assembler import Assembler, AssemblerError
from td4_emulator import (
    TD4Emulator, StopReason, Rom, Port, OversizedProgram, UnknownOpcode, __version__,
)
from td4_emulator.cpu.decoder import disassemble
from td4_emulator.log_setup import setup_logging

logger = logging.getLogger("td4emu")


def parse_int_arg(value: str) -> int:
    """Parse an integer that may be binary (0b...), hex (0x...) or decimal."""
    value = value.strip()
    if value.lower().startswith("0b"):
        return int(value[2:], 2)
    if value.lower().startswith("0x"):
        return int(value[2:], 16)
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="td4emu",
        description="TD4 4-bit CPU assembler and emulator",
    )
    parser.add_argument("input", help="Assembly source (.sasm) or machine code with --binary")
    parser.add_argument("--binary", action="store_true",
                        help="Treat input as raw machine code instead of assembly")
    parser.add_argument("--input-port", default="0", type=parse_int_arg,
                        help="Input port level, e.g. 0b0101, 0x5 or 5 (default: 0)")
    parser.add_argument("--max-steps", type=int, default=TD4Emulator.DEFAULT_MAX_STEPS,
                        help=f"Instruction budget before giving up "
                             f"(default: {TD4Emulator.DEFAULT_MAX_STEPS})")
    parser.add_argument("-o", "--output", help="Write assembled machine code to this file")
    parser.add_argument("--tokens", action="store_true",
                        help="Dump token stream and exit (debug)")
    parser.add_argument("--listing", action="store_true",
                        help="Print assembly listing (or disassembly) and exit")
    parser.add_argument("--trace", action="store_true",
                        help="Print one line per executed instruction")
    parser.add_argument("--json", action="store_true",
                        help="Print final state as JSON")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log every executed instruction to stderr")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", help="Also write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"td4emu {__version__}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.binary and (args.tokens or args.output):
        parser.error("--tokens and -o/--output need assembly source, not --binary")

    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    setup_logging(console_level=level, log_file=args.log_file)

    try:
        source_path = Path(args.input)
        if args.binary:
            program = source_path.read_bytes()
            if args.listing:
                print("\n".join(disassemble(program)))
                return 0
        else:
            source = source_path.read_text(encoding="utf-8")

            if args.tokens:
                for tok in Lexer(source).tokenize():
                    print(tok)
                return 0

            assembler = Assembler()
            program = assembler.assemble(source)
            logger.info("Assembled %s: %d bytes", source_path.name, len(program))

            if args.output:
                Path(args.output).write_bytes(program)
                logger.info("Wrote %s", args.output)

            if args.listing:
                print(assembler.get_listing())
                return 0

        rom = Rom(program)
        port = Port(input=args.input_port)
        port.on_change(lambda old, new: logger.debug("OUT %s -> %s", f"{old:04b}", f"{new:04b}"))
        emu = TD4Emulator(rom, port=port)
        emu.enable_trace(args.trace)

        reason = emu.run(max_steps=args.max_steps)

        if args.trace:
            print(emu.get_trace())

        state = emu.state()
        if args.json:
            state["stop_reason"] = reason.value
            state["steps"] = emu.steps
            print(json.dumps(state, indent=2))
        else:
            print(f"{emu.regs.display()} OUT={emu.port.output:04b} ({reason.value}, {emu.steps} steps)")

        return 0 if reason is StopReason.HALT else 3

    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1
    except LexerError as e:
        logger.error("Lexer error: %s", e)
        return 1
    except ParseError as e:
        logger.error("Parse error: %s", e)
        return 1
    except AssemblerError as e:
        logger.error("Assembler error: %s", e)
        return 1
    except OversizedProgram as e:
        logger.error("Program too large: %s", e)
        return 1
    except UnknownOpcode as e:
        logger.error("Decode error: %s", e)
        return 1
    except Exception as e:
        logger.error("Internal emulator error: %s", e, exc_info=args.verbose)
        return 2


if __name__ == "__main__":
    sys.exit(main())
