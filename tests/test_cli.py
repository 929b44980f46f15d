"""
td4emu command-line tests.

Drives main() in-process with temporary source files and checks stdout and
the exit code.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

import pytest
import td4emu

SIMPLE_CALC = (
    "mov A 0011\n"
    "add A 0010\n"
    "mov B A\n"
    "out B\n"
    "jmp 0100\n"
)


@pytest.fixture
def source_file(tmp_path):
    def _write(text, name="prog.sasm"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


class TestParseIntArg:

    def test_formats(self):
        assert td4emu.parse_int_arg("0b0101") == 5
        assert td4emu.parse_int_arg("0xA") == 10
        assert td4emu.parse_int_arg("7") == 7
        assert td4emu.parse_int_arg(" 0B11 ") == 3

    def test_bad_value(self):
        with pytest.raises(ValueError):
            td4emu.parse_int_arg("0b2")


class TestRun:

    def test_final_state_line(self, source_file, capsys):
        assert td4emu.main([source_file(SIMPLE_CALC)]) == 0
        out = capsys.readouterr().out.strip()
        assert out == "PC=0100 A=0101 B=0101 C=0 OUT=0101 (HALT, 4 steps)"

    def test_json(self, source_file, capsys):
        assert td4emu.main([source_file(SIMPLE_CALC), "--json"]) == 0
        state = json.loads(capsys.readouterr().out)
        assert state == {
            "a": 5, "b": 5, "pc": 4, "carry": 0, "output": 5,
            "stop_reason": "HALT", "steps": 4,
        }

    def test_input_port(self, source_file, capsys):
        path = source_file("in A\nmov B A\nout B\njmp 0011\n")
        assert td4emu.main([path, "--input-port", "0b1010"]) == 0
        assert "OUT=1010" in capsys.readouterr().out

    def test_trace(self, source_file, capsys):
        assert td4emu.main([source_file(SIMPLE_CALC), "--trace"]) == 0
        lines = capsys.readouterr().out.strip().split("\n")
        assert len(lines) == 5
        assert lines[0].startswith("0000: MOV A, 0011")
        assert lines[3].endswith("OUT=0101")

    def test_timeout_exit_code(self, source_file, capsys):
        path = source_file("out 0001\njmp 0000\njmp 0010\n")
        assert td4emu.main([path, "--max-steps", "20"]) == 3
        assert "(TIMEOUT, 20 steps)" in capsys.readouterr().out

    def test_log_file(self, source_file, tmp_path, capsys):
        log = tmp_path / "logs" / "run.log"
        assert td4emu.main([source_file(SIMPLE_CALC), "--log-file", str(log)]) == 0
        text = log.read_text(encoding="utf-8")
        assert "Halted after 4 steps" in text


class TestOutputs:

    def test_write_binary_then_run_it(self, source_file, tmp_path, capsys):
        binary = tmp_path / "prog.bin"
        assert td4emu.main([source_file(SIMPLE_CALC), "-o", str(binary)]) == 0
        assert binary.read_bytes() == bytes([0x33, 0x02, 0x40, 0x90, 0xF4])
        from_source = capsys.readouterr().out

        assert td4emu.main([str(binary), "--binary"]) == 0
        assert capsys.readouterr().out == from_source

    def test_listing(self, source_file, capsys):
        assert td4emu.main([source_file(SIMPLE_CALC), "--listing"]) == 0
        out = capsys.readouterr().out
        assert "0000  00110011  33   mov A 0011" in out
        assert "HALT" not in out

    def test_binary_listing_disassembles(self, tmp_path, capsys):
        binary = tmp_path / "prog.bin"
        binary.write_bytes(bytes([0x33, 0x90, 0xF2]))
        assert td4emu.main([str(binary), "--binary", "--listing"]) == 0
        lines = capsys.readouterr().out.strip().split("\n")
        assert lines == [
            "0000  00110011  MOV A, 0011",
            "0001  10010000  OUT B",
            "0010  11110010  JMP 0010",
        ]

    def test_tokens(self, source_file, capsys):
        assert td4emu.main([source_file("out B\n"), "--tokens"]) == 0
        out = capsys.readouterr().out
        assert "Token(MNEMONIC, 'OUT', L1:1)" in out
        assert "Token(EOF" in out


class TestErrors:

    def test_missing_file(self, tmp_path):
        assert td4emu.main([str(tmp_path / "nope.sasm")]) == 1

    def test_lexer_error(self, source_file):
        assert td4emu.main([source_file("sub A 0001\n")]) == 1

    def test_parse_error(self, source_file):
        assert td4emu.main([source_file("out A\n")]) == 1

    def test_bad_immediate(self, source_file):
        assert td4emu.main([source_file("mov A 0012\n")]) == 1

    def test_oversized_program(self, source_file):
        assert td4emu.main([source_file("out 0001\n" * 17)]) == 1

    def test_unknown_opcode(self, tmp_path):
        binary = tmp_path / "bad.bin"
        binary.write_bytes(bytes([0x80, 0xF1]))
        assert td4emu.main([str(binary), "--binary"]) == 1

    @pytest.mark.parametrize("flags", [["--tokens"], ["-o", "copy.bin"]])
    def test_binary_rejects_source_only_flags(self, tmp_path, monkeypatch, capsys, flags):
        monkeypatch.chdir(tmp_path)
        binary = tmp_path / "prog.bin"
        binary.write_bytes(bytes([0x31, 0xF1]))
        with pytest.raises(SystemExit) as exc:
            td4emu.main([str(binary), "--binary"] + flags)
        assert exc.value.code == 2
        assert "need assembly source" in capsys.readouterr().err
        assert not (tmp_path / "copy.bin").exists()

    def test_nothing_printed_on_error(self, source_file, capsys):
        td4emu.main([source_file("mov A 0012\n")])
        assert capsys.readouterr().out == ""
