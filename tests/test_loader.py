import pytest

from bytecode import Opcode
from errors import AshenParseError
from loader import load_file, load_source, normalize_lines


def src(*lines):
    return "\n".join(str(x) for x in lines) + "\n"


def test_blank_lines_and_tabs_are_normalized():
    lines = normalize_lines("\n  0\t\n\n\tLOAD_CONST \n\t\"a\tb\"\n\n")
    assert lines == [(2, "0"), (4, "LOAD_CONST"), (5, '"a b"')]


def test_loads_triples_and_pairs_in_file_order():
    program = load_source(src(0, "LOAD_CONST", 5, 1, "load_fast", "x", 2, "BINARY_ADD", 3, "END"))

    got = [(ins.index, ins.op, ins.arg) for ins in program.instructions]
    assert got == [
        (0, "LOAD_CONST", "5"),
        (1, "load_fast", "x"),
        (2, "BINARY_ADD", ""),
        (3, "END", ""),
    ]
    assert program.instructions[1].opcode == Opcode.LOAD_FAST
    assert program.positions == {0: 0, 1: 1, 2: 2, 3: 3}


def test_indices_need_not_be_contiguous():
    program = load_source(src(10, "END", 3, "END", 7, "JUMP_ABSOLUTE", 3))
    assert program.positions == {10: 0, 3: 1, 7: 2}


def test_debug_info_tracks_source_lines():
    program = load_source(src(0, "", "LOAD_CONST", 1, 1, "END"), filename="prog.bc")
    assert program.debug[0] == {"file": "prog.bc", "line": 3}
    assert program.debug[1] == {"file": "prog.bc", "line": 6}


def test_first_line_not_numeric_fails():
    with pytest.raises(AshenParseError) as exc:
        load_source(src("LOAD_CONST", 1, "END"))
    assert "expected numeric index" in exc.value.message
    assert exc.value.line == 1


def test_negative_index_is_rejected():
    with pytest.raises(AshenParseError) as exc:
        load_source(src(-1, "END"))
    assert "expected numeric index" in exc.value.message


def test_missing_opcode_after_index():
    with pytest.raises(AshenParseError) as exc:
        load_source(src(0, "END", 1))
    assert "missing opcode after index 1" in exc.value.message


def test_missing_argument():
    with pytest.raises(AshenParseError) as exc:
        load_source(src(0, "LOAD_CONST"))
    assert "missing argument" in exc.value.message


def test_argument_that_is_an_opcode_is_rejected():
    with pytest.raises(AshenParseError) as exc:
        load_source(src(0, "STORE_FAST", "end", 1, "END"))
    assert "expected argument, found opcode" in exc.value.message
    assert exc.value.line == 3


def test_duplicate_index_is_rejected():
    with pytest.raises(AshenParseError) as exc:
        load_source(src(0, "END", 0, "END"))
    assert "duplicate index 0" in exc.value.message


def test_unknown_opcode_loads_and_takes_no_argument():
    program = load_source(src(0, "NOP_WHATEVER", 1, "END"))
    assert [ins.op for ins in program.instructions] == ["NOP_WHATEVER", "END"]
    assert program.instructions[0].opcode is None


def test_subtract_misspelling_is_recognized():
    program = load_source(src(0, "BINARY_SUBSTRACT"))
    assert program.instructions[0].opcode == Opcode.BINARY_SUBTRACT


def test_load_file(tmp_path):
    path = tmp_path / "p.bc"
    path.write_text(src(0, "LOAD_CONST", '"hi"', 1, "END"), encoding="utf-8")
    program = load_file(path)
    assert len(program) == 2
    assert program.debug[0]["file"] == str(path)


def test_load_file_missing(tmp_path):
    with pytest.raises(AshenParseError) as exc:
        load_file(tmp_path / "nope.bc")
    assert "cannot read file" in exc.value.message


def test_argument_line_follows_opcode_line():
    program = load_source(src(0, "LOAD_CONST", '"x"', 1, "STORE_FAST", "name", 2, "JUMP_IF_TRUE", 0))
    got = [(ins.op, ins.arg) for ins in program.instructions]
    assert got == [("LOAD_CONST", '"x"'), ("STORE_FAST", "name"), ("JUMP_IF_TRUE", "0")]
