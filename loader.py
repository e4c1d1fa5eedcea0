from bytecode import BytecodeProgram, Instruction, is_opcode, takes_arg
from errors import AshenParseError


def normalize_lines(text):
    # -> list of (line_no, text), blank lines dropped
    out = []
    for line_no, raw in enumerate(text.splitlines(), 1):
        line = raw.replace("\t", " ").strip()
        if not line:
            continue
        out.append((line_no, line))
    return out


class Loader:
    def __init__(self, text, filename: str = "<string>"):
        self.filename = filename
        self.lines = normalize_lines(text)
        self.pos = 0
        self.last_line = self.lines[-1][0] if self.lines else 1

    def at_end(self) -> bool:
        return self.pos >= len(self.lines)

    def advance(self):
        line_no, line = self.lines[self.pos]
        self.pos += 1
        return line_no, line

    def error(self, message, line_no=None):
        raise AshenParseError(message, filename=self.filename, line=line_no or self.last_line)

    def read_index(self):
        line_no, line = self.advance()
        if not line.isascii() or not line.isdigit():
            self.error(f"expected numeric index, got {line!r}", line_no)
        return int(line), line_no

    def load(self) -> BytecodeProgram:
        program = BytecodeProgram()

        while not self.at_end():
            index, index_line = self.read_index()

            if self.at_end():
                self.error(f"missing opcode after index {index}")
            op_line, op = self.advance()

            arg = ""
            if takes_arg(op):
                if self.at_end():
                    self.error(f"missing argument for {op.upper()} at index {index}")
                arg_line, arg = self.advance()
                if is_opcode(arg):
                    self.error(f"expected argument, found opcode {arg!r} (after {op.upper()} at index {index})", arg_line)

            if program.has_index(index):
                self.error(f"duplicate index {index}", index_line)
            program.emit(Instruction(index, op, arg), debug={"file": self.filename, "line": op_line})

        return program


def load_source(text, filename: str = "<string>") -> BytecodeProgram:
    return Loader(text, filename).load()


def load_file(path) -> BytecodeProgram:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError:
        raise AshenParseError(f"cannot read file: {path}", filename=str(path))
    return load_source(text, filename=str(path))
