import os


class AshenError(Exception):
    pass


def _location(filename: str | None, line: int | None) -> str | None:
    if filename is None and line is None:
        return None
    file_short = os.path.basename(filename) if filename else "<unknown>"
    if line is None:
        return file_short
    return f"{file_short}:{line}"


class AshenParseError(AshenError):
    def __init__(self, message: str, filename: str | None = None, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.line = line

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}Parse error: {self.message}"]
        loc = _location(self.filename, self.line)
        if loc is not None:
            lines.append(f"{indent}  at {loc}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


class AshenRuntimeError(AshenError):
    def __init__(self, message: str, pc: int | None = None, index: int | None = None,
                 filename: str | None = None, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.pc = pc
        self.index = index
        self.filename = filename
        self.line = line

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}Runtime error: {self.message}"]
        if self.pc is not None:
            where = f"{indent}  pc={self.pc:04d}"
            if self.index is not None:
                where += f" index={self.index}"
            loc = _location(self.filename, self.line)
            if loc is not None:
                where += f" ({loc})"
            lines.append(where)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()
