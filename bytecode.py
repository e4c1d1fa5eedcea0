from dataclasses import dataclass
from enum import Enum


class Opcode(Enum):
    LOAD_CONST = ("LOAD_CONST", True)
    LOAD_FAST = ("LOAD_FAST", True)
    STORE_FAST = ("STORE_FAST", True)
    LOAD_GLOBAL = ("LOAD_GLOBAL", True)
    CALL_FUNCTION = ("CALL_FUNCTION", True)
    COMPARE_OP = ("COMPARE_OP", True)

    BINARY_ADD = ("BINARY_ADD", False)
    BINARY_SUBTRACT = ("BINARY_SUBTRACT", False)
    BINARY_MULTIPLY = ("BINARY_MULTIPLY", False)
    BINARY_DIVIDE = ("BINARY_DIVIDE", False)
    BINARY_MODULO = ("BINARY_MODULO", False)
    BINARY_AND = ("BINARY_AND", False)
    BINARY_OR = ("BINARY_OR", False)

    BUILD_LIST = ("BUILD_LIST", True)
    BINARY_SUBSCR = ("BINARY_SUBSCR", False)
    STORE_SUBSCR = ("STORE_SUBSCR", False)

    JUMP_ABSOLUTE = ("JUMP_ABSOLUTE", True)
    JUMP_IF_TRUE = ("JUMP_IF_TRUE", True)
    JUMP_IF_FALSE = ("JUMP_IF_FALSE", True)
    END = ("END", False)

    def __init__(self, keyword, takes_arg):
        self.keyword = keyword
        self.takes_arg = takes_arg

    @classmethod
    def lookup(cls, name: str):
        # None for anything outside the instruction set
        return _KEYWORDS.get(name.strip().upper())


_KEYWORDS = {op.keyword: op for op in Opcode}
# misspelling accepted by the original toolchain
_KEYWORDS["BINARY_SUBSTRACT"] = Opcode.BINARY_SUBTRACT


def is_opcode(text: str) -> bool:
    return Opcode.lookup(text) is not None


def takes_arg(op: str) -> bool:
    opcode = Opcode.lookup(op)
    return opcode is not None and opcode.takes_arg


@dataclass(frozen=True)
class Instruction:
    index: int   # logical index, the jump-target namespace
    op: str      # opcode keyword as written in the source
    arg: str = ""

    @property
    def opcode(self):
        return Opcode.lookup(self.op)


class BytecodeProgram:
    def __init__(self):
        self.instructions = []   # list of Instruction, in file order
        self.debug = []          # list of debug dicts (e.g. {"file": str, "line": int}) aligned with instructions
        self.positions = {}      # logical index -> physical position

    def __len__(self):
        return len(self.instructions)

    def has_index(self, index: int) -> bool:
        return index in self.positions

    def emit(self, instruction: Instruction, debug=None):
        # returns the physical position of the new instruction
        if instruction.index in self.positions:
            raise ValueError(f"duplicate index {instruction.index}")
        self.instructions.append(instruction)
        self.debug.append(debug)
        pc = len(self.instructions) - 1
        self.positions[instruction.index] = pc
        return pc

    def position_of(self, index: int):
        return self.positions.get(index)
