"""Runtime values.

Values are plain Python objects: None, int, float, str, bool and list.
Two extra kinds complete the set: Char (a one-character str) and
FunctionRef (the symbolic name of a builtin). Lists are shared by
reference, so STORE_SUBSCR through one alias is seen by every other.
"""

import math
import re

from errors import AshenRuntimeError


class Char(str):
    def __new__(cls, text):
        if len(text) != 1:
            raise AshenRuntimeError(f"char literal must be exactly one character: {text!r}")
        return super().__new__(cls, text)


class FunctionRef:
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, FunctionRef) and other.name == self.name

    def __hash__(self):
        return hash(("func", self.name))

    def __repr__(self):
        return f"FunctionRef({self.name!r})"


# ASCII digits only; no underscores, no Unicode digits
INT_RE = re.compile(r"[+-]?[0-9]+")
FLOAT_RE = re.compile(r"[+-]?([0-9]+\.[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")

STRING_QUOTES = (('"', '"'), ("“", "”"))


def parse_literal(text: str):
    s = text.strip()
    if s == "":
        raise AshenRuntimeError("LOAD_CONST requires an argument")

    for open_q, close_q in STRING_QUOTES:
        if len(s) >= 2 and s.startswith(open_q) and s.endswith(close_q):
            return s[1:-1]

    if len(s) == 3 and s[0] == "'" and s[-1] == "'":
        return Char(s[1])

    lowered = s.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if "." in s:
        if not FLOAT_RE.fullmatch(s):
            raise AshenRuntimeError(f"invalid float literal: {s}")
        return float(s)

    if not INT_RE.fullmatch(s):
        raise AshenRuntimeError(f"invalid literal: {s}")
    return int(s)


def kind_of(value) -> str:
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, Char):
        return "char"
    if isinstance(value, str):
        return "str"
    if isinstance(value, list):
        return "list"
    if isinstance(value, FunctionRef):
        return "function"
    return type(value).__name__


def is_numeric(value) -> bool:
    return isinstance(value, (int, float))


def is_text(value) -> bool:
    return isinstance(value, str)


def as_int(value) -> int:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise AshenRuntimeError(f"cannot convert {value!r} to int")
        return int(value)
    raise AshenRuntimeError(f"{kind_of(value)} not convertible to integer")


def as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    raise AshenRuntimeError(f"{kind_of(value)} not convertible to boolean")


def trunc_div(a: int, b: int) -> int:
    # rounds toward zero, unlike //
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q


def trunc_mod(a: int, b: int) -> int:
    return a - b * trunc_div(a, b)


COMPARE_OPS = ("<", "<=", ">", ">=", "==", "!=")


def compare(op: str, left, right) -> bool:
    if op not in COMPARE_OPS:
        raise AshenRuntimeError(f"unsupported comparison operator: {op}")

    if is_numeric(left) and is_numeric(right):
        # bool is an int subclass, so True compares as 1
        a, b = left, right
    elif is_text(left) and is_text(right):
        a, b = str(left), str(right)
    else:
        raise AshenRuntimeError(f"unsupported comparison: {kind_of(left)} {op} {kind_of(right)}")

    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    if op == "==":
        return a == b
    return a != b


def render(value) -> str:
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(render(item) for item in value) + "]"
    if isinstance(value, FunctionRef):
        return f"<func {value.name}>"
    raise AshenRuntimeError(f"cannot render {kind_of(value)}")
