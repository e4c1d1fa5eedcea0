import sys

from bytecode import Opcode
from errors import AshenRuntimeError
from values import (
    COMPARE_OPS,
    FunctionRef,
    as_bool,
    as_int,
    compare,
    is_text,
    kind_of,
    parse_literal,
    render,
    trunc_div,
    trunc_mod,
)


ARITHMETIC = (
    Opcode.BINARY_ADD,
    Opcode.BINARY_SUBTRACT,
    Opcode.BINARY_MULTIPLY,
    Opcode.BINARY_DIVIDE,
    Opcode.BINARY_MODULO,
)

JUMPS = (Opcode.JUMP_ABSOLUTE, Opcode.JUMP_IF_TRUE, Opcode.JUMP_IF_FALSE)


class VM:
    def __init__(self, bytecode_program, out=None, trace: bool = False, max_steps: int | None = None):
        self.instructions = bytecode_program.instructions
        self.debug = getattr(bytecode_program, "debug", [None] * len(self.instructions))
        self.positions = dict(bytecode_program.positions)

        self.out = out              # None means sys.stdout at write time
        self.trace_enabled = trace
        self.max_steps = max_steps  # set to an int to guard against infinite loops

        self.pc = 0                 # physical position of the next instruction
        self.stack = []             # operand stack
        self.env = {}               # the single flat variable environment
        self.halted = False
        self.steps = 0

        # decoded (opcode, operand) per position, filled on first execution
        self._decoded = [None] * len(self.instructions)

    def _write(self, text: str):
        print(text, file=self.out if self.out is not None else sys.stdout)

    def _debug_at_pc(self, pc: int):
        if pc < 0 or pc >= len(self.debug):
            return None
        return self.debug[pc]

    def locate(self, error: AshenRuntimeError):
        if error.pc is not None or self.pc >= len(self.instructions):
            return error
        dbg = self._debug_at_pc(self.pc) or {}
        error.pc = self.pc
        error.index = self.instructions[self.pc].index
        error.filename = dbg.get("file")
        error.line = dbg.get("line")
        return error

    def push(self, value):
        self.stack.append(value)

    def pop(self):
        if not self.stack:
            raise AshenRuntimeError("stack underflow")
        return self.stack.pop()

    def pop_many(self, count: int):
        # values come back in push order
        if count > len(self.stack):
            raise AshenRuntimeError("stack underflow")
        items = []
        for _ in range(count):
            items.append(self.stack.pop())
        items.reverse()
        return items

    def jump_to(self, target: int):
        pc = self.positions.get(target)
        if pc is None:
            raise AshenRuntimeError(f"unknown jump target {target}")
        self.pc = pc

    def decode(self, pc: int):
        cached = self._decoded[pc]
        if cached is not None:
            return cached

        ins = self.instructions[pc]
        opcode = ins.opcode
        if opcode is None:
            raise AshenRuntimeError(f"unsupported opcode: {ins.op}")

        arg = ins.arg.strip()
        operand = None
        if opcode == Opcode.LOAD_CONST:
            operand = parse_literal(arg)
        elif opcode in (Opcode.LOAD_FAST, Opcode.STORE_FAST, Opcode.LOAD_GLOBAL):
            if not arg:
                raise AshenRuntimeError(f"{opcode.keyword} requires a name")
            operand = arg
        elif opcode in (Opcode.CALL_FUNCTION, Opcode.BUILD_LIST):
            operand = self._decode_count(opcode, arg)
        elif opcode == Opcode.COMPARE_OP:
            if arg not in COMPARE_OPS:
                raise AshenRuntimeError(f"unsupported comparison operator: {arg}")
            operand = arg
        elif opcode in JUMPS:
            try:
                operand = int(arg)
            except ValueError:
                raise AshenRuntimeError(f"invalid jump target for {opcode.keyword}: {arg!r}")

        decoded = (opcode, operand)
        self._decoded[pc] = decoded
        return decoded

    def _decode_count(self, opcode, arg: str) -> int:
        try:
            count = int(arg)
        except ValueError:
            raise AshenRuntimeError(f"invalid argument count for {opcode.keyword}: {arg!r}")
        if count < 0:
            raise AshenRuntimeError(f"invalid argument count for {opcode.keyword}: {count}")
        return count

    def call_builtin(self, func, args):
        if func.name.lower() == "print":
            self._write(" ".join(render(a) for a in args))
            return
        raise AshenRuntimeError(f"unsupported function: {func.name}")

    def arithmetic(self, opcode, a, b):
        if opcode == Opcode.BINARY_ADD and is_text(a) and is_text(b):
            return str(a) + str(b)

        x = as_int(a)
        y = as_int(b)
        if opcode == Opcode.BINARY_ADD:
            return x + y
        if opcode == Opcode.BINARY_SUBTRACT:
            return x - y
        if opcode == Opcode.BINARY_MULTIPLY:
            return x * y
        if opcode == Opcode.BINARY_DIVIDE:
            if y == 0:
                raise AshenRuntimeError("division by zero")
            return trunc_div(x, y)
        if y == 0:
            raise AshenRuntimeError("modulo by zero")
        return trunc_mod(x, y)

    def _list_index(self, target, index) -> int:
        if not isinstance(target, list):
            raise AshenRuntimeError(f"expected list, got {kind_of(target)}")
        try:
            i = as_int(index)
        except AshenRuntimeError:
            raise AshenRuntimeError(f"invalid index: {kind_of(index)}")
        if i < 0 or i >= len(target):
            raise AshenRuntimeError(f"invalid index: {i} (list has {len(target)} elements)")
        return i

    def step(self) -> bool:
        if self.halted or self.pc >= len(self.instructions):
            self.halted = True
            return True

        opcode, operand = self.decode(self.pc)

        if self.trace_enabled:
            ins = self.instructions[self.pc]
            arg = f" {ins.arg}" if ins.arg else ""
            self._write(f"TRACE pc={self.pc:04d} index={ins.index} {opcode.keyword}{arg} stack={len(self.stack)}")

        if opcode == Opcode.LOAD_CONST:
            self.push(operand)
            self.pc += 1
            return False

        if opcode == Opcode.LOAD_FAST:
            if operand not in self.env:
                raise AshenRuntimeError(f"undefined variable: {operand}")
            self.push(self.env[operand])
            self.pc += 1
            return False

        if opcode == Opcode.STORE_FAST:
            self.env[operand] = self.pop()
            self.pc += 1
            return False

        if opcode == Opcode.LOAD_GLOBAL:
            self.push(FunctionRef(operand))
            self.pc += 1
            return False

        if opcode == Opcode.CALL_FUNCTION:
            args = self.pop_many(operand)
            func = self.pop()
            if not isinstance(func, FunctionRef):
                raise AshenRuntimeError(f"expected function reference, got {kind_of(func)}")
            self.call_builtin(func, args)
            self.pc += 1
            return False

        if opcode == Opcode.COMPARE_OP:
            right = self.pop()
            left = self.pop()
            self.push(compare(operand, left, right))
            self.pc += 1
            return False

        if opcode in ARITHMETIC:
            b = self.pop()
            a = self.pop()
            self.push(self.arithmetic(opcode, a, b))
            self.pc += 1
            return False

        if opcode in (Opcode.BINARY_AND, Opcode.BINARY_OR):
            b = as_bool(self.pop())
            a = as_bool(self.pop())
            if opcode == Opcode.BINARY_AND:
                self.push(a and b)
            else:
                self.push(a or b)
            self.pc += 1
            return False

        if opcode == Opcode.BUILD_LIST:
            self.push(self.pop_many(operand))
            self.pc += 1
            return False

        if opcode == Opcode.BINARY_SUBSCR:
            index = self.pop()
            target = self.pop()
            self.push(target[self._list_index(target, index)])
            self.pc += 1
            return False

        if opcode == Opcode.STORE_SUBSCR:
            value = self.pop()
            target = self.pop()
            index = self.pop()
            target[self._list_index(target, index)] = value
            self.pc += 1
            return False

        if opcode == Opcode.JUMP_ABSOLUTE:
            self.jump_to(operand)
            return False

        if opcode in (Opcode.JUMP_IF_TRUE, Opcode.JUMP_IF_FALSE):
            condition = as_bool(self.pop())
            if condition == (opcode == Opcode.JUMP_IF_TRUE):
                self.jump_to(operand)
            else:
                self.pc += 1
            return False

        if opcode == Opcode.END:
            self.halted = True
            return True

        raise AshenRuntimeError(f"unsupported opcode: {opcode.keyword}")

    def run(self):
        try:
            while not self.halted and self.pc < len(self.instructions):
                if self.max_steps is not None:
                    self.steps += 1
                    if self.steps > self.max_steps:
                        raise AshenRuntimeError("step limit exceeded (possible infinite loop)")

                halted = self.step()
                if halted:
                    break
        except AshenRuntimeError as e:
            self.locate(e)
            raise
        finally:
            self.halted = True
