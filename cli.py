import sys
import traceback

import colorama

from errors import AshenError
from loader import load_file
from vm import VM


USAGE = """Usage:
  python cli.py run <file.bc>
  python cli.py dump <file.bc>
  (optional) --trace to print each instruction before it runs
  (optional) --max-steps=N to stop runaway loops
  (optional) --color to highlight errors
  (optional) --debug to show Python traceback"""


def report_error(e, debug: bool = False, color: bool = False):
    if debug:
        traceback.print_exc()
        return
    text = str(e)
    if color:
        colorama.just_fix_windows_console()
        text = f"{colorama.Fore.RED}{text}{colorama.Style.RESET_ALL}"
    print(text)


def cmd_dump(path, debug: bool = False, color: bool = False):
    try:
        program = load_file(path)
    except AshenError as e:
        report_error(e, debug=debug, color=color)
        sys.exit(1)

    print("INSTRUCTIONS:")
    for pc, ins in enumerate(program.instructions):
        dbg = program.debug[pc] or {}
        name = ins.opcode.keyword if ins.opcode is not None else f"{ins.op} (unsupported)"
        line = dbg.get("line", "?")
        print(f"  {pc:04d}  {ins.index:>5}  {name:<16} {ins.arg:<12} ; line {line}")


def cmd_run(path, debug: bool = False, color: bool = False, trace: bool = False, max_steps=None):
    try:
        program = load_file(path)
        vm = VM(program, trace=trace, max_steps=max_steps)
        vm.run()
    except AshenError as e:
        report_error(e, debug=debug, color=color)
        sys.exit(1)


def _take_flag(argv, flag: str) -> bool:
    if flag in argv:
        argv.remove(flag)
        return True
    return False


def _take_max_steps(argv):
    for item in list(argv):
        if item.startswith("--max-steps="):
            argv.remove(item)
            value = item.split("=", 1)[1]
            if not value.isdigit():
                print(f"--max-steps expects a non-negative integer, got {value!r}")
                sys.exit(1)
            return int(value)
    return None


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)

    debug = _take_flag(argv, "--debug")
    color = _take_flag(argv, "--color")
    trace = _take_flag(argv, "--trace")
    max_steps = _take_max_steps(argv)

    if len(argv) != 2:
        print(USAGE)
        sys.exit(1)

    cmd, path = argv

    if cmd == "run":
        cmd_run(path, debug=debug, color=color, trace=trace, max_steps=max_steps)
    elif cmd == "dump":
        if trace or max_steps is not None:
            print("Dump does not execute; --trace and --max-steps are not accepted.")
            sys.exit(1)
        cmd_dump(path, debug=debug, color=color)
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == "__main__":
    main()
