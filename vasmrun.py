#!/usr/bin/env python3
"""
vasmrun: run a vasm assembly program from the command line

Usage:
    python vasmrun.py <program.asm> [--profile default|puzzle|unbounded]
                                    [--max-instructions N] [--trace] [--memory]
                                    [--tokens] [--listing] [--verbose]

Examples:
    python vasmrun.py hello.asm
    python vasmrun.py level3.asm --profile puzzle --memory
    python vasmrun.py loop.asm --max-instructions 500 --trace -v
    python vasmrun.py loop.asm --listing                 # assembled program, no run

Exit status: 0 on success, 1 on parse or execution error, 2 on internal error.
"""

import argparse
import logging
import sys

from vasm import __version__, parse
from vasm.config import RUN_PROFILES
from vasm.emu import Machine
from vasm.errors import ExecutionError, ParseError
from vasm.lexer import tokenize
from vasm.log_setup import setup_logging


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...) or decimal."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    return int(value)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vasmrun",
        description="Run a vasm assembly program on the deterministic interpreter",
        epilog="Profiles: " + ", ".join(
            f"{name} ({p['description']})" for name, p in RUN_PROFILES.items()),
    )
    parser.add_argument("input", help="Assembly source file")
    parser.add_argument("--profile", default="default", choices=list(RUN_PROFILES.keys()),
                        help="Run profile (default: default)")
    parser.add_argument("--max-instructions", type=parse_int_arg, default=None,
                        help="Instruction budget, overrides the profile")
    parser.add_argument("--trace", action="store_true",
                        help="Print an instruction trace after the run")
    parser.add_argument("--memory", action="store_true",
                        help="Include non-zero memory slots in the final dump")
    parser.add_argument("--tokens", action="store_true",
                        help="Dump the token stream and exit (debug)")
    parser.add_argument("--listing", action="store_true",
                        help="Print the assembled program and exit")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log run details to stderr")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"vasmrun {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    setup_logging(console_level=logging.DEBUG if args.verbose else logging.WARNING,
                  log_file=args.log_file, force=True)
    log = logging.getLogger("vasm.cli")

    try:
        with open(args.input, "r", encoding="utf-8") as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    profile = RUN_PROFILES[args.profile]
    config = profile["config"].with_overrides(max_instructions=args.max_instructions,
                                              trace=args.trace or None)
    log.info("Input: %s, profile: %s, budget: %s",
             args.input, args.profile, config.max_instructions)

    machine = None
    try:
        # Token dump mode
        if args.tokens:
            for line in tokenize(source):
                if line.label or line.keyword:
                    ops = " ".join(repr(t) for t in line.operands)
                    print(f"L{line.line_num:<4} label={line.label} keyword={line.keyword} {ops}")
            return 0

        program = parse(source)

        if args.listing:
            print(program.listing())
            return 0

        machine = Machine(program, config)
        state = machine.run()
        if args.trace:
            print(machine.get_trace())
        print(state.display(memory=args.memory))
        return 0

    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        if e.line_text:
            print(f"    {e.line_text.strip()}", file=sys.stderr)
        return 1
    except ExecutionError as e:
        if args.trace and machine is not None:
            print(machine.get_trace())
        print(f"Execution error: {e}", file=sys.stderr)
        if e.state is not None:
            print(e.state.display(memory=args.memory), file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
