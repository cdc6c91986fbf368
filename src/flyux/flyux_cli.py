"""
FLYUX CLI Entrypoint.

This module provides the command-line interface for running FLYUX scripts and
inspecting how the front end sees them.

Features:
    - Run the `main` function of a `.fx` file or of inline source (`-s`).
    - Dump the raw token stream (`--token`) or the parsed tree as JSON (`--ast`).
    - Syntax-only check (`--check`).
    - Debug logging of function activations and loops (`--verbose`).

Example usage:
    flyux hello.fx
    flyux -s "F>main(){ print(1 + 2) }"
    flyux --token hello.fx
    flyux --ast hello.fx

Error reporting:
    A file that cannot be read is reported as `Failed to read file: ...` and the
    command returns normally. Syntax and runtime errors are fatal: they are printed
    to stderr as `error: ...` and the process exits with status 1.
"""

import argparse
import json
import logging
import sys

from flyux.flyux_constants import VERSION
from flyux.flyux_interpreter import FlyuxRuntimeError, Interpreter
from flyux.flyux_lexer import tokenize
from flyux.flyux_parser import Parser


def read_source(path: str) -> str | None:
    """Read a script file, or report the failure and return None."""
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Failed to read file: {e}", file=sys.stderr)
        return None


def run_flyux(source: str, is_string: bool = False) -> None:
    """
    Run a FLYUX program: lex, parse, build the function table and call `main`.

    Args:
        source (str): Path to a `.fx` file, or raw source when `is_string` is True.
        is_string (bool): Treat `source` as program text instead of a path.

    Raises:
        ValueError: If `source` is a path that does not end with `.fx`.
        SyntaxError: On malformed source.
        FlyuxRuntimeError: On any fatal runtime error.
    """
    if not is_string:
        if not source.endswith(".fx"):
            raise ValueError("Only .fx files are supported.")
        text = read_source(source)
        if text is None:
            return
        source = text

    functions = Parser(tokenize(source)).parse()
    Interpreter(functions).run()


def dump_tokens(path: str) -> None:
    source = read_source(path)
    if source is None:
        return
    for tok in tokenize(source):
        print(repr(tok))


def dump_ast(path: str) -> None:
    source = read_source(path)
    if source is None:
        return
    functions = Parser(tokenize(source)).parse()
    print(json.dumps([f.to_dict() for f in functions], indent=2, ensure_ascii=False))


def syntax_check(path: str) -> None:
    source = read_source(path)
    if source is None:
        return
    Parser(tokenize(source)).parse()
    print("Syntax OK.")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flyux", description="FLYUX - Ultra minimal language runtime"
    )
    parser.add_argument("source", nargs="?", help="Script file (.fx) or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal program text"
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"FLYUX {VERSION}"
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--token", metavar="FILE", help="Print token stream")
    group.add_argument("--ast", metavar="FILE", help="Print abstract syntax tree")
    group.add_argument("--check", metavar="FILE", help="Check syntax only")
    parser.add_argument(
        "--verbose", action="store_true", help="Log function calls and loops to stderr"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the FLYUX CLI.

    Prints help when called without arguments; otherwise dispatches to one of the
    dump commands or runs the given program. Fatal errors exit with status 1.
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if args.token:
            dump_tokens(args.token)
        elif args.ast:
            dump_ast(args.ast)
        elif args.check:
            syntax_check(args.check)
        elif args.source is not None:
            run_flyux(args.source, is_string=args.string)
        else:
            parser.print_help()
    except (SyntaxError, FlyuxRuntimeError, RecursionError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
