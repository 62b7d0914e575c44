from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from vtlang.annotations import render_listing
from vtlang.codegen import lower
from vtlang.codegen_model import LoweringOptions
from vtlang.errors import CompileError
from vtlang.layout import compute_layouts
from vtlang.lexer import lex
from vtlang.parser import parse


logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "VTLANG_LOG_LEVEL"
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_COMPILE_ERROR = 2


class _UsageError(Exception):
    pass


class _ParserExit(Exception):
    def __init__(self, status: int):
        super().__init__(status)
        self.status = status


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise _UsageError(message)

    def exit(self, status: int = 0, message: str | None = None) -> None:
        if message:
            self._print_message(message, sys.stderr)
        raise _ParserExit(status)


def _build_arg_parser() -> _ArgumentParser:
    parser = _ArgumentParser(
        prog="vtlc",
        description="vtlang compiler: lower a source file to annotated LLVM IR.",
    )
    parser.add_argument("input", help="Input .vt source file")
    parser.add_argument("-o", dest="output", default="-", metavar="PATH", help="Output path (default: stdout)")
    return parser


def _configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def compile_source(source: str, source_path: str = "<memory>") -> str:
    tokens = lex(source, source_path=source_path)
    program = parse(tokens)
    classes = compute_layouts(program)
    options = LoweringOptions(
        module_name=source_path,
        source_path=source_path,
        source_text=source,
    )
    lowered = lower(program, classes, options)
    return render_listing(lowered, source, source_path)


def main(argv: list[str] | None = None) -> int:
    _configure_logging()
    parser = _build_arg_parser()

    try:
        args = parser.parse_args(argv)
    except _ParserExit as exit_request:
        return exit_request.status
    except _UsageError as error:
        parser.print_usage(sys.stderr)
        print(f"error: {error}", file=sys.stderr)
        return EXIT_USAGE

    try:
        input_path = Path(args.input)
        try:
            source = input_path.read_text(encoding="latin-1")
        except OSError as error:
            raise CompileError(f"Failed to open input file: {args.input}") from error

        listing = compile_source(source, source_path=args.input)
    except CompileError as error:
        logger.debug("Compilation failed", exc_info=True)
        print(f"error: {error}", file=sys.stderr)
        return EXIT_COMPILE_ERROR

    if args.output == "-":
        sys.stdout.write(listing)
    else:
        try:
            Path(args.output).write_text(listing, encoding="latin-1")
        except OSError as error:
            print(f"error: Failed to open output: {error}", file=sys.stderr)
            return EXIT_COMPILE_ERROR
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
