#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import argparse
import shlex

from astgen_backend import Backend
from astgen_context import GenerationContext, LogLevel, TargetPaths
from astgen_default_schema import default_schema
from astgen_driver import GeneratorDriver
from astgen_errors import GeneratorError
from astgen_logger import log_error, log_generator_error, log_info
from astgen_schema import Schema, validate_schema
from astgen_schema_loader import load_schema
from astgen_schema_printer import format_schema


def build_generation_context(args: argparse.Namespace) -> GenerationContext:
    """Build a GenerationContext from command-line arguments."""
    verbosity = getattr(args, 'verbosity', 0)
    if verbosity >= 3:
        log_level = LogLevel.DEBUG
    elif verbosity >= 1:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.ERROR

    context = GenerationContext(
        log_rich_format=getattr(args, 'log', False),
        log_level=log_level,
        run_formatter=not getattr(args, 'no_format', False),
    )
    formatter = getattr(args, 'formatter', None)
    if formatter:
        context.formatter = shlex.split(formatter)
    return context


def load_input_schema(context: GenerationContext, args: argparse.Namespace) -> Schema:
    if getattr(args, 'schema', None):
        log_info(context, f"Schema: {args.schema}")
        return load_schema(args.schema)
    log_info(context, "Schema: <built-in>")
    return default_schema()


def cmd_gen(args: argparse.Namespace) -> int:
    """Generate one formatted Rust file per category into the output directory."""
    context = build_generation_context(args)
    try:
        schema = load_input_schema(context, args)
        result = GeneratorDriver(context).run(schema, args.out_dir)
    except GeneratorError as e:
        log_generator_error(context, e)
        return 1
    for path in result.written:
        print(path)
    return 0


def cmd_print(args: argparse.Namespace) -> int:
    """Print the unformatted source of one category to stdout."""
    context = build_generation_context(args)
    try:
        schema = load_input_schema(context, args)
        validate_schema(schema)
        if schema.category(args.category) is None:
            log_error(context, f"error: [CLI-0010] no category named '{args.category}'")
            return 1
        text = Backend(schema=schema, paths=TargetPaths(), context=context).generate_category(args.category)
    except GeneratorError as e:
        log_generator_error(context, e)
        return 1
    print(text, end="")
    return 0


def cmd_schema(args: argparse.Namespace) -> int:
    """Dump the schema with its lifetime classification."""
    context = build_generation_context(args)
    try:
        schema = load_input_schema(context, args)
        validate_schema(schema)
    except GeneratorError as e:
        log_generator_error(context, e)
        return 1
    print(format_schema(schema))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    context = build_generation_context(args)
    try:
        validate_schema(load_input_schema(context, args))
    except GeneratorError as e:
        log_generator_error(context, e)
        return 1
    log_info(context, "Schema OK")
    return 0


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="astgen", description="AST source generator")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    parser.add_argument("-v", "--verbose",
                        action='count',
                        default=0,
                        dest='verbosity',
                        help="Increase verbosity: -v=INFO, -vvv=DEBUG")
    parser.add_argument("-l", "--log",
                        action='store_true',
                        default=False,
                        help="Enable rich log formatting (timestamps, levels)")
    parser.add_argument("-s", "--schema",
                        help="JSON schema file (default: built-in schema)")

    ###########################
    # gen command
    ###########################
    p_gen = subparsers.add_parser("gen", help="Generate and format Rust sources", aliases=["generate"])
    p_gen.add_argument("--out-dir", "-o", default="src/compiler/ast",
                       help="Output directory (default: src/compiler/ast)")
    p_gen.add_argument("--no-format", action="store_true",
                       help="Do not run the formatter on generated files")
    p_gen.add_argument("--formatter",
                       help="Formatter command (default: rustfmt)")
    p_gen.set_defaults(func=cmd_gen)

    ###########################
    # print command
    ###########################
    p_print = subparsers.add_parser("print", help="Print one category's source to stdout")
    p_print.add_argument("category", help="Category, union or module name (e.g. 'Expr')")
    p_print.set_defaults(func=cmd_print)

    ###########################
    # schema command
    ###########################
    p_schema = subparsers.add_parser("schema", help="Dump the schema")
    p_schema.set_defaults(func=cmd_schema)

    ###########################
    # check command
    ###########################
    p_check = subparsers.add_parser("check", help="Validate the schema only")
    p_check.set_defaults(func=cmd_check)

    args = parser.parse_args(argv)

    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
