"""Command line interface for compiling proposal records.

* ``compile`` reads a proposal JSON file and prints the compiled wire payload,
  a plain-text preview or the product grid as CSV.
* ``frequency`` shows how free-text frequency labels canonicalise.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable

from proposal_tables.assembler import compile_document
from proposal_tables.config import AppEnvironment, ConfigError, configure_logging, get_logger
from proposal_tables.frequency import determine_frequency_group, normalize_frequency_key

logger = get_logger("cli")

EXIT_USAGE = 2


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable debug logging.",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m proposal_tables",
        description="Compile proposal product and service tables.",
    )
    _add_common_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser(
        "compile", help="Compile a proposal JSON record into table rows.",
    )
    compile_parser.add_argument("input", help="Path to the proposal JSON file ('-' for stdin).")
    compile_parser.add_argument(
        "--format",
        choices=("json", "text", "csv"),
        default="json",
        help="Output format (default: json).",
    )
    compile_parser.add_argument(
        "--output",
        help="Write the result to this path instead of stdout.",
    )
    _add_common_arguments(compile_parser)
    compile_parser.set_defaults(handler=handle_compile)

    frequency_parser = subparsers.add_parser(
        "frequency", help="Show the canonical key and cadence group of frequency labels.",
    )
    frequency_parser.add_argument("labels", nargs="+", help="Frequency labels to normalise.")
    frequency_parser.set_defaults(handler=handle_frequency)

    return parser


def _read_record(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    path = Path(source).expanduser()
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _render(record: Any, fmt: str) -> str:
    document = compile_document(record)
    if fmt == "text":
        from proposal_tables.preview import render_document

        return render_document(document)
    if fmt == "csv":
        from proposal_tables.export import product_grid_csv

        return product_grid_csv(document.products)
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"


def handle_compile(args: argparse.Namespace) -> int:
    try:
        record = _read_record(args.input)
    except OSError as exc:
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except json.JSONDecodeError as exc:
        print(f"error: {args.input} is not valid JSON: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if not isinstance(record, dict):
        print(f"error: {args.input} must contain a JSON object", file=sys.stderr)
        return EXIT_USAGE

    try:
        output = _render(record, args.format)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if args.output:
        Path(args.output).expanduser().write_text(output, encoding="utf-8")
        logger.info("Wrote %s output to %s", args.format, args.output)
    else:
        sys.stdout.write(output)
    return 0


def handle_frequency(args: argparse.Namespace) -> int:
    for label in args.labels:
        key = normalize_frequency_key(label)
        group = determine_frequency_group(key)
        print(f"{label!r}: key={key or '-'} group={group or '-'}")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    env = AppEnvironment.from_env()
    verbose = bool(getattr(args, "verbose", False)) or env.debug_enabled
    configure_logging(logging.DEBUG if verbose else logging.WARNING)

    handler = args.handler
    return handler(args)


if __name__ == "__main__":  # pragma: no cover - exercised via module execution
    raise SystemExit(main())
