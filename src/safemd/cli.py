#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/cli.py
"""Command-line interface for safemd.

Renders a markdown file (or standard input) to sanitized HTML.

Examples
--------
Render a file to standard output:
    $ safemd comment.md

Write to a file, with a lower depth limit:
    $ safemd comment.md --out comment.html --limit-depth 20

Disable extensions:
    $ safemd comment.md --disable math --disable emoticons

Read from standard input:
    $ cat comment.md | safemd -
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from safemd.api import render
from safemd.constants import (
    DEFAULT_LIMIT_DEPTH,
    DEFAULT_LOCALE,
    EXIT_INPUT_ERROR,
    EXIT_RENDER_ERROR,
    EXIT_SUCCESS,
    MAX_LIMIT_DEPTH,
    MIN_LIMIT_DEPTH,
)
from safemd.diagnostics import RenderResult
from safemd.exceptions import SafeMdError, ValidationError
from safemd.logging_utils import configure_logging
from safemd.options import RenderOptions
from safemd.tokenizers import default_registry
from safemd.utils.network import fetch_oembed

logger = logging.getLogger(__name__)


def _limit_depth(value: str) -> int:
    try:
        depth = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from e
    if not MIN_LIMIT_DEPTH <= depth <= MAX_LIMIT_DEPTH:
        raise argparse.ArgumentTypeError(f"must be between {MIN_LIMIT_DEPTH} and {MAX_LIMIT_DEPTH}")
    return depth


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the safemd command."""
    parser = argparse.ArgumentParser(
        prog="safemd",
        description="Render untrusted markdown to sanitized HTML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Tokenizers: " + ", ".join(default_registry().names()),
    )
    parser.add_argument("input", nargs="?", default="-", help="Markdown file to render, or '-' for stdin (default)")
    parser.add_argument("-o", "--out", help="Write HTML to this file instead of stdout")
    parser.add_argument(
        "--limit-depth",
        type=_limit_depth,
        default=DEFAULT_LIMIT_DEPTH,
        help=f"Maximum document nesting depth (default: {DEFAULT_LIMIT_DEPTH})",
    )
    parser.add_argument(
        "--disable",
        action="append",
        default=[],
        metavar="TOKENIZER",
        help="Disable a tokenizer or extension by name (repeatable)",
    )
    parser.add_argument("--locale", default=DEFAULT_LOCALE, help=f"Locale for quote marks (default: {DEFAULT_LOCALE})")
    parser.add_argument("--no-highlight", action="store_true", help="Do not syntax highlight code blocks")
    parser.add_argument("--no-quotes", action="store_true", help="Do not substitute quote marks")
    parser.add_argument(
        "--fetch-embeds", action="store_true", help="Fetch embed titles from provider oEmbed endpoints (network)"
    )
    parser.add_argument("--json", action="store_true", help="Print {contents, messages} as JSON")
    parser.add_argument("--quiet", "-q", action="store_true", help="Do not print diagnostics")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log output to this file")
    parser.add_argument("--trace", action="store_true", help="Verbose logging with timestamps and timings")
    return parser


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _build_options(parsed_args: argparse.Namespace) -> RenderOptions:
    changes: dict = {
        "limit_depth": parsed_args.limit_depth,
        "disable_tokenizers": tuple(parsed_args.disable),
        "locale": parsed_args.locale,
        "highlight": not parsed_args.no_highlight,
    }
    if parsed_args.fetch_embeds:
        changes["embed_fetcher"] = fetch_oembed
    if parsed_args.no_quotes:
        changes["quote_filter"] = None
    try:
        return RenderOptions(**changes)
    except ValueError as e:
        raise ValidationError(f"Invalid options: {e}", original_error=e) from e


def print_diagnostics(result: RenderResult, console: Optional[Console] = None) -> None:
    """Print render diagnostics as a table on stderr."""
    if not result.messages:
        return
    console = console or Console(stderr=True)
    table = Table(title="Diagnostics")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Node", style="magenta")
    table.add_column("Message")
    for message in result.messages:
        table.add_row(message.kind, message.node_type or "", message.message)
    console.print(table)


def main(args: Optional[list[str]] = None) -> int:
    """Run the safemd command.

    Returns
    -------
    int
        0 on success, 1 when rendering fails, 2 on input or option errors

    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    configure_logging(parsed_args.log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    try:
        text = _read_input(parsed_args.input)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        options = _build_options(parsed_args)
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        result = render(text, options)
    except SafeMdError as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_RENDER_ERROR

    if parsed_args.json:
        output = json.dumps(
            {"contents": result.contents, "messages": [m.to_dict() for m in result.messages]},
            ensure_ascii=False,
            indent=2,
        )
    else:
        output = result.contents

    if parsed_args.out:
        try:
            Path(parsed_args.out).write_text(output + "\n", encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR
    else:
        print(output)

    if not parsed_args.quiet and not parsed_args.json:
        print_diagnostics(result)

    return EXIT_SUCCESS
