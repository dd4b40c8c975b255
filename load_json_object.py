#!/usr/bin/env python3
"""
load_json_object.py — command-line entry point.
────────────────────────────────────────────────
Renders one "Load JSON Object" script fragment and writes it to stdout, a
file, or into an HTML template:

    python load_json_object.py --source sql \\
        --query "select * from dept where deptno = :P1_DEPTNO" \\
        --bind P1_DEPTNO=10 --database app.db --variable myApp.dept

    python load_json_object.py --source static \\
        --static-json '{"theme":"dark"}' --variable myApp.settings \\
        --html base_index.html --output index.html

Sources (--source):
  sql       Query rows as an array of objects           (--query)
  jsonsql   Query returning one JSON document           (--json-query)
  plsql     Python block writing through `json`         (--code / --code-file)
  static    Literal JSON text                           (--static-json / --static-file)

Environment (a .env file next to this script is loaded first):
  LJO_DATABASE     SQLite database path. Default: :memory:
  LJO_CHUNK_SIZE   Maximum size of one payload write. Default: 4000
  LJO_LOG_LEVEL    Logging level. Default: WARNING

Exit Codes
──────────
  0     Fragment written.
  1     Injection failed (configuration, query, contract or block error),
        or the HTML placeholder was not found.
  2     Invalid command-line usage.
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

from colorama import Fore, Style, just_fix_windows_console
from dotenv import load_dotenv

from injection_errors import ConfigurationError, InjectionError
from script_emitter import DEFAULT_CHUNK_SIZE
from source_adapters import InjectionRequest, JsonObjectLoader, SourceKind, SqliteQueryExecutor

__version__ = "0.1.0"

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

DEFAULT_PLACEHOLDER = "<!-- LOAD_JSON_OBJECT -->"

_TAG = f"{Fore.CYAN}{Style.BRIGHT}[load-json-object]{Style.RESET_ALL}"

logger = logging.getLogger(__name__)


def _chunk_size(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="load-json-object",
        description=(
            "Render a <script> fragment that merges a JSON object, built from "
            "SQL, a code block or static text, into a global page variable."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--source",
        required=True,
        choices=[kind.value for kind in SourceKind],
        help="Where the JSON object comes from.",
    )
    parser.add_argument(
        "--variable",
        required=True,
        metavar="PATH",
        help="Dotted JavaScript variable to merge into, e.g. myApp.data.",
    )
    parser.add_argument("--query", help="SQL query for --source sql.")
    parser.add_argument("--json-query", help="SQL query returning JSON for --source jsonsql.")

    code = parser.add_mutually_exclusive_group()
    code.add_argument("--code", help="Python block for --source plsql.")
    code.add_argument("--code-file", metavar="FILE", help="File holding the Python block.")

    static = parser.add_mutually_exclusive_group()
    static.add_argument("--static-json", help="JSON text for --source static.")
    static.add_argument("--static-file", metavar="FILE", help="File holding the JSON text.")

    parser.add_argument(
        "--bind",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Page-context value for :NAME binds. Repeatable.",
    )
    parser.add_argument(
        "--database",
        default=os.getenv("LJO_DATABASE", ":memory:"),
        metavar="PATH",
        help="SQLite database for the query sources. Default: $LJO_DATABASE or :memory:",
    )
    parser.add_argument(
        "--html",
        metavar="FILE",
        help="HTML template to splice the fragment into (at --placeholder).",
    )
    parser.add_argument(
        "--placeholder",
        default=DEFAULT_PLACEHOLDER,
        help=f"Marker replaced by the fragment in --html. Default: {DEFAULT_PLACEHOLDER!r}",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        help="Write the result here instead of stdout.",
    )
    parser.add_argument(
        "--chunk-size",
        type=_chunk_size,
        # A string default goes through _chunk_size too, so a bad
        # LJO_CHUNK_SIZE is reported as a usage error.
        default=os.getenv("LJO_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)),
        help=f"Maximum size of one payload write. Default: {DEFAULT_CHUNK_SIZE}",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LJO_LOG_LEVEL", "WARNING").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the Python logging level. Default: WARNING.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"load-json-object {__version__}",
    )
    return parser


def configure_logging(level_str: str) -> None:
    """Set up structured logging to stderr."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level_str.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_binds(pairs: List[str]) -> Dict[str, str]:
    binds: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ConfigurationError(f"--bind expects NAME=VALUE, got {pair!r}")
        binds[name.strip()] = value
    return binds


def _read_text(path: Optional[str]) -> Optional[str]:
    if path is None:
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc


def build_request(args: argparse.Namespace) -> InjectionRequest:
    """Translate parsed arguments into an InjectionRequest."""
    return InjectionRequest(
        source=SourceKind.parse(args.source),
        target_path=args.variable,
        query=args.query,
        json_query=args.json_query,
        procedural_block=args.code if args.code is not None else _read_text(args.code_file),
        static_text=args.static_json if args.static_json is not None else _read_text(args.static_file),
        binds=parse_binds(args.bind),
    )


def splice_into_html(template: str, fragment: str, placeholder: str) -> Optional[str]:
    """Replace *placeholder* in *template*; None when it is missing."""
    if placeholder not in template:
        return None
    return template.replace(placeholder, fragment)


def _fail(message: str) -> int:
    print(f"{_TAG} {Fore.RED}{message}{Style.RESET_ALL}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point.

    Returns the exit code to pass to the OS.
    """
    load_dotenv(os.path.join(_PROJECT_ROOT, ".env"))
    just_fix_windows_console()

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    logger.info("load-json-object %s starting", __version__)
    logger.info("Config: source=%s variable=%s database=%s chunk_size=%d",
                args.source, args.variable, args.database, args.chunk_size)

    try:
        request = build_request(args)
        with SqliteQueryExecutor(args.database) as executor:
            loader = JsonObjectLoader(executor=executor, chunk_size=args.chunk_size)
            fragment = loader.render(request)
    except InjectionError as exc:
        return _fail(f"{type(exc).__name__}: {exc}")

    result = fragment
    if args.html:
        try:
            template = _read_text(args.html)
        except ConfigurationError as exc:
            return _fail(str(exc))
        result = splice_into_html(template, fragment, args.placeholder)
        if result is None:
            return _fail(f"Placeholder {args.placeholder!r} not found in {args.html}")

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(result)
        except OSError as exc:
            return _fail(f"Cannot write {args.output}: {exc}")
        print(f"{_TAG} {Fore.GREEN}Wrote {args.output}{Style.RESET_ALL}", file=sys.stderr)
    else:
        sys.stdout.write(result)

    return 0


if __name__ == "__main__":
    sys.exit(main())
