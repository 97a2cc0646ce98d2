#!/usr/bin/env python3
"""estree_shims/main.py — CLI entry-point for the estree-shims checkers.

Usage examples
--------------
    # Check ESTree JSON dumps (e.g. produced with espree + JSON.stringify)
    python -m estree_shims check app.js.json lib.js.json

    # ES2015 semantics, module code, JSON output
    python -m estree_shims check app.js.json --ecma-version 2015 \\
        --source-type module --format json

    # Use an ESLint-shaped JSON config for parserOptions and rule severities
    python -m estree_shims check app.js.json --config lint.json

    # List available checkers
    python -m estree_shims rules

    # Show version and exit
    python -m estree_shims --version

Exit codes
----------
    0   Success (no error-severity diagnostics).
    1   One or more diagnostics with severity ERROR were emitted.
    2   Infrastructure failure (missing file, bad JSON, bad config,
        unwritable output) or an internal error in a checker.

The module doubles as ``python -m estree_shims`` via the companion
``estree_shims/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import Optional, Sequence, TextIO

from estree_shims import __version__
from estree_shims.checkers import (
    CheckerRunner,
    CheckerRunResults,
    SuppressionManager,
    default_registry,
)
from estree_shims.config import (
    SOURCE_TYPES,
    LintConfig,
    ParserOptions,
    load_config,
    normalize_ecma_version,
)
from estree_shims.errors import ConfigError, DumpLoadError, InternalError

_log = logging.getLogger("estree_shims")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``estree_shims`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("estree_shims")
    root.setLevel(level)
    for handler in root.handlers:
        # repeated main() calls reuse the handler, pointed at the current stderr
        if getattr(handler, "_estree_shims", False):
            handler.setStream(sys.stderr)
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler._estree_shims = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_results(results: CheckerRunResults, fmt: str, stream: TextIO) -> None:
    """Write *results* to *stream* in the chosen format."""
    if fmt == "json":
        for diag in results.diagnostics:
            stream.write(diag.to_json_str() + "\n")
    elif fmt == "gcc":
        for diag in results.diagnostics:
            stream.write(diag.to_gcc_format() + "\n")
    else:
        for diag in results.diagnostics:
            stream.write(diag.to_gcc_format() + "\n")
        stream.write(results.summary() + "\n")


def _build_config(args: argparse.Namespace) -> LintConfig:
    """Config file first, then command-line overrides."""
    config = load_config(args.config) if args.config else LintConfig()
    opts: ParserOptions = config.parser_options
    if args.ecma_version is not None:
        opts.ecma_version = normalize_ecma_version(args.ecma_version)
    if args.source_type is not None:
        opts.source_type = args.source_type
    if args.implied_strict:
        opts.implied_strict = True
    for warning in config.validate():
        _log.warning("%s", warning)
    return config


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Run the checkers on one or more ESTree JSON dumps."""
    try:
        config = _build_config(args)
    except ConfigError as exc:
        _log.error("Configuration error: %s", exc)
        return EXIT_INFRA

    suppressions = SuppressionManager()
    for eid in args.suppress or []:
        suppressions.add_global_suppression(eid)

    runner = CheckerRunner(suppressions=suppressions, config=config)
    _log.info(
        "Checking %d file(s), ecmaVersion %d, sourceType %s",
        len(args.files), config.parser_options.ecma_version,
        config.parser_options.source_type,
    )
    try:
        results = runner.run_files(args.files, checkers=args.checkers)
    except DumpLoadError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except InternalError as exc:
        _log.error("Internal error: %s", exc)
        return EXIT_INFRA

    try:
        out = _open_output(args.output)
    except OSError as exc:
        _log.error("Cannot write output %s: %s", args.output, exc.strerror)
        return EXIT_INFRA
    try:
        _emit_results(results, args.format, out)
    finally:
        if out is not sys.stdout:
            out.close()

    return EXIT_ERROR if results.error_count > 0 else EXIT_OK


def cmd_rules(args: argparse.Namespace) -> int:
    """List registered checkers."""
    registry = default_registry()
    for name in registry.names:
        cls = registry.get_by_name(name)
        print(f"  {name:25s} {cls.description}")
        print(f"  {'':25s} IDs: {', '.join(sorted(cls.error_ids))}")
        print(f"  {'':25s} default severity: {cls.default_severity.value}")
        print()
    return EXIT_OK


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="estree-shims",
        description="Static checks over ESTree JSON syntax trees.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              estree-shims check app.js.json --ecma-version 6
              estree-shims check src/*.json --config lint.json -f json
              estree-shims rules
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Check ESTree JSON dump files.",
        description="Load ESTree JSON dumps and run the registered checkers.",
    )
    p_check.add_argument(
        "files",
        nargs="+",
        metavar="DUMP",
        help='ESTree JSON files ("-" reads stdin).',
    )
    p_check.add_argument(
        "-c", "--config",
        metavar="FILE",
        default=None,
        help="ESLint-shaped JSON config (parserOptions, rules).",
    )
    g = p_check.add_argument_group("language options")
    g.add_argument(
        "--ecma-version",
        type=int,
        default=None,
        metavar="N",
        help="ECMAScript edition or year (default: from config, else 5).",
    )
    g.add_argument(
        "--source-type",
        choices=SOURCE_TYPES,
        default=None,
        help="Script or module code (default: from config, else script).",
    )
    g.add_argument(
        "--implied-strict",
        action="store_true",
        help="Treat all code as strict mode.",
    )
    p_check.add_argument(
        "--checkers",
        nargs="*",
        default=None,
        metavar="NAME",
        help="Checker names to run (default: all enabled).",
    )
    p_check.add_argument(
        "--suppress",
        nargs="*",
        default=None,
        metavar="ID",
        help="Checker names or error ids to suppress globally.",
    )
    p_check.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p_check.add_argument(
        "-f", "--format",
        choices=["json", "gcc", "summary"],
        default="gcc",
        help="Output format (default: gcc).",
    )
    p_check.set_defaults(func=cmd_check)

    # --- rules -------------------------------------------------------------
    p_rules = subparsers.add_parser(
        "rules",
        help="List available checkers.",
    )
    p_rules.set_defaults(func=cmd_rules)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the estree-shims CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT


if __name__ == "__main__":
    raise SystemExit(main())
