"""
CLI entrypoint for clipfiles package.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .clipboard import deliver
from .core import DEFAULT_OUTPUT_FORMAT, ScanOptions, collect, resolve_root, validate_format
from .errors import ClipboardError, ConfigError, NotADirectory, PathError
from .ignore import DEFAULT_IGNORE_FILE, load_extra_patterns
from .log import DEFAULT_LOG_LEVEL, LOG_LEVELS, SUCCESS, setup_logging

log = logging.getLogger("clipfiles")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="clipfiles",
        description="Copy the text files under a directory to the clipboard, each under a path header.",
    )
    p.add_argument("path", type=Path, help="The path to the directory to traverse")
    p.add_argument(
        "-l",
        "--log-level",
        choices=list(LOG_LEVELS),
        default=DEFAULT_LOG_LEVEL,
        help="Log verbosity (default: warning)",
    )
    p.add_argument(
        "-o",
        "--output-format",
        default=DEFAULT_OUTPUT_FORMAT,
        help="Output format: markdown or plain (default: markdown)",
    )
    p.add_argument(
        "--ignore-file",
        default=DEFAULT_IGNORE_FILE,
        help=f"Name of the per-directory ignore file (default: {DEFAULT_IGNORE_FILE})",
    )
    p.add_argument(
        "--no-gitignore",
        dest="use_gitignore",
        action="store_false",
        help="Do not honour .gitignore files",
    )
    p.add_argument("--hidden", action="store_true", help="Include hidden files and directories")
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    p.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="Worker threads, capped at the CPU count; 1 keeps traversal order, 0 uses every CPU (default: 1)",
    )
    p.add_argument("--stdout", action="store_true", help="Print the output instead of copying it")
    p.add_argument(
        "--fallback-stdout",
        action="store_true",
        help="Print the output if the clipboard is unavailable",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ns = p.parse_args(argv)
    if ns.jobs < 0:
        p.error("--jobs must be 0 or a positive integer")
    return ns


def _fail(e: Exception) -> None:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        setup_logging(ns.log_level)

        try:
            validate_format(ns.output_format)
        except ConfigError as e:
            _fail(e)

        extra_spec = None
        if ns.config:
            try:
                extra_spec = load_extra_patterns(ns.config.resolve())
                log.info("Loaded extra patterns from %s", ns.config)
            except ConfigError as e:
                _fail(e)

        try:
            root = resolve_root(ns.path)
        except NotADirectory as e:
            log.warning("%s", e)
            return
        except PathError as e:
            _fail(e)

        options = ScanOptions(
            output_format=ns.output_format,
            ignore_file=ns.ignore_file,
            use_gitignore=ns.use_gitignore,
            include_hidden=ns.hidden,
            jobs=ns.jobs,
            extra_spec=extra_spec,
        )
        log.info("Scanning %s …", root)
        result = collect(root, options)

        if ns.stdout:
            sys.stdout.write(result.output)
            sys.stdout.flush()
            return

        try:
            target = deliver(result.output, fallback_stdout=ns.fallback_stdout)
        except ClipboardError as e:
            _fail(e)
        if target == "clipboard":
            log.log(SUCCESS, "File contents copied to clipboard!")

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
