"""
Core logic for clipfiles package.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import pathspec

from .errors import (
    ConfigError,
    NotADirectory,
    PathError,
    ReadError,
    TraversalEntryError,
)
from .ignore import (
    DEFAULT_IGNORE_FILE,
    GITIGNORE_NAME,
    IgnoreRuleSet,
    base_rules,
    load_ignore_file,
)

log = logging.getLogger(__name__)

# Options
DEFAULT_OUTPUT_FORMAT = "markdown"


@dataclass(frozen=True)
class ScanOptions:
    output_format: str = DEFAULT_OUTPUT_FORMAT
    ignore_file: str = DEFAULT_IGNORE_FILE
    use_gitignore: bool = True
    include_hidden: bool = False
    jobs: int = 1  # 1 = sequential, 0 = one worker per CPU, N = min(N, CPUs)
    extra_spec: Optional["pathspec.PathSpec"] = None


@dataclass(frozen=True)
class FileEntry:
    path: Path
    relative: str
    is_dir: bool = False


@dataclass(frozen=True)
class ScanResult:
    output: str
    included: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


# Classifier
_TEXT_TYPES: Dict[str, str] = {
    ".rs": "text/x-rust",
    ".go": "text/x-go",
    ".ts": "text/x-typescript",
    ".tsx": "text/x-typescript",
    ".js": "text/javascript",
    ".jsx": "text/jsx",
    ".toml": "text/x-toml",
    ".yml": "text/x-yaml",
    ".yaml": "text/x-yaml",
    ".md": "text/markdown",
    ".scss": "text/x-scss",
    ".rb": "text/x-ruby",
    ".sh": "text/x-sh",
    ".ini": "text/plain",
    ".cfg": "text/plain",
    ".rst": "text/x-rst",
}


def _build_mime_table() -> mimetypes.MimeTypes:
    # Built-in defaults only; the host's mime.types files are not read.
    table = mimetypes.MimeTypes()
    for ext, mime in _TEXT_TYPES.items():
        table.add_type(mime, ext)
    return table


_MIME_TABLE = _build_mime_table()


def is_text(path: Path) -> bool:
    """Return True when *path*'s name maps to a ``text/*`` media type."""
    mime, encoding = _MIME_TABLE.guess_type(Path(path).name)
    if encoding is not None:
        # compressed, e.g. notes.txt.gz
        return False
    return mime is not None and mime.split("/", 1)[0] == "text"


# Reader
def read_text(path: Path) -> str:
    """Return the full UTF-8 contents of *path*, byte-for-byte."""
    try:
        return Path(path).read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(path, e) from e


# Formatter
OUTPUT_FORMATS: Dict[str, str] = {
    "markdown": "### {path}\n```\n{contents}\n```\n",
    "plain": "{path}\n{contents}\n",
}


def validate_format(style: str) -> str:
    if style not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unsupported output format '{style}' "
            f"(choose from: {', '.join(OUTPUT_FORMATS)})"
        )
    return style


def render(relative: str, contents: str, style: str) -> str:
    template = OUTPUT_FORMATS[validate_format(style)]
    return template.format(path=relative, contents=contents)


# Walker
def resolve_root(root: Path) -> Path:
    """Resolve *root* to an absolute directory path or raise."""
    try:
        resolved = Path(root).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise PathError(f"Could not resolve root path '{root}': {e}")
    try:
        is_dir = resolved.is_dir()
    except OSError as e:
        raise PathError(f"Could not access root path '{resolved}': {e}")
    if not is_dir:
        raise NotADirectory(f"Root path '{resolved}' is not a directory")
    return resolved


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _dir_rules(
    directory: Path,
    relative: str,
    rules: IgnoreRuleSet,
    options: ScanOptions,
    logger: logging.Logger,
) -> IgnoreRuleSet:
    if options.use_gitignore:
        rules = rules.extend(load_ignore_file(directory / GITIGNORE_NAME, relative, logger))
    if options.ignore_file:
        rules = rules.extend(load_ignore_file(directory / options.ignore_file, relative, logger))
    return rules


def _list_dir(directory: Path) -> List[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise TraversalEntryError(f"Could not list directory '{directory}': {e}") from e


def _entry_kind(entry: os.DirEntry) -> Tuple[bool, bool, bool]:
    """(is_symlink, is_dir, is_file) for *entry*, without following links."""
    try:
        return (
            entry.is_symlink(),
            entry.is_dir(follow_symlinks=False),
            entry.is_file(follow_symlinks=False),
        )
    except OSError as e:
        raise TraversalEntryError(f"Could not inspect '{entry.path}': {e}") from e


def _walk_dir(
    directory: Path,
    rel_dir: str,
    rules: IgnoreRuleSet,
    options: ScanOptions,
    logger: logging.Logger,
) -> Iterator[FileEntry]:
    rules = _dir_rules(directory, rel_dir, rules, options, logger)
    try:
        entries = _list_dir(directory)
    except TraversalEntryError as e:
        logger.warning("%s", e)
        return

    for entry in entries:
        rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
        if not options.include_hidden and _is_hidden(entry.name):
            logger.debug("Skipping hidden %s", rel)
            continue
        try:
            is_link, is_dir, is_file = _entry_kind(entry)
        except TraversalEntryError as e:
            logger.warning("%s", e)
            continue
        if is_link:
            logger.debug("Skipping symlink %s", rel)
            continue
        if not (is_dir or is_file):
            logger.debug("Skipping special file %s", rel)
            continue
        if rules.is_ignored(rel, is_dir):
            logger.debug("Ignoring %s", rel)
            continue
        node = FileEntry(Path(entry.path), rel, is_dir)
        if node.is_dir:
            yield from _walk_dir(node.path, rel, rules, options, logger)
        else:
            yield node


def walk(
    root: Path,
    rules: Optional[IgnoreRuleSet] = None,
    options: Optional[ScanOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[FileEntry]:
    """Yield the files under *root* depth-first, in name order, pruning ignored paths.

    *root* must already be resolved (see :func:`resolve_root`). Directories
    that cannot be listed and entries that cannot be inspected are logged and
    skipped.
    """
    logger = logger or log
    options = options or ScanOptions()
    if rules is None:
        rules = base_rules(options.extra_spec)
    return _walk_dir(Path(root), "", rules, options, logger)


# Aggregator
def worker_count(jobs: int) -> int:
    """Thread-pool size for *jobs*, capped at the CPU count (0 means all CPUs)."""
    cpus = os.cpu_count() or 1
    if jobs <= 0:
        return cpus
    return min(jobs, cpus)


def _process_entry(
    entry: FileEntry,
    style: str,
    logger: logging.Logger,
) -> Tuple[Optional[str], bool]:
    """Render one entry. Returns (fragment, read_failed)."""
    if not is_text(entry.path):
        logger.debug("Skipping non-text %s", entry.relative)
        return None, False
    try:
        contents = read_text(entry.path)
    except ReadError as e:
        logger.warning("%s", e)
        return None, True

    logger.info("Traversing file: %s", entry.relative)
    first_line = contents.splitlines()[0] if contents else "File is empty"
    logger.info("First line of %s: %s", entry.relative, first_line)
    return render(entry.relative, contents, style), False


def _collect_sequential(
    entries: Iterator[FileEntry],
    style: str,
    logger: logging.Logger,
) -> ScanResult:
    fragments: List[str] = []
    included: List[str] = []
    skipped: List[str] = []
    for entry in entries:
        fragment, failed = _process_entry(entry, style, logger)
        if fragment is not None:
            fragments.append(fragment)
            included.append(entry.relative)
        elif failed:
            skipped.append(entry.relative)
    return ScanResult("".join(fragments), included, skipped)


def _collect_parallel(
    entries: List[FileEntry],
    style: str,
    workers: int,
    logger: logging.Logger,
) -> ScanResult:
    fragments: List[str] = []
    included: List[str] = []
    skipped: List[str] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(_process_entry, entry, style, logger): entry
            for entry in entries
        }
        try:
            for future in as_completed(futures):
                entry = futures[future]
                fragment, failed = future.result()
                if fragment is not None:
                    fragments.append(fragment)
                    included.append(entry.relative)
                elif failed:
                    skipped.append(entry.relative)
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return ScanResult("".join(fragments), included, skipped)


def collect(
    root: Path,
    options: Optional[ScanOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> ScanResult:
    """Walk *root* and concatenate the rendered text files.

    With ``options.jobs == 1`` files are processed in traversal order. Any
    other value first discovers every candidate, then classifies, reads and
    renders them on a thread pool; fragments are joined in completion order.
    """
    logger = logger or log
    options = options or ScanOptions()
    style = validate_format(options.output_format)

    entries = walk(root, options=options, logger=logger)
    if options.jobs == 1:
        result = _collect_sequential(entries, style, logger)
    else:
        candidates = list(entries)
        workers = worker_count(options.jobs)
        logger.debug("Discovered %d files, processing with %d workers", len(candidates), workers)
        result = _collect_parallel(candidates, style, workers, logger)

    logger.info(
        "%d files included, %d characters, %d skipped.",
        len(result.included),
        len(result.output),
        len(result.skipped),
    )
    return result
