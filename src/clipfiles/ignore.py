"""
Ignore-rule handling for clipfiles.

Rules come from gitignore-style files and are scoped to the directory the file
lives in. The walker stacks one :class:`IgnoreLayer` per ignore file while it
descends, and the last pattern that matches a path decides whether it is
ignored, so deeper files override their ancestors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pathspec

from .errors import ConfigError

log = logging.getLogger(__name__)

PATTERN_STYLE = "gitignore"
GITIGNORE_NAME = ".gitignore"
DEFAULT_IGNORE_FILE = ".clipignore"

DEFAULT_PATTERNS: List[str] = [
    ".git/",  # VCS data
]


@dataclass(frozen=True)
class IgnoreLayer:
    base: str  # directory of the rule file, relative to the root ("" for root)
    source: str
    spec: "pathspec.PathSpec"

    def _relative(self, relative: str) -> Optional[str]:
        if not self.base:
            return relative
        prefix = self.base + "/"
        if relative.startswith(prefix):
            return relative[len(prefix):]
        return None

    def decide(self, relative: str, is_dir: bool) -> Optional[bool]:
        """True/False from the last matching pattern, None when nothing matches."""
        local = self._relative(relative)
        if not local:
            return None
        if is_dir:
            local += "/"
        return self.spec.check_file(local).include


@dataclass(frozen=True)
class IgnoreRuleSet:
    layers: Tuple[IgnoreLayer, ...] = ()

    def extend(self, layer: Optional[IgnoreLayer]) -> "IgnoreRuleSet":
        if layer is None or not layer.spec.patterns:
            return self
        return IgnoreRuleSet(self.layers + (layer,))

    def is_ignored(self, relative: str, is_dir: bool = False) -> bool:
        ignored = False
        for layer in self.layers:
            decision = layer.decide(relative, is_dir)
            if decision is not None:
                ignored = decision
        return ignored


def compile_patterns(
    lines: Iterable[str],
    source: str,
    logger: Optional[logging.Logger] = None,
) -> "pathspec.PathSpec":
    """Compile gitignore lines, dropping (and logging) the ones that are invalid."""
    logger = logger or log
    factory = pathspec.util.lookup_pattern(PATTERN_STYLE)
    patterns = []
    for lineno, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        try:
            pattern = factory(line)
        except ValueError as e:
            logger.warning("Ignoring invalid pattern %r in %s:%d: %s", line, source, lineno, e)
            continue
        if pattern.include is not None:
            patterns.append(pattern)
    return pathspec.PathSpec(patterns)


def default_layer() -> IgnoreLayer:
    return IgnoreLayer("", "<defaults>", compile_patterns(DEFAULT_PATTERNS, "<defaults>"))


def load_ignore_file(
    path: Path,
    base: str,
    logger: Optional[logging.Logger] = None,
) -> Optional[IgnoreLayer]:
    """Load one in-tree ignore file; unreadable files are logged and treated as empty."""
    logger = logger or log
    try:
        text = path.read_bytes().decode("utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read ignore file '%s': %s", path, e)
        return None
    logger.debug("Loaded ignore rules from %s", path)
    return IgnoreLayer(base, str(path), compile_patterns(text.splitlines(), str(path), logger))


def load_extra_patterns(config_path: Path) -> "pathspec.PathSpec":
    """Read newline-separated patterns from *config_path* and compile spec."""
    if not config_path.exists():
        raise ConfigError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            lines = [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read config file '{config_path}': {e}")
    return compile_patterns(lines, str(config_path))


def base_rules(extra_spec: Optional["pathspec.PathSpec"] = None) -> IgnoreRuleSet:
    """Root-level rules: built-in defaults, then the optional --config patterns."""
    rules = IgnoreRuleSet().extend(default_layer())
    if extra_spec is not None:
        rules = rules.extend(IgnoreLayer("", "<config>", extra_spec))
    return rules
