"""
Exceptions raised by clipfiles.
"""


class ClipfilesError(Exception):
    """Base exception for clipfiles errors."""


class PathError(ClipfilesError):
    """Raised when the root path cannot be resolved or accessed."""


class NotADirectory(ClipfilesError):
    """Raised when the root path resolves to something other than a directory."""


class TraversalEntryError(ClipfilesError):
    """Raised when a single entry cannot be inspected during the walk."""


class ReadError(ClipfilesError):
    """Raised when a text file cannot be read."""

    def __init__(self, path, cause):
        super().__init__(f"Could not read '{path}': {cause}")
        self.path = path
        self.cause = cause


class ConfigError(ClipfilesError):
    """Raised for invalid options or an unusable config file."""


class ClipboardError(ClipfilesError):
    """Raised when the system clipboard cannot be written."""
