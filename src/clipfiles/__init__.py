"""
clipfiles - copy a project's text files to the clipboard.

Scans a directory tree, drops files matched by ignore rules, keeps files whose
name maps to a ``text/*`` media type and concatenates them, each under a path
header, into one document placed on the system clipboard.
"""

__version__ = "0.1.0"
