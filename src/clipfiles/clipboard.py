"""
Clipboard delivery for clipfiles.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

import pyperclip

from .errors import ClipboardError

log = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f"Failed to copy contents to clipboard: {e}") from e


def deliver(
    text: str,
    fallback_stdout: bool = False,
    stream: Optional[TextIO] = None,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Put *text* on the clipboard, or on *stream* when that fails and fallback is on.

    Returns ``"clipboard"`` or ``"stdout"`` depending on where the text went.
    """
    logger = logger or log
    try:
        copy_to_clipboard(text)
        return "clipboard"
    except ClipboardError as e:
        if not fallback_stdout:
            raise
        logger.warning("%s; writing to stdout instead", e)
    stream = stream or sys.stdout
    stream.write(text)
    stream.flush()
    return "stdout"
