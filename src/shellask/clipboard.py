"""System clipboard sink."""

from __future__ import annotations

import logging

import pyperclip

LOGGER = logging.getLogger(__name__)


class ClipboardError(RuntimeError):
    """Raised when the command could not be written to the clipboard."""


def copy_to_clipboard(text: str) -> None:
    """Write ``text`` to the system clipboard as plain text."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        LOGGER.error("clipboard_write_failed", extra={"error": str(exc)})
        msg = f"Could not copy to clipboard: {exc}"
        raise ClipboardError(msg) from exc
    LOGGER.info("clipboard_write", extra={"length": len(text)})
