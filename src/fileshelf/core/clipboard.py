"""Shared single-slot clipboard."""

import logging
import threading

from fileshelf.core.state import StateDirectory

logger = logging.getLogger(__name__)

CLIPBOARD_FILENAME = "clipboard.txt"


class ClipboardStore:
    """Process-wide text slot, overwritten wholesale by set().

    With a state directory the content survives restarts; without one it
    lives in memory only. The lock covers the disk write too, so a get()
    never observes a value that set() has not finished storing.
    """

    def __init__(self, state: StateDirectory | None = None) -> None:
        self._state = state
        self._lock = threading.Lock()
        self._content = ""
        if state is not None:
            self._content = state.read_text(CLIPBOARD_FILENAME) or ""

    @property
    def persistent(self) -> bool:
        return self._state is not None

    def get(self) -> str:
        with self._lock:
            return self._content

    def set(self, text: str) -> None:
        """Replace the clipboard content.

        Raises:
            StorageFailure: If persistence is enabled and the write fails
        """
        with self._lock:
            if self._state is not None:
                self._state.write_text(CLIPBOARD_FILENAME, text)
            self._content = text
        logger.debug(f"Clipboard updated ({len(text)} characters)")
