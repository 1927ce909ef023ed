"""Process-wide visibility preference for hidden entries.

In-memory only: the flag resets to its configured default on restart.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class VisibilityFlags:
    """Show-hidden-files toggle read by the directory listing."""

    def __init__(self, *, show_hidden: bool = False, disabled: bool = False) -> None:
        """Initialize flags.

        Args:
            show_hidden: Initial value of the toggle
            disabled: Hidden files are never shown and toggling is a no-op
        """
        self._lock = threading.Lock()
        self._disabled = disabled
        self._show_hidden = show_hidden and not disabled

    @property
    def disabled(self) -> bool:
        return self._disabled

    def get(self) -> bool:
        with self._lock:
            return self._show_hidden

    def toggle(self) -> bool:
        """Flip the flag and return the new value."""
        with self._lock:
            if not self._disabled:
                self._show_hidden = not self._show_hidden
            value = self._show_hidden
        logger.info(f"Show hidden files: {value}")
        return value
