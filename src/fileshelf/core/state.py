"""On-disk state directory for durable stores.

State structure:
    .fileshelf/
    ├── .gitignore
    ├── .lock              # Inter-process lock for read-modify-write cycles
    ├── aliases.json       # Custom path -> stored path mappings
    └── clipboard.txt      # Shared clipboard (when persistence is enabled)

Writes go to a temporary sibling first and are moved into place with
os.replace(), so readers see either the old or the new content.
"""

import fcntl
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from fileshelf.errors import StorageFailure

logger = logging.getLogger(__name__)

LOCK_FILENAME = ".lock"

# Identity of a file version: inode, modification time, size
FileSignature = tuple[int, int, int]


class StateDirectory:
    """Directory holding fileshelf's own durable files."""

    _GITIGNORE_CONTENT = "# Ignore everything in this directory\n*\n"

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    @property
    def state_dir(self) -> Path:
        """Root state directory."""
        return self._state_dir

    def path_for(self, name: str) -> Path:
        return self._state_dir / name

    def _ensure_state_dir(self) -> None:
        """Create state directory with .gitignore if it doesn't exist."""
        if not self._state_dir.exists():
            self._state_dir.mkdir(parents=True, exist_ok=True)
            gitignore_path = self._state_dir / ".gitignore"
            gitignore_path.write_text(self._GITIGNORE_CONTENT, encoding="utf-8")

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive lock shared with other processes using this directory.

        Raises:
            StorageFailure: If the lock file cannot be opened
        """
        try:
            self._ensure_state_dir()
            f = self.path_for(LOCK_FILENAME).open("a")
        except OSError as e:
            raise StorageFailure(f"Cannot lock {self._state_dir}: {e}") from e
        with f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def signature(self, name: str) -> FileSignature | None:
        """Cheap version stamp of a state file, None if it does not exist.

        Raises:
            StorageFailure: If the file cannot be inspected
        """
        path = self.path_for(name)
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailure(f"Cannot stat {path}: {e}") from e
        return (stat.st_ino, stat.st_mtime_ns, stat.st_size)

    def read_text(self, name: str) -> str | None:
        """Read a state file.

        Returns:
            File content, or None if the file does not exist

        Raises:
            StorageFailure: If the file exists but cannot be read
        """
        path = self.path_for(name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageFailure(f"Cannot read {path}: {e}") from e

    def write_text(self, name: str, content: str) -> None:
        """Atomically replace a state file.

        Raises:
            StorageFailure: If the file cannot be written
        """
        target = self.path_for(name)
        tmp_name: str | None = None
        try:
            self._ensure_state_dir()
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{name}.", suffix=".tmp", dir=self._state_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error(f"Failed to write state file {target}: {e}")
            raise StorageFailure(f"Cannot write {target}: {e}") from e
