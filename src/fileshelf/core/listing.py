"""Directory listing and archiving.

Listing is a data view for the browser UI: entries of one directory with
their sizes, modification times and custom paths. Hidden entries (dotfiles)
are included only when the visibility flag is on. In-flight uploads and
reserved directories are never listed.
"""

import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TypedDict

from fileshelf.core.aliases import AliasStore
from fileshelf.core.paths import PathResolver, encode_path
from fileshelf.core.types import StoredPath
from fileshelf.core.uploads import is_temporary_upload
from fileshelf.errors import NotFound, StorageFailure

logger = logging.getLogger(__name__)


class DirectoryEntryDict(TypedDict):
    """Dictionary representation of a directory entry."""

    name: str
    path: str
    encoded_path: str
    is_dir: bool
    size: int
    modified: str
    custom_path: str | None


@dataclass(frozen=True)
class DirectoryEntry:
    """One file or folder inside a listed directory."""

    name: str
    path: StoredPath
    is_dir: bool
    size: int
    modified: datetime
    custom_path: str | None = None

    def to_dict(self) -> DirectoryEntryDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": self.path.as_posix(),
            "encoded_path": encode_path(self.path),
            "is_dir": self.is_dir,
            "size": self.size,
            "modified": self.modified.isoformat(),
            "custom_path": self.custom_path,
        }


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def list_directory(
    resolver: PathResolver,
    directory: StoredPath,
    *,
    show_hidden: bool,
    aliases: AliasStore | None = None,
) -> list[DirectoryEntry]:
    """List a directory, folders first, then files, each sorted by name.

    Raises:
        NotFound: If directory does not exist or is not a directory
        StorageFailure: If the directory cannot be read
    """
    fs_dir = resolver.to_filesystem(directory)
    if not fs_dir.is_dir():
        raise NotFound(f"The path does not exist: {directory}")

    entries: list[DirectoryEntry] = []
    try:
        with os.scandir(fs_dir) as it:
            for item in it:
                if is_temporary_upload(item.name):
                    continue
                if is_hidden(item.name) and not show_hidden:
                    continue
                if resolver.is_reserved(Path(item.path)):
                    continue
                try:
                    stat = item.stat()
                    is_dir = item.is_dir()
                except OSError as e:
                    logger.warning(f"Skipping unreadable entry {item.path}: {e}")
                    continue

                path = StoredPath((*directory.parts, item.name))
                custom_path = None
                if aliases is not None and not is_dir:
                    custom_path = aliases.custom_path_for(path)

                entries.append(
                    DirectoryEntry(
                        name=item.name,
                        path=path,
                        is_dir=is_dir,
                        size=0 if is_dir else stat.st_size,
                        modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                        custom_path=custom_path,
                    )
                )
    except OSError as e:
        raise StorageFailure(f"Cannot list {directory}: {e}") from e

    entries.sort(key=lambda entry: (not entry.is_dir, entry.name.lower()))
    return entries


def build_zip(resolver: PathResolver, directory: StoredPath, *, include_hidden: bool) -> Path:
    """Write a zip archive of a directory to a temporary file.

    Blocking; run it in a worker thread. The caller owns the returned file
    and must delete it.

    Raises:
        NotFound: If directory does not exist
        StorageFailure: If the archive cannot be written
    """
    root = resolver.to_filesystem(directory)
    if not root.is_dir():
        raise NotFound(f"The path does not exist: {directory}")

    fd, tmp_name = tempfile.mkstemp(prefix="fileshelf-", suffix=".zip")
    os.close(fd)
    archive_path = Path(tmp_name)

    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for current, dirnames, filenames in os.walk(root):
                current_path = Path(current)
                dirnames[:] = sorted(
                    d
                    for d in dirnames
                    if (include_hidden or not is_hidden(d))
                    and not resolver.is_reserved(current_path / d)
                )
                for name in sorted(filenames):
                    if is_temporary_upload(name):
                        continue
                    if is_hidden(name) and not include_hidden:
                        continue
                    file_path = current_path / name
                    if file_path.is_symlink() and not file_path.resolve().is_relative_to(
                        resolver.root
                    ):
                        continue
                    if resolver.is_reserved(file_path):
                        continue
                    try:
                        zf.write(file_path, file_path.relative_to(root).as_posix())
                    except PermissionError:
                        logger.warning(f"Skipping unreadable file {file_path}")
    except OSError as e:
        archive_path.unlink(missing_ok=True)
        raise StorageFailure(f"Unable to create zip file: {e}") from e

    return archive_path
