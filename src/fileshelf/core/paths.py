"""Path resolution and sandboxing.

All user-supplied paths go through PathResolver before touching the disk.
Raw strings are split into segments, checked for traversal tokens, then joined
to the storage root and compared as canonical absolute paths so symlinks cannot
lead outside the root. Reserved directories (the server state directory when it
sits inside the root) are unreachable the same way.
"""

import base64
import binascii
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from fileshelf.core.types import StoredPath
from fileshelf.errors import InvalidPath

logger = logging.getLogger(__name__)

MAX_PATH_LENGTH = 4096
MAX_SEGMENTS = 256
MAX_SEGMENT_LENGTH = 255

_SEPARATORS_RE = re.compile(r"[/\\]")


def decode_path(encoded: str) -> str:
    """Decode a base64-encoded path as sent by the browser client.

    The result is untrusted and must still be passed to PathResolver.resolve().

    Args:
        encoded: Standard-alphabet base64 string

    Returns:
        Decoded path string

    Raises:
        InvalidPath: If the value is not valid base64 or not UTF-8
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidPath("Invalid path encoding") from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidPath("Invalid path encoding") from e


def encode_path(path: StoredPath) -> str:
    """Encode a stored path the way the browser client expects it."""
    return base64.b64encode(path.as_posix().encode("utf-8")).decode("ascii")


class PathResolver:
    """Validates user paths against a fixed storage root."""

    def __init__(self, root: Path, *, reserved: Iterable[Path] = ()) -> None:
        """Initialize resolver.

        Args:
            root: Storage root directory. It is canonicalized once here.
            reserved: Directories that must never be served or written through
                the resolver, even when they lie inside the root
        """
        self._root = root.resolve()
        self._reserved = tuple(path.resolve() for path in reserved)

    @property
    def root(self) -> Path:
        """Canonical storage root."""
        return self._root

    def resolve(self, raw: str) -> StoredPath:
        """Normalize a raw path string into a StoredPath.

        Args:
            raw: Path relative to the root, already URL- or base64-decoded

        Returns:
            StoredPath inside the storage root

        Raises:
            InvalidPath: If the path is malformed, too long, or escapes the root
        """
        if "\x00" in raw:
            raise InvalidPath("Invalid path: contains NUL byte")
        if len(raw) > MAX_PATH_LENGTH:
            raise InvalidPath("Invalid path: too long")

        parts: list[str] = []
        for segment in _SEPARATORS_RE.split(raw):
            if segment in ("", "."):
                continue
            if segment == "..":
                raise InvalidPath("Invalid path: traversal is not allowed")
            if len(segment) > MAX_SEGMENT_LENGTH:
                raise InvalidPath("Invalid path: segment too long")
            parts.append(segment)

        if len(parts) > MAX_SEGMENTS:
            raise InvalidPath("Invalid path: too many segments")

        stored = StoredPath(tuple(parts))
        self._check_inside_root(stored)
        return stored

    def child(self, parent: StoredPath, name: str) -> StoredPath:
        """Resolve a single filename under a directory.

        Raises:
            InvalidPath: If name is empty, a dot entry, or contains separators
        """
        if not name or name in (".", "..") or _SEPARATORS_RE.search(name) or "\x00" in name:
            raise InvalidPath(f"Invalid file name: {name!r}")
        if len(name) > MAX_SEGMENT_LENGTH:
            raise InvalidPath("Invalid file name: too long")
        stored = StoredPath((*parent.parts, name))
        self._check_inside_root(stored)
        return stored

    def to_filesystem(self, path: StoredPath) -> Path:
        """Absolute filesystem location of a stored path."""
        return self._root.joinpath(*path.parts)

    def _check_inside_root(self, path: StoredPath) -> None:
        candidate = self.to_filesystem(path)
        try:
            canonical = candidate.resolve()
        except (OSError, RuntimeError) as e:
            raise InvalidPath("Invalid path") from e
        if canonical != self._root and not canonical.is_relative_to(self._root):
            logger.info(f"Rejected path escaping storage root: {path}")
            raise InvalidPath("Invalid path: outside storage root")
        if self._is_reserved_canonical(canonical):
            logger.info(f"Rejected path into reserved directory: {path}")
            raise InvalidPath("Invalid path: reserved for server state")

    def is_reserved(self, path: Path) -> bool:
        """Whether a filesystem path lies in a reserved directory."""
        try:
            canonical = path.resolve()
        except (OSError, RuntimeError):
            return False
        return self._is_reserved_canonical(canonical)

    def _is_reserved_canonical(self, canonical: Path) -> bool:
        return any(
            canonical == reserved or canonical.is_relative_to(reserved)
            for reserved in self._reserved
        )
