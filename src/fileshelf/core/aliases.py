"""Durable mapping of custom short paths to stored files.

Aliases are kept in memory and mirrored to a JSON file in the state
directory. The file is shared with other processes (the alias CLI next to a
running server), so every change reloads it under an exclusive lock on the
state directory, checks uniqueness, then writes it back. Reads pick up
changes made elsewhere by comparing the file's signature.
"""

import json
import logging
import re
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypedDict

from fileshelf.core.paths import PathResolver
from fileshelf.core.state import StateDirectory
from fileshelf.core.types import StoredPath
from fileshelf.errors import (
    AlreadyExists,
    InvalidCustomPath,
    InvalidPath,
    SourceNotFound,
    StorageFailure,
)

logger = logging.getLogger(__name__)

ALIASES_FILENAME = "aliases.json"

CUSTOM_PATH_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")

# First path segments owned by the HTTP router
RESERVED_NAMES = frozenset(
    {
        "raw",
        "download",
        "delete",
        "zip",
        "search-file",
        "clipboard",
        "custom-path",
        "showhiddenfiles",
        "api",
        "static",
        "favicon",
    }
)


class AliasDict(TypedDict):
    """Serialized alias structure."""

    custom_path: str
    original_path: str
    created_at: str


@dataclass(frozen=True)
class Alias:
    """Custom short path bound to a stored file."""

    custom_path: str
    original_path: StoredPath
    created_at: datetime

    def to_dict(self) -> AliasDict:
        return {
            "custom_path": self.custom_path,
            "original_path": self.original_path.as_posix(),
            "created_at": self.created_at.isoformat(),
        }


def validate_custom_path(custom_path: str) -> None:
    """Check custom path format and reserved route names.

    Raises:
        InvalidCustomPath: If the name is not allowed
    """
    if not CUSTOM_PATH_RE.fullmatch(custom_path):
        raise InvalidCustomPath(
            "Invalid custom path: use 1-64 letters, digits, '-' or '_'"
        )
    if custom_path.lower() in RESERVED_NAMES:
        raise InvalidCustomPath(f"Invalid custom path: '{custom_path}' is reserved")


class AliasStore:
    """Thread- and process-safe, file-backed alias registry."""

    def __init__(self, state: StateDirectory, resolver: PathResolver) -> None:
        """Initialize store and load persisted aliases.

        Args:
            state: State directory holding aliases.json
            resolver: Resolver for the storage root the aliases point into

        Raises:
            StorageFailure: If the persisted file is unreadable or corrupt
        """
        self._state = state
        self._resolver = resolver
        self._lock = threading.Lock()
        self._signature = state.signature(ALIASES_FILENAME)
        self._aliases: dict[str, Alias] = self._load()

    def create(self, custom_path: str, original_path: StoredPath) -> Alias:
        """Bind a custom path to an existing stored file.

        Args:
            custom_path: Short name to create
            original_path: Target inside the storage root

        Returns:
            The created Alias, already persisted

        Raises:
            InvalidCustomPath: If custom_path is malformed or reserved
            AlreadyExists: If custom_path is already bound
            SourceNotFound: If original_path does not exist
            StorageFailure: If the mapping cannot be persisted
        """
        validate_custom_path(custom_path)

        with self._lock, self._state.lock():
            self._reload()
            if custom_path in self._aliases:
                raise AlreadyExists(f"Custom path already exists: {custom_path}")

            if not self._resolver.to_filesystem(original_path).exists():
                raise SourceNotFound(f"File not found: {original_path}")

            alias = Alias(
                custom_path=custom_path,
                original_path=original_path,
                created_at=datetime.now(tz=UTC),
            )
            self._aliases[custom_path] = alias
            try:
                self._save()
            except StorageFailure:
                del self._aliases[custom_path]
                raise

        logger.info(f"Custom path created: /{custom_path} -> {original_path}")
        return alias

    def lookup(self, custom_path: str) -> StoredPath | None:
        """Return the target of a custom path, or None if unbound."""
        with self._lock:
            self._refresh()
            alias = self._aliases.get(custom_path)
        return alias.original_path if alias is not None else None

    def delete(self, custom_path: str) -> bool:
        """Remove a custom path. Removing an unknown name is a no-op.

        Returns:
            True if an alias was removed
        """
        with self._lock, self._state.lock():
            self._reload()
            alias = self._aliases.pop(custom_path, None)
            if alias is None:
                return False
            try:
                self._save()
            except StorageFailure:
                self._aliases[custom_path] = alias
                raise

        logger.info(f"Custom path removed: /{custom_path}")
        return True

    def delete_for(self, original_path: StoredPath) -> list[str]:
        """Remove every alias pointing at original_path.

        Returns:
            Names of the removed aliases
        """
        with self._lock, self._state.lock():
            self._reload()
            removed = {
                name: alias
                for name, alias in self._aliases.items()
                if alias.original_path == original_path
            }
            if not removed:
                return []
            for name in removed:
                del self._aliases[name]
            try:
                self._save()
            except StorageFailure:
                self._aliases.update(removed)
                raise

        logger.info(f"Removed aliases of {original_path}: {sorted(removed)}")
        return sorted(removed)

    def aliases(self) -> list[Alias]:
        """All aliases ordered by custom path."""
        with self._lock:
            self._refresh()
            return sorted(self._aliases.values(), key=lambda a: a.custom_path)

    def custom_path_for(self, original_path: StoredPath) -> str | None:
        """First custom path (alphabetically) bound to original_path."""
        for alias in self.aliases():
            if alias.original_path == original_path:
                return alias.custom_path
        return None

    def _refresh(self) -> None:
        """Reload if another process replaced the file. Caller holds _lock."""
        if self._state.signature(ALIASES_FILENAME) != self._signature:
            self._reload()

    def _reload(self) -> None:
        signature = self._state.signature(ALIASES_FILENAME)
        self._aliases = self._load()
        self._signature = signature

    def _load(self) -> dict[str, Alias]:
        content = self._state.read_text(ALIASES_FILENAME)
        if content is None:
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageFailure(f"Corrupt alias store {ALIASES_FILENAME}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("aliases"), list):
            raise StorageFailure(f"Corrupt alias store {ALIASES_FILENAME}")

        aliases: dict[str, Alias] = {}
        for item in data["aliases"]:
            try:
                custom_path = item["custom_path"]
                original_path = self._resolver.resolve(item["original_path"])
                created_at = datetime.fromisoformat(item["created_at"])
            except (KeyError, TypeError, ValueError, InvalidPath) as e:
                raise StorageFailure(f"Corrupt alias entry {item!r}: {e}") from e
            aliases[custom_path] = Alias(custom_path, original_path, created_at)

        logger.debug(f"Loaded {len(aliases)} aliases")
        return aliases

    def _save(self) -> None:
        payload = {
            "version": 1,
            "aliases": [alias.to_dict() for alias in self._aliases.values()],
        }
        self._state.write_text(ALIASES_FILENAME, json.dumps(payload, indent=2))
        self._signature = self._state.signature(ALIASES_FILENAME)
