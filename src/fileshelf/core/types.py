"""Core type definitions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoredPath:
    """Validated path relative to the storage root.

    Only produced by PathResolver, so segments never contain "..", "." or
    empty names. The root itself is the empty tuple.
    """

    parts: tuple[str, ...] = ()

    @property
    def is_root(self) -> bool:
        return not self.parts

    @property
    def name(self) -> str:
        return self.parts[-1] if self.parts else ""

    @property
    def parent(self) -> "StoredPath":
        return StoredPath(self.parts[:-1])

    def as_posix(self) -> str:
        """Slash-joined form without leading separator ("" for the root)."""
        return "/".join(self.parts)

    def __str__(self) -> str:
        return self.as_posix()
