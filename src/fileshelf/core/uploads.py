"""Streaming upload receiver.

Incoming bytes are written chunk by chunk to a hidden temporary file next to
the final target, then moved into place with os.replace(). Readers therefore
see either the previous file or the complete new one, never a partial upload.
Concurrent uploads to the same name race; the last rename wins.
"""

import logging
import uuid
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os

from fileshelf.core.paths import PathResolver
from fileshelf.core.types import StoredPath
from fileshelf.errors import (
    InvalidPath,
    NotFound,
    UploadIncomplete,
    UploadTooLarge,
    WriteFailure,
)

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".fileshelf-upload-"


def is_temporary_upload(name: str) -> bool:
    """Whether a directory entry is an in-flight upload."""
    return name.startswith(TEMP_PREFIX)


@dataclass
class StoredFile:
    """Result of a completed upload."""

    path: StoredPath
    size: int

    def to_dict(self) -> dict[str, str | int]:
        return {"name": self.path.name, "path": self.path.as_posix(), "size": self.size}


class UploadReceiver:
    """Writes upload streams into the storage root."""

    def __init__(self, resolver: PathResolver, *, max_size: int = 0) -> None:
        """Initialize receiver.

        Args:
            resolver: Resolver for the storage root
            max_size: Maximum accepted upload size in bytes (0 = unlimited)
        """
        self._resolver = resolver
        self._max_size = max_size

    async def receive(
        self,
        target_dir: StoredPath,
        filename: str,
        chunks: AsyncIterable[bytes],
        *,
        expected_size: int | None = None,
        on_progress: Callable[[int], None] | None = None,
    ) -> StoredFile:
        """Stream an upload into target_dir/filename.

        Args:
            target_dir: Existing directory inside the storage root
            filename: Name of the file to create or replace
            chunks: Upload content
            expected_size: Announced total length, if known
            on_progress: Called with the number of bytes received so far

        Returns:
            StoredFile describing the stored upload

        Raises:
            InvalidPath: If filename is not a plain file name
            NotFound: If target_dir is not an existing directory
            UploadTooLarge: If the stream exceeds the configured maximum
            UploadIncomplete: If fewer than expected_size bytes arrive
            WriteFailure: On disk errors
        """
        target = self._resolver.child(target_dir, filename)
        directory = self._resolver.to_filesystem(target_dir)
        if not directory.is_dir():
            raise NotFound(f"Directory not found: {target_dir}")
        if self._max_size and expected_size is not None and expected_size > self._max_size:
            raise UploadTooLarge(f"Upload exceeds {self._max_size} bytes")

        final_path = self._resolver.to_filesystem(target)
        if final_path.is_dir():
            raise InvalidPath(f"A directory named {filename!r} already exists")

        tmp_path = directory / f"{TEMP_PREFIX}{uuid.uuid4().hex}"
        received = 0
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                async for chunk in chunks:
                    if not chunk:
                        continue
                    received += len(chunk)
                    if self._max_size and received > self._max_size:
                        raise UploadTooLarge(f"Upload exceeds {self._max_size} bytes")
                    await f.write(chunk)
                    if on_progress is not None:
                        on_progress(received)
                await f.flush()

            if expected_size is not None and received < expected_size:
                raise UploadIncomplete(
                    f"Upload incomplete: received {received} of {expected_size} bytes"
                )

            await aiofiles.os.replace(tmp_path, final_path)
        except OSError as e:
            await self._discard(tmp_path)
            logger.error(f"Upload of {target} failed: {e}")
            raise WriteFailure(f"Cannot store {filename}: {e.strerror or e}") from e
        except BaseException:
            await self._discard(tmp_path)
            raise

        logger.info(f"Stored upload {target} ({received} bytes)")
        return StoredFile(path=target, size=received)

    async def _discard(self, tmp_path: Path) -> None:
        try:
            await aiofiles.os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary upload {tmp_path}: {e}")
