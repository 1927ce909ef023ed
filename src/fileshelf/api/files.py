"""File endpoints: listing, upload, raw and attachment downloads, delete, zip.

Raw downloads consult the alias store first, then treat the path literally.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from urllib.parse import quote

import aiofiles
import aiofiles.os
from aiohttp import BodyPartReader, hdrs, web

from fileshelf.api.params import encoded_path_param, require_writable
from fileshelf.app_keys import aliases_key, flags_key, resolver_key, uploads_key
from fileshelf.core.listing import build_zip, list_directory
from fileshelf.core.types import StoredPath
from fileshelf.errors import InvalidUpload, NotAFile, NotFound, StorageFailure

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 256 * 1024
ZIP_CHUNK_SIZE = 256 * 1024


def create_file_routes() -> list[web.RouteDef]:
    return [
        web.get("/", list_files),
        web.post("/", upload_files),
        web.get("/raw/{path:.*}", get_raw),
        web.get("/download", download_file),
        web.post("/delete", delete_file),
        web.get("/zip", zip_directory),
    ]


def create_alias_download_routes() -> list[web.RouteDef]:
    """Catch-all alias route; register after every other route."""
    return [web.get("/{custom_path:[A-Za-z0-9_-]+}", download_alias)]


async def list_files(request: web.Request) -> web.Response:
    directory = encoded_path_param(request)
    show_hidden = request.app[flags_key].get()
    entries = await asyncio.to_thread(
        list_directory,
        request.app[resolver_key],
        directory,
        show_hidden=show_hidden,
        aliases=request.app[aliases_key],
    )
    return web.json_response(
        {
            "path": directory.as_posix(),
            "show_hidden": show_hidden,
            "entries": [entry.to_dict() for entry in entries],
        }
    )


async def upload_files(request: web.Request) -> web.Response:
    require_writable(request)
    target_dir = encoded_path_param(request)
    receiver = request.app[uploads_key]

    if not request.content_type.startswith("multipart/"):
        raise InvalidUpload("Expected a multipart/form-data upload")
    try:
        reader = await request.multipart()
    except (KeyError, ValueError) as e:
        # KeyError: no boundary parameter in the Content-Type
        raise InvalidUpload(f"Malformed multipart upload: {e}") from e

    stored = []
    async for part in reader:
        if not isinstance(part, BodyPartReader) or part.name != "file":
            await part.release()
            continue
        if not part.filename:
            raise InvalidUpload("Missing file name")

        filename = _basename(part.filename)
        result = await receiver.receive(target_dir, filename, _iter_chunks(part))
        stored.append(result)

    if not stored:
        raise InvalidUpload("Missing file field")

    return web.json_response({"files": [item.to_dict() for item in stored]})


async def get_raw(request: web.Request) -> web.FileResponse:
    raw = request.match_info["path"]
    path = await _resolve_alias_or_path(request, raw)
    return web.FileResponse(_existing_file(request, path))


async def download_file(request: web.Request) -> web.FileResponse:
    path = encoded_path_param(request)
    file_path = _existing_file(request, path)
    return web.FileResponse(
        file_path,
        headers={hdrs.CONTENT_DISPOSITION: _attachment(path.name)},
    )


async def download_alias(request: web.Request) -> web.FileResponse:
    custom_path = request.match_info["custom_path"]
    path = await asyncio.to_thread(request.app[aliases_key].lookup, custom_path)
    if path is None:
        raise NotFound(f"Not found: /{custom_path}")
    file_path = _existing_file(request, path)
    logger.debug(f"Serving /{custom_path} -> {path}")
    return web.FileResponse(
        file_path,
        headers={hdrs.CONTENT_DISPOSITION: _attachment(path.name)},
    )


async def delete_file(request: web.Request) -> web.Response:
    require_writable(request)
    path = encoded_path_param(request)
    file_path = request.app[resolver_key].to_filesystem(path)

    if not file_path.exists():
        raise NotFound(f"File not found: {path}")
    if file_path.is_dir():
        raise NotAFile("Cannot delete directories")

    try:
        await aiofiles.os.remove(file_path)
    except FileNotFoundError as e:
        raise NotFound(f"File not found: {path}") from e
    except OSError as e:
        raise StorageFailure(f"Cannot delete {path}: {e.strerror or e}") from e

    removed = await asyncio.to_thread(request.app[aliases_key].delete_for, path)
    logger.info(f"File deleted: {path}")
    return web.json_response({"deleted": path.as_posix(), "removed_custom_paths": removed})


async def zip_directory(request: web.Request) -> web.StreamResponse:
    directory = encoded_path_param(request)
    include_hidden = request.app[flags_key].get()
    archive = await asyncio.to_thread(
        build_zip,
        request.app[resolver_key],
        directory,
        include_hidden=include_hidden,
    )

    try:
        name = f"{directory.name or 'files'}.zip"
        response = web.StreamResponse(
            headers={
                hdrs.CONTENT_TYPE: "application/zip",
                hdrs.CONTENT_DISPOSITION: _attachment(name),
            }
        )
        response.content_length = archive.stat().st_size
        await response.prepare(request)
        async with aiofiles.open(archive, "rb") as f:
            while chunk := await f.read(ZIP_CHUNK_SIZE):
                await response.write(chunk)
        await response.write_eof()
        return response
    finally:
        await asyncio.to_thread(archive.unlink, missing_ok=True)


async def _resolve_alias_or_path(request: web.Request, raw: str) -> StoredPath:
    name = raw.strip("/")
    if name and "/" not in name:
        target = await asyncio.to_thread(request.app[aliases_key].lookup, name)
        if target is not None:
            return target
    return request.app[resolver_key].resolve(raw)


def _existing_file(request: web.Request, path: StoredPath) -> Path:
    resolver = request.app[resolver_key]
    # Re-check: an alias target may have been swapped for a symlink since creation
    file_path = resolver.to_filesystem(resolver.resolve(path.as_posix()))
    if not file_path.is_file():
        raise NotFound(f"File not found: {path}")
    return file_path


async def _iter_chunks(part: BodyPartReader) -> AsyncIterator[bytes]:
    while chunk := await part.read_chunk(UPLOAD_CHUNK_SIZE):
        yield chunk


def _basename(filename: str) -> str:
    """Strip any client-side directory from an uploaded file name."""
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def _attachment(name: str) -> str:
    fallback = name.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name)}"
