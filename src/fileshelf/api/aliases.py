"""Custom path (alias) endpoints.

Alias store calls touch the state directory, so they run in worker threads.
"""

import asyncio

from aiohttp import web

from fileshelf.app_keys import aliases_key, resolver_key
from fileshelf.core.paths import decode_path
from fileshelf.errors import InvalidPath


def create_alias_routes() -> list[web.RouteDef]:
    return [
        web.post("/custom-path", create_custom_path),
        web.get("/custom-path", list_custom_paths),
        web.delete("/custom-path/{custom_path}", delete_custom_path),
    ]


async def create_custom_path(request: web.Request) -> web.Response:
    form = await request.post()
    custom_path = str(form.get("customPath", ""))
    # "currentPath" is the field name used by older clients
    encoded = str(form.get("originalPath") or form.get("currentPath") or "")
    if not encoded:
        raise InvalidPath("Missing original path")

    original = request.app[resolver_key].resolve(decode_path(encoded))
    if original.is_root:
        raise InvalidPath("Cannot create a custom path for the storage root")

    alias = await asyncio.to_thread(request.app[aliases_key].create, custom_path, original)
    return web.Response(
        text=f"Custom path created: /{alias.custom_path} -> {alias.original_path}"
    )


async def list_custom_paths(request: web.Request) -> web.Response:
    aliases = await asyncio.to_thread(request.app[aliases_key].aliases)
    return web.json_response([alias.to_dict() for alias in aliases])


async def delete_custom_path(request: web.Request) -> web.Response:
    custom_path = request.match_info["custom_path"]
    removed = await asyncio.to_thread(request.app[aliases_key].delete, custom_path)
    if removed:
        return web.Response(text=f"Custom path removed: /{custom_path}")
    return web.Response(text=f"Custom path not bound: /{custom_path}")
