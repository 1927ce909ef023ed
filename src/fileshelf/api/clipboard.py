"""Shared clipboard endpoint."""

import asyncio
import logging

from aiohttp import web

from fileshelf.app_keys import clipboard_key, clipboard_limiter_key
from fileshelf.errors import RateLimited

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_clipboard_routes() -> list[web.RouteDef]:
    return [
        web.get("/clipboard", get_clipboard),
        web.post("/clipboard", set_clipboard),
        web.options("/clipboard", clipboard_preflight),
    ]


async def get_clipboard(request: web.Request) -> web.Response:
    content = await asyncio.to_thread(request.app[clipboard_key].get)
    return web.Response(text=content, headers=CORS_HEADERS)


async def set_clipboard(request: web.Request) -> web.Response:
    client = request.remote or "unknown"
    if not request.app[clipboard_limiter_key].check(client):
        logger.info(f"Clipboard rate limit exceeded for {client}")
        raise RateLimited("Rate limit exceeded. Too many clipboard updates, try again later.")

    text = await request.text()
    await asyncio.to_thread(request.app[clipboard_key].set, text)
    return web.Response(headers=CORS_HEADERS)


async def clipboard_preflight(request: web.Request) -> web.Response:
    return web.Response(headers=CORS_HEADERS)
