"""In-file search endpoint.

Runs the search under a wall-clock timeout and stops early when the client
disconnects.
"""

import asyncio
import logging

from aiohttp import web

from fileshelf.api.params import bool_param, encoded_path_param
from fileshelf.app_keys import config_key, search_key
from fileshelf.errors import InvalidPath, SearchCancelled

logger = logging.getLogger(__name__)


def create_search_routes() -> list[web.RouteDef]:
    return [web.get("/search-file", search_file)]


async def search_file(request: web.Request) -> web.Response:
    if not request.query.get("path"):
        raise InvalidPath("Missing required parameter: path")

    engine = request.app[search_key]
    term = request.query.get("term", "")
    engine.validate_term(term)
    path = encoded_path_param(request)

    timeout = request.app[config_key].search.timeout
    try:
        async with asyncio.timeout(timeout):
            results = await engine.search(
                path,
                term,
                case_sensitive=bool_param(request, "caseSensitive"),
                whole_word=bool_param(request, "wholeWord"),
                cancelled=lambda: _client_gone(request),
            )
    except TimeoutError:
        logger.warning(f"Search in {path} timed out after {timeout}s")
        return web.Response(status=504, text="Search timed out")
    except SearchCancelled:
        logger.info(f"Search in {path} abandoned by client")
        return web.Response(status=499, reason="Client Closed Request")

    return web.json_response([match.to_dict() for match in results])


def _client_gone(request: web.Request) -> bool:
    transport = request.transport
    return transport is None or transport.is_closing()
