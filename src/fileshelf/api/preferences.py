"""Show-hidden-files preference endpoint."""

from aiohttp import web

from fileshelf.app_keys import flags_key


def create_preferences_routes() -> list[web.RouteDef]:
    return [
        web.get("/showhiddenfiles", get_show_hidden),
        web.post("/showhiddenfiles", toggle_show_hidden),
    ]


async def get_show_hidden(request: web.Request) -> web.Response:
    return web.json_response(request.app[flags_key].get())


async def toggle_show_hidden(request: web.Request) -> web.Response:
    return web.json_response(request.app[flags_key].toggle())
