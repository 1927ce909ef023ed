"""aiohttp middlewares: error mapping and optional basic authentication."""

import hmac
import logging

from aiohttp import BasicAuth, hdrs, web
from aiohttp.typedefs import Handler, Middleware

from fileshelf.errors import FileshelfError

logger = logging.getLogger(__name__)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Render FileshelfError as a plain-text response with its status."""
    try:
        return await handler(request)
    except FileshelfError as e:
        if e.status >= 500:
            cause = f" ({e.__cause__!r})" if e.__cause__ is not None else ""
            logger.error(f"{request.method} {request.path}: {e.message}{cause}")
        else:
            logger.info(f"{request.method} {request.path} -> {e.status}: {e.message}")
        return web.Response(text=e.message, status=e.status)


def basic_auth_middleware(username: str, password: str) -> Middleware:
    """Require HTTP basic credentials on every request.

    Credentials are compared in constant time.
    """
    expected_user = username.encode("utf-8")
    expected_password = password.encode("utf-8")

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        auth: BasicAuth | None = None
        header = request.headers.get(hdrs.AUTHORIZATION)
        if header:
            try:
                auth = BasicAuth.decode(header)
            except ValueError:
                auth = None

        if auth is None or not (
            hmac.compare_digest(auth.login.encode("utf-8"), expected_user)
            & hmac.compare_digest(auth.password.encode("utf-8"), expected_password)
        ):
            logger.info(f"Unauthorized {request.method} {request.path} from {request.remote}")
            return web.Response(
                status=401,
                text="Unauthorized.\n",
                headers={hdrs.WWW_AUTHENTICATE: 'Basic realm="Restricted"'},
            )

        return await handler(request)

    return middleware
