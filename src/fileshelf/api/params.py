"""Request parameter helpers shared by the API handlers."""

from aiohttp import web

from fileshelf.app_keys import config_key, resolver_key
from fileshelf.core.paths import decode_path
from fileshelf.core.types import StoredPath
from fileshelf.errors import ReadOnlyMode

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


def encoded_path_param(request: web.Request, name: str = "path") -> StoredPath:
    """Resolve a base64-encoded path query parameter.

    A missing or empty parameter means the storage root.
    """
    encoded = request.query.get(name, "")
    if not encoded:
        return StoredPath()
    return request.app[resolver_key].resolve(decode_path(encoded))


def bool_param(request: web.Request, name: str) -> bool:
    return request.query.get(name, "").lower() in _TRUE_VALUES


def require_writable(request: web.Request) -> None:
    """Raise ReadOnlyMode when the server runs read-only."""
    if request.app[config_key].auth.read_only:
        raise ReadOnlyMode("Operation is disabled in readonly mode")
