"""aiohttp server for fileshelf.

Application factory and route registration.
"""

import logging
import ssl

from aiohttp import web

from fileshelf.api.aliases import create_alias_routes
from fileshelf.api.clipboard import create_clipboard_routes
from fileshelf.api.files import create_alias_download_routes, create_file_routes
from fileshelf.api.preferences import create_preferences_routes
from fileshelf.api.search import create_search_routes
from fileshelf.app_keys import (
    aliases_key,
    clipboard_key,
    clipboard_limiter_key,
    config_key,
    flags_key,
    resolver_key,
    search_key,
    uploads_key,
)
from fileshelf.config import Config
from fileshelf.core.aliases import AliasStore
from fileshelf.core.clipboard import ClipboardStore
from fileshelf.core.flags import VisibilityFlags
from fileshelf.core.paths import PathResolver
from fileshelf.core.ratelimit import RateLimiter
from fileshelf.core.search import SearchEngine
from fileshelf.core.state import StateDirectory
from fileshelf.core.uploads import UploadReceiver
from fileshelf.middleware import basic_auth_middleware, error_middleware

logger = logging.getLogger(__name__)


def create_app(config: Config) -> web.Application:
    """Create aiohttp application.

    Creates the storage root if needed and wires one instance of each store
    into the application.

    Args:
        config: Application configuration

    Returns:
        Configured aiohttp application
    """
    middlewares = [error_middleware]
    if config.auth.enabled:
        middlewares.insert(0, basic_auth_middleware(config.auth.username, config.auth.password))

    app = web.Application(middlewares=middlewares)

    config.storage.root.mkdir(parents=True, exist_ok=True)
    resolver = PathResolver(config.storage.root, reserved=(config.storage.state_dir,))
    state = StateDirectory(config.storage.state_dir)

    app[config_key] = config
    app[resolver_key] = resolver
    app[aliases_key] = AliasStore(state, resolver)
    app[uploads_key] = UploadReceiver(resolver, max_size=config.storage.max_upload_size)
    app[search_key] = SearchEngine(
        resolver,
        max_term_length=config.search.max_term_length,
        max_results=config.search.max_results,
        max_line_length=config.search.max_line_length,
    )
    app[clipboard_key] = ClipboardStore(state if config.clipboard.persist else None)
    app[flags_key] = VisibilityFlags(
        show_hidden=config.listing.show_hidden_files,
        disabled=config.listing.disable_hidden_files,
    )
    app[clipboard_limiter_key] = RateLimiter(
        config.clipboard.rate_limit,
        config.clipboard.rate_window,
    )

    app.router.add_routes(create_clipboard_routes())
    app.router.add_routes(create_preferences_routes())
    app.router.add_routes(create_alias_routes())
    app.router.add_routes(create_search_routes())
    app.router.add_routes(create_file_routes())

    # Alias downloads - must be last to catch single-segment paths
    app.router.add_routes(create_alias_download_routes())

    logger.info(f"Serving files from {resolver.root}")
    return app


def _ssl_context(config: Config) -> ssl.SSLContext | None:
    if config.server.tls_cert is None or config.server.tls_key is None:
        return None
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(config.server.tls_cert, config.server.tls_key)
    return context


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    web.run_app(
        app,
        host=config.server.host,
        port=config.server.port,
        ssl_context=_ssl_context(config),
        access_log=None if config.server.quiet else logging.getLogger("aiohttp.access"),
        print=None,
    )
