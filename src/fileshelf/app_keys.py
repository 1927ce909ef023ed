"""Application keys for type-safe app configuration access."""

from aiohttp import web

from fileshelf.config import Config
from fileshelf.core.aliases import AliasStore
from fileshelf.core.clipboard import ClipboardStore
from fileshelf.core.flags import VisibilityFlags
from fileshelf.core.paths import PathResolver
from fileshelf.core.ratelimit import RateLimiter
from fileshelf.core.search import SearchEngine
from fileshelf.core.uploads import UploadReceiver

config_key = web.AppKey("config", Config)
resolver_key = web.AppKey("resolver", PathResolver)
aliases_key = web.AppKey("aliases", AliasStore)
uploads_key = web.AppKey("uploads", UploadReceiver)
search_key = web.AppKey("search", SearchEngine)
clipboard_key = web.AppKey("clipboard", ClipboardStore)
flags_key = web.AppKey("flags", VisibilityFlags)
clipboard_limiter_key = web.AppKey("clipboard_limiter", RateLimiter)
