"""fileshelf.toml loading.

The file is looked up in the working directory and its parents unless a path
is given. Relative paths inside it are taken relative to the file itself.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TypeVar

CONFIG_FILENAME = "fileshelf.toml"

T = TypeVar("T")


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 9090
    quiet: bool = False
    tls_cert: Path | None = None
    tls_key: Path | None = None


@dataclass
class StorageConfig:
    """Storage configuration."""

    root: Path = field(default_factory=lambda: Path("uploads"))
    state_dir: Path = field(default_factory=lambda: Path(".fileshelf"))
    max_upload_size: int = 0


@dataclass
class AuthConfig:
    """Access control configuration."""

    username: str | None = None
    password: str | None = None
    read_only: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.username and self.password)


@dataclass
class ListingConfig:
    """Directory listing configuration."""

    show_hidden_files: bool = False
    disable_hidden_files: bool = False


@dataclass
class SearchConfig:
    """In-file search configuration."""

    max_term_length: int = 1000
    max_results: int = 1000
    max_line_length: int = 300
    timeout: float = 30.0


@dataclass
class ClipboardConfig:
    """Shared clipboard configuration."""

    persist: bool = False
    rate_limit: int = 20
    rate_window: float = 60.0


@dataclass
class Config:
    """Top-level fileshelf configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    clipboard: ClipboardConfig = field(default_factory=ClipboardConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load fileshelf.toml.

        An explicit config_path wins; without one the file is discovered,
        and a missing file yields the built-in defaults.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config with defaults for absent sections and keys

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Walk up from the working directory looking for fileshelf.toml."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        config = cls(
            server=cls._parse_server(data.get("server"), config_dir),
            storage=cls._parse_storage(data.get("storage"), config_dir),
            auth=cls._parse_auth(data.get("auth")),
            listing=cls._parse_listing(data.get("listing")),
            search=cls._parse_search(data.get("search")),
            clipboard=cls._parse_clipboard(data.get("clipboard")),
            config_path=path,
        )
        config.validate()
        return config

    @classmethod
    def _parse_server(cls, data: object, config_dir: Path) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = _get_typed(data, "server", "host", str, "127.0.0.1")
        port = _get_typed(data, "server", "port", int, 9090)
        quiet = _get_typed(data, "server", "quiet", bool, False)

        tls_cert = _get_typed(data, "server", "tls_cert", str, None)
        tls_key = _get_typed(data, "server", "tls_key", str, None)

        return ServerConfig(
            host=host,
            port=port,
            quiet=quiet,
            tls_cert=config_dir / tls_cert if tls_cert else None,
            tls_key=config_dir / tls_key if tls_key else None,
        )

    @classmethod
    def _parse_storage(cls, data: object, config_dir: Path) -> StorageConfig:
        """Parse storage configuration section.

        Args:
            data: Raw storage section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            StorageConfig instance
        """
        if data is None:
            return StorageConfig(
                root=config_dir / "uploads",
                state_dir=config_dir / ".fileshelf",
            )

        if not isinstance(data, dict):
            raise ValueError("storage section must be a dictionary")

        root = _get_typed(data, "storage", "root", str, "uploads")
        state_dir = _get_typed(data, "storage", "state_dir", str, ".fileshelf")
        max_upload_size = _get_typed(data, "storage", "max_upload_size", int, 0)
        if max_upload_size < 0:
            raise ValueError("storage.max_upload_size must not be negative")

        return StorageConfig(
            root=config_dir / root,
            state_dir=config_dir / state_dir,
            max_upload_size=max_upload_size,
        )

    @classmethod
    def _parse_auth(cls, data: object) -> AuthConfig:
        """Parse auth configuration section."""
        if data is None:
            return AuthConfig()

        if not isinstance(data, dict):
            raise ValueError("auth section must be a dictionary")

        return AuthConfig(
            username=_get_typed(data, "auth", "username", str, None),
            password=_get_typed(data, "auth", "password", str, None),
            read_only=_get_typed(data, "auth", "read_only", bool, False),
        )

    @classmethod
    def _parse_listing(cls, data: object) -> ListingConfig:
        """Parse listing configuration section."""
        if data is None:
            return ListingConfig()

        if not isinstance(data, dict):
            raise ValueError("listing section must be a dictionary")

        return ListingConfig(
            show_hidden_files=_get_typed(data, "listing", "show_hidden_files", bool, False),
            disable_hidden_files=_get_typed(
                data, "listing", "disable_hidden_files", bool, False
            ),
        )

    @classmethod
    def _parse_search(cls, data: object) -> SearchConfig:
        """Parse search configuration section."""
        if data is None:
            return SearchConfig()

        if not isinstance(data, dict):
            raise ValueError("search section must be a dictionary")

        timeout = data.get("timeout", 30.0)
        if isinstance(timeout, bool) or not isinstance(timeout, int | float):
            raise ValueError("search.timeout must be a number")

        search = SearchConfig(
            max_term_length=_get_typed(data, "search", "max_term_length", int, 1000),
            max_results=_get_typed(data, "search", "max_results", int, 1000),
            max_line_length=_get_typed(data, "search", "max_line_length", int, 300),
            timeout=float(timeout),
        )
        for name in ("max_term_length", "max_results", "max_line_length", "timeout"):
            if getattr(search, name) <= 0:
                raise ValueError(f"search.{name} must be positive")
        return search

    @classmethod
    def _parse_clipboard(cls, data: object) -> ClipboardConfig:
        """Parse clipboard configuration section."""
        if data is None:
            return ClipboardConfig()

        if not isinstance(data, dict):
            raise ValueError("clipboard section must be a dictionary")

        rate_window = data.get("rate_window", 60.0)
        if isinstance(rate_window, bool) or not isinstance(rate_window, int | float):
            raise ValueError("clipboard.rate_window must be a number")

        return ClipboardConfig(
            persist=_get_typed(data, "clipboard", "persist", bool, False),
            rate_limit=_get_typed(data, "clipboard", "rate_limit", int, 20),
            rate_window=float(rate_window),
        )

    def validate(self) -> None:
        """Check cross-field constraints.

        Raises:
            ValueError: If paired options are only half set, or the storage
                root lies inside the state directory
        """
        if (self.auth.username is None) != (self.auth.password is None):
            raise ValueError("auth.username and auth.password must be set together")
        if (self.server.tls_cert is None) != (self.server.tls_key is None):
            raise ValueError("server.tls_cert and server.tls_key must be set together")
        root = self.storage.root.resolve()
        state_dir = self.storage.state_dir.resolve()
        if root == state_dir or root.is_relative_to(state_dir):
            raise ValueError("storage.root must not be inside storage.state_dir")

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        root: Path | None = None,
        quiet: bool | None = None,
        username: str | None = None,
        password: str | None = None,
        read_only: bool | None = None,
        disable_hidden_files: bool | None = None,
        tls_cert: Path | None = None,
        tls_key: Path | None = None,
    ) -> "Config":
        """Return a copy with command-line values applied.

        None means "not given on the command line" and keeps the file value.

        Raises:
            ValueError: If the result pairs options inconsistently
        """
        server = replace(
            self.server,
            host=host if host is not None else self.server.host,
            port=port if port is not None else self.server.port,
            quiet=quiet if quiet is not None else self.server.quiet,
            tls_cert=tls_cert if tls_cert is not None else self.server.tls_cert,
            tls_key=tls_key if tls_key is not None else self.server.tls_key,
        )

        storage = self.storage
        if root is not None:
            storage = replace(self.storage, root=root)

        auth = replace(
            self.auth,
            username=username if username is not None else self.auth.username,
            password=password if password is not None else self.auth.password,
            read_only=read_only if read_only is not None else self.auth.read_only,
        )

        listing = self.listing
        if disable_hidden_files is not None:
            listing = replace(self.listing, disable_hidden_files=disable_hidden_files)

        config = replace(self, server=server, storage=storage, auth=auth, listing=listing)
        config.validate()
        return config


def _get_typed(data: dict, section: str, key: str, kind: type[T], default: T) -> T:
    """Read an optional key and check its type.

    Raises:
        ValueError: If the value has the wrong type
    """
    value = data.get(key, default)
    if value is None:
        return value
    # bool is a subclass of int; never accept it where a number is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"{section}.{key} must be of type {kind.__name__}")
    return value
