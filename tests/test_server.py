"""Tests for server module."""

import io
import zipfile
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from aiohttp import BasicAuth, FormData

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
from fileshelf.config import AuthConfig, ClipboardConfig, Config, ListingConfig
from fileshelf.server import create_app
from tests.helpers import b64


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__wires_every_store(self, test_config: Config) -> None:
        app = create_app(test_config)

        for key in (
            config_key,
            resolver_key,
            aliases_key,
            uploads_key,
            search_key,
            clipboard_key,
            flags_key,
            clipboard_limiter_key,
        ):
            assert key in app
        assert app[resolver_key].root == test_config.storage.root.resolve()
        assert app[clipboard_key].persistent is False

    def test__missing_root__is_created(self, test_config: Config, tmp_path: Path) -> None:
        config = replace(test_config, storage=replace(test_config.storage, root=tmp_path / "new"))

        create_app(config)

        assert (tmp_path / "new").is_dir()

    def test__persist_clipboard__uses_state_directory(self, test_config: Config) -> None:
        config = replace(test_config, clipboard=ClipboardConfig(persist=True))

        app = create_app(config)

        assert app[clipboard_key].persistent is True

    def test__listing_config__sets_visibility(self, test_config: Config) -> None:
        config = replace(
            test_config,
            listing=ListingConfig(show_hidden_files=True, disable_hidden_files=True),
        )

        app = create_app(config)

        assert app[flags_key].get() is False
        assert app[flags_key].disabled


class TestBasicAuth:
    """Every route requires credentials when auth is configured."""

    @pytest.fixture
    def config(self, test_config: Config) -> Config:
        return replace(test_config, auth=AuthConfig(username="admin", password="s3cret"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/", "/clipboard", "/custom-path", "/showhiddenfiles"])
    async def test__no_credentials__returns_401(
        self, aiohttp_client: Any, config: Config, path: str
    ) -> None:
        client = await aiohttp_client(create_app(config))

        response = await client.get(path)

        assert response.status == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Restricted"'
        assert await response.text() == "Unauthorized.\n"

    @pytest.mark.asyncio
    async def test__wrong_password__returns_401(self, aiohttp_client: Any, config: Config) -> None:
        client = await aiohttp_client(create_app(config))

        response = await client.get("/clipboard", auth=BasicAuth("admin", "wrong"))

        assert response.status == 401

    @pytest.mark.asyncio
    async def test__malformed_header__returns_401(
        self, aiohttp_client: Any, config: Config
    ) -> None:
        client = await aiohttp_client(create_app(config))

        response = await client.get("/clipboard", headers={"Authorization": "Basic !!!"})

        assert response.status == 401

    @pytest.mark.asyncio
    async def test__valid_credentials__pass_through(
        self, aiohttp_client: Any, config: Config
    ) -> None:
        client = await aiohttp_client(create_app(config))

        response = await client.get("/clipboard", auth=BasicAuth("admin", "s3cret"))

        assert response.status == 200


class TestReadOnly:
    """Mutating file operations are refused in read-only mode."""

    @pytest.fixture
    def config(self, test_config: Config) -> Config:
        return replace(test_config, auth=AuthConfig(read_only=True))

    @pytest.mark.asyncio
    async def test__upload__returns_403(self, aiohttp_client: Any, config: Config) -> None:
        client = await aiohttp_client(create_app(config))

        response = await client.post("/", data={"file": b"data"})

        assert response.status == 403
        assert await response.text() == "Operation is disabled in readonly mode"

    @pytest.mark.asyncio
    async def test__delete__returns_403_and_keeps_file(
        self, aiohttp_client: Any, config: Config, storage_root: Path
    ) -> None:
        (storage_root / "keep.txt").write_text("x")
        client = await aiohttp_client(create_app(config))

        response = await client.post("/delete", params={"path": b64("keep.txt")})

        assert response.status == 403
        assert (storage_root / "keep.txt").exists()

    @pytest.mark.asyncio
    async def test__reads__still_work(
        self, aiohttp_client: Any, config: Config, storage_root: Path
    ) -> None:
        (storage_root / "keep.txt").write_text("x")
        client = await aiohttp_client(create_app(config))

        response = await client.get("/raw/keep.txt")

        assert response.status == 200
        assert await response.text() == "x"


class TestStateInsideRoot:
    """A state directory under the storage root is not reachable over HTTP."""

    @pytest.fixture
    def config(self, test_config: Config, storage_root: Path) -> Config:
        storage = replace(test_config.storage, state_dir=storage_root / ".fileshelf")
        return replace(test_config, storage=storage)

    @pytest.fixture
    def aliases_file(self, storage_root: Path) -> Path:
        (storage_root / "report.txt").write_text("numbers")
        return storage_root / ".fileshelf" / "aliases.json"

    async def _client_with_alias(self, aiohttp_client: Any, config: Config) -> Any:
        client = await aiohttp_client(create_app(config))
        response = await client.post(
            "/custom-path", data={"customPath": "q3", "originalPath": b64("report.txt")}
        )
        assert response.status == 200
        return client

    @pytest.mark.asyncio
    async def test__raw__returns_400(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)

        response = await client.get("/raw/.fileshelf/aliases.json")

        assert aliases_file.exists()
        assert response.status == 400

    @pytest.mark.asyncio
    async def test__download__returns_400(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)

        response = await client.get("/download", params={"path": b64(".fileshelf/aliases.json")})

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__upload__returns_400_and_keeps_state(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)
        before = aliases_file.read_text()
        form = FormData()
        form.add_field("file", b'{"version": 1, "aliases": []}', filename="aliases.json")

        response = await client.post("/", params={"path": b64(".fileshelf")}, data=form)

        assert response.status == 400
        assert aliases_file.read_text() == before
        assert (await client.get("/q3")).status == 200

    @pytest.mark.asyncio
    async def test__search__returns_400(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)

        response = await client.get(
            "/search-file",
            params={"path": b64(".fileshelf/aliases.json"), "term": "custom_path"},
        )

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__delete__returns_400_and_keeps_state(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)

        response = await client.post("/delete", params={"path": b64(".fileshelf/aliases.json")})

        assert response.status == 400
        assert aliases_file.exists()

    @pytest.mark.asyncio
    async def test__alias_to_state_file__returns_400(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)

        response = await client.post(
            "/custom-path",
            data={"customPath": "leak", "originalPath": b64(".fileshelf/aliases.json")},
        )

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__listing_and_zip__leave_it_out(
        self, aiohttp_client: Any, config: Config, aliases_file: Path
    ) -> None:
        client = await self._client_with_alias(aiohttp_client, config)
        await client.post("/showhiddenfiles")

        listing = await (await client.get("/")).json()
        archive = await (await client.get("/zip")).read()

        assert [e["name"] for e in listing["entries"]] == ["report.txt"]
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            assert zf.namelist() == ["report.txt"]
