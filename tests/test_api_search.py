"""Tests for the search endpoint."""

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from fileshelf.config import Config, SearchConfig
from fileshelf.core.search import SearchEngine
from fileshelf.errors import SearchCancelled
from fileshelf.server import create_app
from tests.helpers import b64


@pytest.fixture
def client(test_config: Config, aiohttp_client: Any):
    """Create test client with configured app."""
    return aiohttp_client(create_app(test_config))


@pytest.fixture
def sample(storage_root: Path) -> str:
    (storage_root / "sample.txt").write_text("foo\nFOO\nbarfoo\n")
    return b64("sample.txt")


class TestSearchFile:
    """Tests for GET /search-file."""

    @pytest.mark.asyncio
    async def test__default_options__returns_matches(self, client, sample: str) -> None:
        test_client = await client
        response = await test_client.get("/search-file", params={"path": sample, "term": "foo"})

        assert response.status == 200
        assert await response.json() == [
            {"lineNumber": 1, "content": "foo"},
            {"lineNumber": 2, "content": "FOO"},
            {"lineNumber": 3, "content": "barfoo"},
        ]

    @pytest.mark.asyncio
    async def test__options__narrow_matches(self, client, sample: str) -> None:
        test_client = await client
        response = await test_client.get(
            "/search-file",
            params={"path": sample, "term": "foo", "caseSensitive": "true", "wholeWord": "true"},
        )

        assert await response.json() == [{"lineNumber": 1, "content": "foo"}]

    @pytest.mark.asyncio
    async def test__no_match__returns_sentinel(self, client, sample: str) -> None:
        test_client = await client
        response = await test_client.get("/search-file", params={"path": sample, "term": "zzz"})

        assert await response.json() == [{"lineNumber": -1, "content": "No matches found."}]

    @pytest.mark.asyncio
    async def test__missing_path__returns_400(self, client) -> None:
        test_client = await client
        response = await test_client.get("/search-file", params={"term": "foo"})

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__missing_term__returns_400(self, client, sample: str) -> None:
        test_client = await client
        response = await test_client.get("/search-file", params={"path": sample})

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__overlong_term__returns_400(self, client, sample: str) -> None:
        test_client = await client
        response = await test_client.get(
            "/search-file", params={"path": sample, "term": "x" * 1001}
        )

        assert response.status == 400
        assert "too long" in await response.text()

    @pytest.mark.asyncio
    async def test__traversal__returns_400(self, client) -> None:
        test_client = await client
        response = await test_client.get(
            "/search-file", params={"path": b64("../../etc/passwd"), "term": "root"}
        )

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__missing_file__returns_404(self, client) -> None:
        test_client = await client
        response = await test_client.get(
            "/search-file", params={"path": b64("nope.txt"), "term": "x"}
        )

        assert response.status == 404

    @pytest.mark.asyncio
    async def test__directory__returns_400(self, client, storage_root: Path) -> None:
        (storage_root / "docs").mkdir()

        test_client = await client
        response = await test_client.get(
            "/search-file", params={"path": b64("docs"), "term": "x"}
        )

        assert response.status == 400

    @pytest.mark.asyncio
    async def test__slow_search__returns_504(
        self, test_config: Config, aiohttp_client: Any, sample: str
    ) -> None:
        config = replace(test_config, search=SearchConfig(timeout=0.05))

        async def slow_search(*args, **kwargs):
            await asyncio.sleep(5)

        with patch.object(SearchEngine, "search", slow_search):
            test_client = await aiohttp_client(create_app(config))
            response = await test_client.get(
                "/search-file", params={"path": sample, "term": "foo"}
            )

        assert response.status == 504

    @pytest.mark.asyncio
    async def test__cancelled_search__returns_499(
        self, test_config: Config, aiohttp_client: Any, sample: str
    ) -> None:
        async def cancelled_search(*args, **kwargs):
            raise SearchCancelled("sample.txt")

        with patch.object(SearchEngine, "search", cancelled_search):
            test_client = await aiohttp_client(create_app(test_config))
            response = await test_client.get(
                "/search-file", params={"path": sample, "term": "foo"}
            )

        assert response.status == 499
