"""Tests for the shared clipboard."""

import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from fileshelf.core.clipboard import CLIPBOARD_FILENAME, ClipboardStore
from fileshelf.core.state import StateDirectory
from fileshelf.errors import StorageFailure


class TestInMemory:
    def test__new_store__is_empty(self) -> None:
        assert ClipboardStore().get() == ""

    def test__set__is_returned_verbatim(self) -> None:
        store = ClipboardStore()
        text = "line one\n  línea dos\t\n"

        store.set(text)

        assert store.get() == text

    def test__set__replaces_previous_content(self) -> None:
        store = ClipboardStore()
        store.set("first")
        store.set("second")

        assert store.get() == "second"

    def test__repeated_set__is_idempotent(self) -> None:
        store = ClipboardStore()
        store.set("same")
        store.set("same")

        assert store.get() == "same"
        assert not store.persistent

    def test__concurrent_sets__leave_one_complete_value(self) -> None:
        store = ClipboardStore()
        values = [f"value-{i}" * 50 for i in range(20)]

        threads = [threading.Thread(target=store.set, args=(v,)) for v in values]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.get() in values


class TestPersistent:
    def test__content__survives_restart(self, tmp_path: Path) -> None:
        state = StateDirectory(tmp_path / ".fileshelf")
        ClipboardStore(state).set("keep me")

        assert ClipboardStore(state).get() == "keep me"
        assert state.path_for(CLIPBOARD_FILENAME).read_text(encoding="utf-8") == "keep me"

    def test__failed_write__keeps_previous_content(self, tmp_path: Path) -> None:
        store = ClipboardStore(StateDirectory(tmp_path / ".fileshelf"))
        store.set("before")

        with patch.object(StateDirectory, "write_text", side_effect=StorageFailure("disk full")):
            with pytest.raises(StorageFailure):
                store.set("after")

        assert store.get() == "before"
