"""Tests for the hidden-files visibility flag."""

from fileshelf.core.flags import VisibilityFlags


def test__default__hides_hidden_files() -> None:
    assert VisibilityFlags().get() is False


def test__toggle__returns_new_value() -> None:
    flags = VisibilityFlags()

    assert flags.toggle() is True
    assert flags.get() is True


def test__double_toggle__restores_value() -> None:
    flags = VisibilityFlags(show_hidden=True)

    flags.toggle()
    flags.toggle()

    assert flags.get() is True


def test__disabled__never_shows_hidden_files() -> None:
    flags = VisibilityFlags(show_hidden=True, disabled=True)

    assert flags.get() is False
    assert flags.toggle() is False
    assert flags.disabled
