"""Tests for lazy import system in notebrotr.__init__."""

from __future__ import annotations

import importlib
import sys
from collections.abc import Iterator

import pytest


@pytest.fixture
def fresh_notebrotr() -> Iterator[None]:
    """Drop cached notebrotr modules, then put the originals back."""
    saved = {name: mod for name, mod in sys.modules.items() if name.startswith("notebrotr")}
    for name in saved:
        del sys.modules[name]
    try:
        yield
    finally:
        for name in [n for n in sys.modules if n.startswith("notebrotr")]:
            del sys.modules[name]
        sys.modules.update(saved)


class TestLazyImports:
    """Test PEP 562 lazy loading in notebrotr.__init__."""

    def test_lazy_import_does_not_eagerly_load(self, fresh_notebrotr: None) -> None:
        importlib.import_module("notebrotr")

        assert "notebrotr.core" not in sys.modules
        assert "notebrotr.models" not in sys.modules
        assert "notebrotr.services" not in sys.modules
        assert "notebrotr.utils" not in sys.modules

    def test_lazy_import_resolves_on_access(self) -> None:
        from notebrotr import EventStore
        from notebrotr.core.store import EventStore as DirectEventStore

        assert EventStore is DirectEventStore

    def test_identity_resolves_from_utils(self) -> None:
        from notebrotr import Identity
        from notebrotr.utils.keys import Identity as DirectIdentity

        assert Identity is DirectIdentity

    def test_lazy_import_caches_after_first_access(self) -> None:
        import notebrotr

        _ = notebrotr.RelaySession
        assert "RelaySession" in vars(notebrotr)

    def test_lazy_import_invalid_attribute(self) -> None:
        import notebrotr

        with pytest.raises(AttributeError, match="no_such_thing"):
            _ = getattr(notebrotr, "no_such_thing")  # noqa: B009

    def test_all_exports_are_in_lazy_imports(self) -> None:
        import notebrotr

        assert set(notebrotr.__all__) == set(notebrotr._LAZY_IMPORTS)

    def test_dir_lists_exports(self) -> None:
        import notebrotr

        assert sorted(dir(notebrotr)) == sorted(notebrotr.__all__)
