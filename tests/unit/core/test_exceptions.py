"""Unit tests for the notebrotr exception hierarchy.

Tests verify:
- issubclass relationships match the documented tree
- except clauses catch the expected subclasses
- all exceptions accept a message string
"""

import pytest

from notebrotr.core.exceptions import (
    ConfigurationError,
    ConnectivityError,
    NotebrotrError,
    PublishingError,
    RelayConnectionError,
    StorageError,
    StorageQueryError,
    StorageUnavailableError,
    StorageWriteError,
)


ALL_CONCRETE = (
    ConfigurationError,
    StorageUnavailableError,
    StorageWriteError,
    StorageQueryError,
    RelayConnectionError,
    PublishingError,
)

ALL_CLASSES = (NotebrotrError, StorageError, ConnectivityError, *ALL_CONCRETE)

STORAGE_ERRORS = (StorageUnavailableError, StorageWriteError, StorageQueryError)


# =============================================================================
# Hierarchy Tests
# =============================================================================


class TestExceptionHierarchy:
    """Verify issubclass relationships match the documented tree."""

    @pytest.mark.parametrize("exc_cls", ALL_CONCRETE)
    def test_all_concrete_inherit_from_base(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, NotebrotrError)

    @pytest.mark.parametrize("exc_cls", STORAGE_ERRORS)
    def test_storage_errors(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, StorageError)

    def test_relay_connection_error_is_connectivity_error(self) -> None:
        assert issubclass(RelayConnectionError, ConnectivityError)


class TestExceptionSiblingIndependence:
    """Verify sibling branches are NOT related."""

    def test_storage_not_connectivity(self) -> None:
        assert not issubclass(StorageError, ConnectivityError)
        assert not issubclass(ConnectivityError, StorageError)

    def test_write_not_query(self) -> None:
        assert not issubclass(StorageWriteError, StorageQueryError)
        assert not issubclass(StorageQueryError, StorageWriteError)

    def test_publishing_not_connectivity(self) -> None:
        assert not issubclass(PublishingError, ConnectivityError)

    def test_configuration_not_storage(self) -> None:
        assert not issubclass(ConfigurationError, StorageError)


# =============================================================================
# Catching Tests
# =============================================================================


class TestExceptionCatching:
    @pytest.mark.parametrize("exc_cls", ALL_CONCRETE)
    def test_base_catches_all_concrete(self, exc_cls: type) -> None:
        with pytest.raises(NotebrotrError):
            raise exc_cls("test")

    @pytest.mark.parametrize("exc_cls", STORAGE_ERRORS)
    def test_storage_error_catches_subtypes(self, exc_cls: type) -> None:
        with pytest.raises(StorageError):
            raise exc_cls("test")

    def test_storage_error_does_not_catch_publishing(self) -> None:
        with pytest.raises(PublishingError):
            try:
                raise PublishingError("test")
            except StorageError:
                pytest.fail("StorageError should not catch PublishingError")


# =============================================================================
# Instantiation Tests
# =============================================================================


class TestExceptionInstantiation:
    @pytest.mark.parametrize("exc_cls", ALL_CLASSES)
    def test_accepts_message(self, exc_cls: type) -> None:
        exc = exc_cls("something went wrong")
        assert str(exc) == "something went wrong"

    @pytest.mark.parametrize("exc_cls", ALL_CLASSES)
    def test_accepts_empty_message(self, exc_cls: type) -> None:
        assert isinstance(exc_cls(), NotebrotrError)
