"""Unit tests for services.ingester.configs module."""

import pytest
from pydantic import ValidationError

from notebrotr.services.ingester import IngesterConfig


class TestIngesterConfig:
    def test_defaults(self) -> None:
        config = IngesterConfig()
        assert config.kinds == [1]
        assert config.interval == 60.0

    def test_kinds_deduplicated_and_sorted(self) -> None:
        assert IngesterConfig(kinds=[30023, 1, 1, 0]).kinds == [0, 1, 30023]

    def test_empty_kinds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IngesterConfig(kinds=[])

    @pytest.mark.parametrize("kind", [-1, 65_536])
    def test_out_of_range_kind(self, kind: int) -> None:
        with pytest.raises(ValidationError, match="kind must be in"):
            IngesterConfig(kinds=[kind])

    def test_inherits_metrics(self) -> None:
        assert IngesterConfig(metrics={"enabled": True}).metrics.enabled is True
