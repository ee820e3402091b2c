"""Ingester service configuration models.

See Also:
    [Ingester][notebrotr.services.ingester.Ingester]: The service class that
        consumes this configuration.
    [BaseServiceConfig][notebrotr.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, ``max_consecutive_failures``,
        and ``metrics`` fields.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from notebrotr.core.base_service import BaseServiceConfig
from notebrotr.models import EVENT_KIND_MAX, EventKind


class IngesterConfig(BaseServiceConfig):
    """Configuration for the Ingester service.

    Attributes:
        kinds: Event kinds committed to the store. Anything else is ignored.
    """

    kinds: list[int] = Field(default_factory=lambda: [int(EventKind.TEXT_NOTE)], min_length=1)

    @field_validator("kinds")
    @classmethod
    def _validate_kinds(cls, v: list[int]) -> list[int]:
        for kind in v:
            if not 0 <= kind <= EVENT_KIND_MAX:
                raise ValueError(f"kind must be in 0..{EVENT_KIND_MAX}, got {kind}")
        return sorted(set(v))
