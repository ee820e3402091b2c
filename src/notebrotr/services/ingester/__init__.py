"""Ingestion loop committing relay notifications to the event store.

See Also:
    [Ingester][notebrotr.services.ingester.service.Ingester]: The service class.
    [IngesterConfig][notebrotr.services.ingester.configs.IngesterConfig]: Service configuration.
"""

from .configs import IngesterConfig
from .service import Ingester, IngestStats


__all__ = ["IngestStats", "Ingester", "IngesterConfig"]
