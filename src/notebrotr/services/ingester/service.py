"""Ingestion loop committing relay notifications to the event store.

Each [EventNotification][notebrotr.models.notification.EventNotification]
of a configured kind is handed to
[EventStore.put_if_absent()][notebrotr.core.store.EventStore.put_if_absent],
which makes redelivery harmless. A failed write is logged and counted, and
the loop moves on to the next notification. Everything else is ignored.

``consume()`` accepts any async iterable, so tests can feed a synthetic
sequence without a relay.

See Also:
    [RelaySession][notebrotr.services.relay.RelaySession]: Source of the
        notification sequence.
    [BaseService][notebrotr.core.base_service.BaseService]: Abstract base
        class providing lifecycle and metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from notebrotr.core.base_service import BaseService
from notebrotr.core.exceptions import StorageWriteError
from notebrotr.models import EventNotification
from notebrotr.models.constants import ServiceName

from .configs import IngesterConfig


if TYPE_CHECKING:
    from collections.abc import AsyncIterable

    from notebrotr.core.store import EventStore
    from notebrotr.models import Notification
    from notebrotr.services.relay import RelaySession


@dataclass(slots=True)
class IngestStats:
    """Per-run counters of the ingestion loop."""

    received: int = 0
    stored: int = 0
    duplicates: int = 0
    failed: int = 0
    ignored: int = 0


class Ingester(BaseService[IngesterConfig]):
    """Drains the relay notification sequence into the store.

    Lifecycle:
        1. ``run()``: consume ``session.notifications()`` until it ends or
           shutdown is requested.
        2. The session's ``close()`` ends the sequence, which lets ``run()``
           return.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.INGESTER
    CONFIG_CLASS: ClassVar[type[IngesterConfig]] = IngesterConfig

    def __init__(
        self,
        store: EventStore,
        session: RelaySession,
        config: IngesterConfig | None = None,
    ) -> None:
        super().__init__(store, config)
        self._session = session
        self._kinds = frozenset(self._config.kinds)

    async def run(self) -> None:
        """Consume the session's notifications until the sequence ends."""
        stats = await self.consume(self._session.notifications())
        self._logger.info(
            "ingest_finished",
            received=stats.received,
            stored=stats.stored,
            duplicates=stats.duplicates,
            failed=stats.failed,
            ignored=stats.ignored,
        )

    async def consume(self, notifications: AsyncIterable[Notification]) -> IngestStats:
        """Process ``notifications`` in arrival order.

        Returns when the iterable is exhausted or shutdown is requested.
        """
        stats = IngestStats()
        async for notification in notifications:
            stats.received += 1
            await self._handle(notification, stats)
            if not self.is_running:
                break
        return stats

    async def _handle(self, notification: Notification, stats: IngestStats) -> None:
        if not isinstance(notification, EventNotification) or (
            notification.event.kind_value not in self._kinds
        ):
            stats.ignored += 1
            self.inc_counter("notifications_ignored")
            self._logger.debug("notification_ignored", detail=_describe(notification))
            return

        event = notification.event
        try:
            written = await self._store.put_if_absent(event)
        except StorageWriteError as e:
            stats.failed += 1
            self.inc_counter("events_failed")
            self._logger.error("event_store_failed", id=event.id_hex, error=str(e))
            return

        if written:
            stats.stored += 1
            self.inc_counter("events_stored")
            self._logger.debug("event_stored", id=event.id_hex, kind=event.kind_value)
        else:
            stats.duplicates += 1
            self.inc_counter("events_duplicate")
            self._logger.debug("event_duplicate", id=event.id_hex)


def _describe(notification: Notification) -> str:
    if isinstance(notification, EventNotification):
        return f"event kind={notification.event.kind_value} id={notification.event.id_hex}"
    return notification.describe()
