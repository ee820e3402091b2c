"""Single-relay session bound to the process identity.

The session owns the signing ``nostr_sdk.Client``, the one authorial
subscription of the run and the pull-based notification sequence fed by
the SDK's callback interface.

State machine:

```text
DISCONNECTED --connect()--> CONNECTING --> CONNECTED --subscribe()--> SUBSCRIBED
      ^                          |                                        |
      +------ failure -----------+                                        |
      +-------------------------------- close() --------------------------+
```

There is no reconnect: once closed, the notification sequence has ended
and a new session must be created.

See Also:
    [Ingester][notebrotr.services.ingester.Ingester]: Consumes
        ``notifications()``.
    [Api][notebrotr.services.api.Api]: Calls ``publish()``.
"""

from __future__ import annotations

import asyncio
import contextlib
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from nostr_sdk import Event as NostrEvent
from nostr_sdk import EventBuilder, HandleNotification, NostrSdkError

from notebrotr.core.exceptions import PublishingError, RelayConnectionError
from notebrotr.core.logger import Logger
from notebrotr.models import Event, EventNotification, OtherNotification
from notebrotr.utils.transport import connect_relay, shutdown_client

from .configs import RelayConfig


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from nostr_sdk import Client

    from notebrotr.models import EventFilter, Notification
    from notebrotr.utils.keys import Identity


_END: Final = object()


class SessionState(StrEnum):
    """Lifecycle states of a [RelaySession][notebrotr.services.relay.RelaySession]."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"


class _QueueNotificationHandler(HandleNotification):
    """Pushes SDK callbacks onto the session queue in arrival order.

    nostr-sdk awaits these callbacks, so they only enqueue and never raise.
    Returning False keeps the notification loop alive.
    """

    def __init__(
        self,
        enqueue: Callable[[Notification], None],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._enqueue = enqueue
        self._loop = loop

    async def handle(self, relay_url: Any, subscription_id: str, event: NostrEvent) -> bool:
        item = EventNotification(Event(event), str(relay_url), subscription_id)
        self._loop.call_soon_threadsafe(self._enqueue, item)
        return False

    async def handle_msg(self, relay_url: Any, msg: Any) -> bool:
        self._loop.call_soon_threadsafe(self._enqueue, OtherNotification(str(relay_url), msg))
        return False


class RelaySession:
    """Connection, subscription and publishing against one relay.

    Example:
        session = RelaySession(identity, RelayConfig(url="wss://relay.damus.io"))
        await session.connect()
        await session.subscribe(EventFilter(author=identity.public_key_hex, kind=1))
        async for notification in session.notifications():
            ...
        await session.close()
    """

    def __init__(self, identity: Identity, config: RelayConfig | None = None) -> None:
        self._identity = identity
        self._config = config or RelayConfig()
        self._logger = Logger("relay")
        self._state = SessionState.DISCONNECTED
        self._client: Client | None = None
        self._subscription_id: str | None = None
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._handler_task: asyncio.Task[None] | None = None
        self._pending_sends: set[asyncio.Task[None]] = set()
        self._notifications_taken = False
        self._ended = False

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def subscription_id(self) -> str | None:
        return self._subscription_id

    @property
    def pending_sends(self) -> int:
        """Number of fire-and-forget sends not yet finished."""
        return len(self._pending_sends)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Open a signing client to the configured relay.

        Raises:
            RuntimeError: If the session is not ``DISCONNECTED`` or has
                already been closed.
            RelayConnectionError: If the relay cannot be reached or the
                handshake fails.
        """
        if self._state is not SessionState.DISCONNECTED or self._ended:
            raise RuntimeError(f"Cannot connect a session in state {self._state}")

        self._state = SessionState.CONNECTING
        url = self._config.url
        try:
            self._client = await connect_relay(
                url, keys=self._identity.keys, timeout=self._config.connect_timeout
            )
        except (OSError, TimeoutError, ValueError, NostrSdkError) as e:
            self._state = SessionState.DISCONNECTED
            self._logger.error("relay_connect_failed", relay=url, error=str(e))
            raise RelayConnectionError(f"Cannot connect to {url}: {e}") from e

        self._state = SessionState.CONNECTED
        self._logger.info("relay_connected", relay=url, npub=self._identity.npub)

    async def subscribe(self, event_filter: EventFilter) -> str:
        """Register ``event_filter`` on the relay and start draining callbacks.

        Returns:
            The subscription id assigned by the client.

        Raises:
            RuntimeError: If the session is not ``CONNECTED``.
            RelayConnectionError: If the subscription request fails.
        """
        if self._state is not SessionState.CONNECTED or self._client is None:
            raise RuntimeError(f"Cannot subscribe a session in state {self._state}")

        client = self._client
        handler = _QueueNotificationHandler(self._enqueue, asyncio.get_running_loop())
        handler_task = asyncio.create_task(client.handle_notifications(handler))

        try:
            output = await asyncio.wait_for(
                client.subscribe(event_filter.to_nostr_filter()),
                timeout=self._config.connect_timeout,
            )
        except (OSError, TimeoutError, NostrSdkError) as e:
            handler_task.cancel()
            self._logger.error("subscribe_failed", relay=self._config.url, error=str(e))
            raise RelayConnectionError(f"Subscription to {self._config.url} failed: {e}") from e

        self._handler_task = handler_task
        handler_task.add_done_callback(self._on_handler_done)

        self._subscription_id = str(output.id)
        self._state = SessionState.SUBSCRIBED
        self._logger.info(
            "subscribed",
            relay=self._config.url,
            subscription_id=self._subscription_id,
            author=event_filter.author,
            kind=event_filter.kind,
            since=event_filter.since,
        )
        return self._subscription_id

    def notifications(self) -> AsyncIterator[Notification]:
        """Return the notification sequence. It can be taken only once.

        The sequence yields items in arrival order and ends when the client
        stops delivering or the session is closed.

        Raises:
            RuntimeError: If the sequence was already taken.
        """
        if self._notifications_taken:
            raise RuntimeError("notifications() can only be consumed once per session")
        self._notifications_taken = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Notification]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            yield item

    async def close(self) -> None:
        """Drain pending sends, shut the client down and end the sequence. Idempotent."""
        timeout = self._config.close_timeout

        if self._pending_sends:
            _, still_pending = await asyncio.wait(set(self._pending_sends), timeout=timeout)
            for task in still_pending:
                task.cancel()
            if still_pending:
                self._logger.warning("pending_sends_dropped", count=len(still_pending))

        client, self._client = self._client, None
        if client is not None:
            await shutdown_client(client, timeout=timeout)

        handler_task, self._handler_task = self._handler_task, None
        if handler_task is not None and not handler_task.done():
            handler_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await handler_task

        was_open = self._state is not SessionState.DISCONNECTED
        self._state = SessionState.DISCONNECTED
        self._end_sequence()
        if was_open:
            self._logger.info("relay_closed", relay=self._config.url)

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    async def publish(self, content: str) -> str:
        """Sign a kind-1 text note with the session keys and send it.

        Returns:
            Hex id of the signed event.

        Raises:
            PublishingError: If the session is not connected, signing fails,
                or (with ``wait_for_ack``) the relay rejects or times out
                the send.
        """
        client = self._client
        if client is None or self._state not in (SessionState.CONNECTED, SessionState.SUBSCRIBED):
            raise PublishingError("Relay session is not connected")

        try:
            event = EventBuilder.text_note(content).sign_with_keys(self._identity.keys)
        except NostrSdkError as e:
            raise PublishingError(f"Cannot sign note: {e}") from e

        event_id = event.id().to_hex()
        if self._config.wait_for_ack:
            await self._send(client, event)
        else:
            task = asyncio.create_task(self._send_in_background(client, event))
            self._pending_sends.add(task)
            task.add_done_callback(self._pending_sends.discard)

        self._logger.debug("note_published", id=event_id, wait_for_ack=self._config.wait_for_ack)
        return event_id

    async def _send(self, client: Client, event: NostrEvent) -> None:
        event_id = event.id().to_hex()
        try:
            output = await asyncio.wait_for(
                client.send_event(event), timeout=self._config.send_timeout
            )
        except TimeoutError as e:
            raise PublishingError(f"Send of {event_id} timed out") from e
        except (OSError, NostrSdkError) as e:
            raise PublishingError(f"Send of {event_id} failed: {e}") from e

        if not output.success:
            reasons = "; ".join(str(reason) for reason in output.failed.values()) or "no relay accepted"
            raise PublishingError(f"Relay rejected {event_id}: {reasons}")

    async def _send_in_background(self, client: Client, event: NostrEvent) -> None:
        try:
            await self._send(client, event)
        except PublishingError as e:
            self._logger.warning("publish_failed", relay=self._config.url, error=str(e))

    # -------------------------------------------------------------------------
    # Notification plumbing
    # -------------------------------------------------------------------------

    def _enqueue(self, item: Notification) -> None:
        if not self._ended:
            self._queue.put_nowait(item)

    def _end_sequence(self) -> None:
        if not self._ended:
            self._ended = True
            self._queue.put_nowait(_END)

    def _on_handler_done(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled() and task.exception() is not None:
            self._logger.warning("notification_loop_failed", error=str(task.exception()))
        else:
            self._logger.debug("notification_loop_stopped")
        self._end_sequence()
