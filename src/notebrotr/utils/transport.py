"""Nostr client transport utilities.

Factory and connection helpers around ``nostr_sdk.Client``. The relay
session builds its signing client through
[connect_relay][notebrotr.utils.transport.connect_relay] and tears it down
through [shutdown_client][notebrotr.utils.transport.shutdown_client].

Examples:
    ```python
    from notebrotr.utils.transport import connect_relay

    client = await connect_relay("wss://relay.damus.io", keys=my_keys, timeout=10.0)
    ```
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Final

from nostr_sdk import Client, ClientBuilder, NostrSdkError, NostrSigner, RelayUrl


if TYPE_CHECKING:
    from nostr_sdk import Keys


DEFAULT_TIMEOUT: Final[float] = 10.0


logger = logging.getLogger("utils.transport")

# Silence nostr-sdk UniFFI callback stack traces (handled by our code)
logging.getLogger("nostr_sdk").setLevel(logging.CRITICAL)


def create_client(keys: Keys | None = None) -> Client:
    """Create a Nostr client, signing with ``keys`` when given.

    Returns:
        Configured ``Client`` instance (call ``add_relay()`` before use).
    """
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


async def connect_relay(
    url: str,
    keys: Keys | None = None,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> Client:
    """Connect a new client to a single relay.

    Args:
        url: ``ws://`` or ``wss://`` relay URL.
        keys: Optional signing keys.
        timeout: Handshake timeout in seconds.

    Returns:
        Connected ``Client`` ready for use.

    Raises:
        ValueError: If ``url`` is not a valid relay URL.
        OSError: If the relay cannot be reached or the handshake fails.
    """
    try:
        relay_url = RelayUrl.parse(url)
    except NostrSdkError as e:
        raise ValueError(f"Invalid relay URL {url!r}: {e}") from e

    logger.debug("relay_connecting relay=%s", url)

    client = create_client(keys)
    await client.add_relay(relay_url)
    output = await client.try_connect(timedelta(seconds=timeout))

    if relay_url in output.success:
        logger.debug("relay_connected relay=%s", url)
        return client

    error_message = output.failed.get(relay_url, "Unknown error")
    await shutdown_client(client)
    logger.debug("connect_failed relay=%s error=%s", url, error_message)
    raise OSError(f"Connection failed: {url} ({error_message})")


async def shutdown_client(client: Client, timeout: float = DEFAULT_TIMEOUT) -> None:  # noqa: ASYNC109
    """Shut a client down, logging instead of raising on failure."""
    try:
        await asyncio.wait_for(client.shutdown(), timeout=timeout)
    except (OSError, TimeoutError, NostrSdkError) as e:
        logger.warning("client_shutdown_failed error=%s", e)
