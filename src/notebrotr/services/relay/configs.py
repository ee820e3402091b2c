"""Relay session configuration models.

See Also:
    [RelaySession][notebrotr.services.relay.RelaySession]: The session class
        that consumes this configuration.
"""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


DEFAULT_RELAY_URL = "wss://relay.damus.io"


class RelayConfig(BaseModel):
    """Configuration for the single relay connection.

    Attributes:
        url: ``ws://`` or ``wss://`` relay URL.
        connect_timeout: Handshake timeout in seconds.
        send_timeout: How long a publish waits for the relay's answer.
        wait_for_ack: When True, ``publish()`` awaits the relay's answer and
            raises on rejection. When False, sends run in the background.
        close_timeout: Upper bound for draining pending sends and shutting
            the client down.
    """

    url: str = Field(default=DEFAULT_RELAY_URL, min_length=1, description="Relay URL")
    connect_timeout: float = Field(default=10.0, ge=0.1, le=300.0)
    send_timeout: float = Field(default=10.0, ge=0.1, le=300.0)
    wait_for_ack: bool = Field(default=False)
    close_timeout: float = Field(default=5.0, ge=0.1, le=300.0)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        parsed = urlparse(v.strip())
        if parsed.scheme not in ("ws", "wss") or not parsed.netloc:
            raise ValueError(f"Relay URL must be ws:// or wss:// with a host: {v!r}")
        return v.strip()
