"""Signing identity management.

The process identity is a single Nostr keypair held in memory for the
lifetime of a run. Its secret is read from a credential file containing
either an ``nsec1...`` bech32 string or a 64-char hex secret. When the file
is absent a fresh keypair is generated; any other read problem is fatal.

Warning:
    The credential file holds a live private key. It is written with mode
    ``0600`` when persisted and is never logged.

Examples:
    ```python
    identity = load_or_create_identity(".nsec")
    print(identity.npub)

    minted = mint_identity()
    print(minted.pubkey, minted.secret)
    ```
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from nostr_sdk import Keys, NostrSdkError
from pydantic import BaseModel, Field

from notebrotr.core.exceptions import ConfigurationError


logger = logging.getLogger("utils.keys")

DEFAULT_IDENTITY_PATH = ".nsec"


class IdentityConfig(BaseModel):
    """Where the process identity lives and whether a generated one is saved."""

    path: str = Field(default=DEFAULT_IDENTITY_PATH, min_length=1, description="Credential file")
    persist_generated: bool = Field(
        default=False,
        description="Write a newly generated secret to path (mode 0600)",
    )


@dataclass(frozen=True, slots=True)
class Identity:
    """Immutable signing identity.

    The public key is always derived from the wrapped secret key.

    Args:
        keys: The ``nostr_sdk.Keys`` pair.
    """

    keys: Keys

    @classmethod
    def generate(cls) -> Identity:
        return cls(Keys.generate())

    @classmethod
    def from_secret(cls, secret: str) -> Identity:
        """Parse an ``nsec1...`` or hex secret.

        Raises:
            ValueError: If the secret cannot be parsed.
        """
        try:
            return cls(Keys.parse(secret))
        except (NostrSdkError, ValueError) as e:
            raise ValueError(f"Invalid secret key: {e}") from e

    @property
    def public_key_hex(self) -> str:
        return self.keys.public_key().to_hex()

    @property
    def npub(self) -> str:
        return self.keys.public_key().to_bech32()

    @property
    def nsec(self) -> str:
        return self.keys.secret_key().to_bech32()

    def __repr__(self) -> str:
        return f"Identity(npub={self.npub!r})"


@dataclass(frozen=True, slots=True)
class MintedIdentity:
    """Bech32 encodings of a throwaway keypair."""

    pubkey: str
    secret: str

    def to_dict(self) -> dict[str, str]:
        return {"pubkey": self.pubkey, "secret": self.secret}


def load_or_create_identity(path: str | Path, *, persist: bool = False) -> Identity:
    """Load the identity stored at ``path``, or generate one if it is absent.

    Only a missing file triggers generation. Permission errors, a directory
    at ``path``, undecodable bytes, empty content and unparseable keys are
    all reported as
    [ConfigurationError][notebrotr.core.exceptions.ConfigurationError].

    Args:
        path: Credential file location.
        persist: When True and the file was absent, write the generated
            ``nsec`` to ``path`` with mode ``0600``.

    Raises:
        ConfigurationError: If the file exists but cannot be used, or the
            generated secret cannot be written.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        identity = Identity.generate()
        logger.warning("identity_generated path=%s persisted=%s", path, persist)
        if persist:
            _write_secret(path, identity.nsec)
        return identity
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read credential file {path}: {e}") from e

    secret = raw.strip()
    if not secret:
        raise ConfigurationError(f"Credential file {path} is empty")

    try:
        return Identity.from_secret(secret)
    except ValueError as e:
        raise ConfigurationError(f"Credential file {path} does not hold a valid key") from e


def _write_secret(path: Path, secret: str) -> None:
    try:
        if path.parent != Path():
            path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(secret + "\n")
    except OSError as e:
        raise ConfigurationError(f"Cannot persist credential file {path}: {e}") from e


def mint_identity() -> MintedIdentity:
    """Generate an unrelated keypair and return only its bech32 encodings."""
    keys = Keys.generate()
    return MintedIdentity(
        pubkey=keys.public_key().to_bech32(),
        secret=keys.secret_key().to_bech32(),
    )
