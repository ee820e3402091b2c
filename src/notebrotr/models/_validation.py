"""Shared validation helpers for frozen dataclass models.

Private module. Used by ``__post_init__`` methods in sibling model modules
so that invalid instances never escape their constructor.
"""

from __future__ import annotations

import re
from typing import Any


_HEX_PUBKEY_RE = re.compile(r"^[0-9a-f]{64}$")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_optional_count(value: Any, name: str) -> None:
    """Raise if *value* is neither ``None`` nor a non-negative ``int`` (``bool`` excluded)."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_optional_pubkey(value: Any, name: str) -> None:
    """Raise if *value* is neither ``None`` nor a lowercase 64-char hex public key."""
    if value is None:
        return
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not _HEX_PUBKEY_RE.match(value):
        raise ValueError(f"{name} must be a 64-char lowercase hex public key")
