"""Shared validation helpers for frozen dataclass models.

Private module, not part of the public API. Used exclusively by
``__post_init__`` methods in sibling model modules to enforce runtime
type constraints on wire data received from untrusted relays.
"""

from __future__ import annotations

import re
from typing import Any

from .constants import EVENT_KIND_MAX


_HEX_64 = re.compile(r"^[0-9a-f]{64}$")
_HEX_128 = re.compile(r"^[0-9a-f]{128}$")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_kind(value: Any, name: str) -> None:
    """Raise if *value* is not an event kind in ``[0, 65535]``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= EVENT_KIND_MAX:
        raise ValueError(f"{name} out of valid range (0-{EVENT_KIND_MAX}): {value}")


def validate_hex64(value: Any, name: str) -> None:
    """Raise if *value* is not a lowercase 64-character hex string."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not _HEX_64.match(value):
        raise ValueError(f"{name} must be 64 lowercase hex characters")


def validate_signature(value: Any, name: str) -> None:
    """Raise if *value* is not a lowercase 128-character hex string."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not _HEX_128.match(value):
        raise ValueError(f"{name} must be 128 lowercase hex characters")


def is_hex64(value: Any) -> bool:
    """Return True if *value* is a lowercase 64-character hex string."""
    return isinstance(value, str) and bool(_HEX_64.match(value))


def freeze_tags(value: Any, name: str) -> tuple[tuple[str, ...], ...]:
    """Convert a list of string lists into nested tuples.

    Raises:
        TypeError: If *value* is not a sequence of sequences of strings.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise TypeError(f"{name} must be a list of lists, got {type(value).__name__}")
    frozen: list[tuple[str, ...]] = []
    for tag in value:
        if isinstance(tag, (str, bytes)) or not isinstance(tag, (list, tuple)):
            raise TypeError(f"{name} entries must be lists, got {type(tag).__name__}")
        if not all(isinstance(item, str) for item in tag):
            raise TypeError(f"{name} entries must contain only strings")
        frozen.append(tuple(tag))
    return tuple(frozen)
