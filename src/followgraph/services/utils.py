"""Shared helpers for the services layer."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from followgraph.core.exceptions import PreconditionError
from followgraph.utils.keys import parse_public_key


def require_pubkey(identity: str, name: str = "identity") -> str:
    """Parse *identity* (hex or npub) into hex, or raise.

    Raises:
        PreconditionError: If *identity* is empty or not a valid public key.
    """
    try:
        return parse_public_key(identity)
    except ValueError as e:
        raise PreconditionError(f"{name}: {e}") from e


def chunked(values: Iterable[str], size: int) -> Iterator[tuple[str, ...]]:
    """Split *values* into tuples of at most *size* items, preserving order."""
    chunk: list[str] = []
    for value in values:
        chunk.append(value)
        if len(chunk) >= size:
            yield tuple(chunk)
            chunk = []
    if chunk:
        yield tuple(chunk)
