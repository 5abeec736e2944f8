"""
Immutable Nostr event envelope.

The envelope is the only shape relays return: ``{id?, pubkey?, created_at,
kind, tags, content, sig?}``. Its domain meaning is determined entirely by
``(kind, tags, content)``; interpretation lives in [followgraph.nips][].

Identifier fields are optional so the same type carries unsigned events on
their way to a [Signer][followgraph.utils.keys.Signer].

See Also:
    [followgraph.utils.protocol][]: Converts to and from ``nostr_sdk.Event``.
    [followgraph.services.fanout][]: Deduplicates events by
        [dedup_key][followgraph.models.event.Event.dedup_key].
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ._validation import (
    freeze_tags,
    validate_hex64,
    validate_instance,
    validate_kind,
    validate_signature,
    validate_timestamp,
)


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable Nostr event.

    Tags are stored as nested tuples. Lists passed to the constructor are
    converted, so ``Event(..., tags=[["p", pk]])`` is accepted.

    Attributes:
        created_at: Unix timestamp (seconds).
        kind: Integer event kind in ``[0, 65535]``.
        tags: Positional tag arrays; first element is the tag name.
        content: Raw content string.
        id: Event ID (64 lowercase hex), ``None`` when unsigned.
        pubkey: Author public key (64 lowercase hex), ``None`` when unknown.
        sig: Schnorr signature (128 lowercase hex), ``None`` when unsigned.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a field has an invalid value.

    Examples:
        ```python
        event = Event.from_dict({"kind": 3, "created_at": 1, "tags": [["p", pk]], "content": ""})
        event.tag_values("p")   # (pk,)
        ```
    """

    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...] = ()
    content: str = ""
    id: str | None = None
    pubkey: str | None = None
    sig: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        validate_timestamp(self.created_at, "created_at")
        validate_kind(self.kind, "kind")
        validate_instance(self.content, str, "content")
        object.__setattr__(self, "tags", freeze_tags(self.tags, "tags"))
        if self.id is not None:
            validate_hex64(self.id, "id")
        if self.pubkey is not None:
            validate_hex64(self.pubkey, "pubkey")
        if self.sig is not None:
            validate_signature(self.sig, "sig")

    @property
    def is_signed(self) -> bool:
        """Whether the event carries all authenticity fields."""
        return self.id is not None and self.pubkey is not None and self.sig is not None

    @property
    def dedup_key(self) -> str:
        """Identity used to merge copies of this event received from several relays.

        The event ID when present. Unsigned events fall back to a canonical
        serialization of the NIP-01 commitment fields.
        """
        if self.id is not None:
            return self.id
        return json.dumps(
            [0, self.pubkey, self.created_at, self.kind, self.tags, self.content],
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def tag_values(self, name: str) -> tuple[str, ...]:
        """Return the first parameter of every tag named *name*, in order."""
        return tuple(tag[1] for tag in self.tags if len(tag) >= 2 and tag[0] == name)  # noqa: PLR2004

    def first_tag_value(self, name: str) -> str | None:
        """Return the first parameter of the first tag named *name*."""
        values = self.tag_values(name)
        return values[0] if values else None

    def last_tag_value(self, name: str) -> str | None:
        """Return the first parameter of the last tag named *name*."""
        values = self.tag_values(name)
        return values[-1] if values else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the NIP-01 JSON object shape, omitting absent identifiers."""
        data: dict[str, Any] = {
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.pubkey is not None:
            data["pubkey"] = self.pubkey
        if self.sig is not None:
            data["sig"] = self.sig
        return data

    def to_json(self) -> str:
        """Serialize to a compact JSON string."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an Event from a NIP-01 JSON object.

        Args:
            data: Mapping with ``created_at``, ``kind``, and optionally
                ``tags``, ``content``, ``id``, ``pubkey``, ``sig``.

        Raises:
            TypeError: If *data* is not a mapping or a field has the wrong type.
            ValueError: If a required field is missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"event must be a Mapping, got {type(data).__name__}")
        try:
            created_at = data["created_at"]
            kind = data["kind"]
        except KeyError as e:
            raise ValueError(f"event missing required field: {e.args[0]}") from None
        return cls(
            created_at=created_at,
            kind=kind,
            tags=data.get("tags") or (),
            content=data.get("content", ""),
            id=data.get("id"),
            pubkey=data.get("pubkey"),
            sig=data.get("sig"),
        )

    @classmethod
    def from_json(cls, raw: str) -> Event:
        """Parse an Event from a JSON string.

        Raises:
            ValueError: If *raw* is not valid JSON or not a valid event.
        """
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise ValueError(f"invalid event JSON: {e}") from None
        return cls.from_dict(data)
