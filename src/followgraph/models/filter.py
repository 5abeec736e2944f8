"""Declarative relay query filter.

A [QueryFilter][followgraph.models.filter.QueryFilter] is the predicate sent
to every relay in a fan-out query. Relays decide independently how to
match it; this model only validates and carries the values.

See Also:
    [to_nostr_filter()][followgraph.utils.protocol.to_nostr_filter]: Converts
        a QueryFilter to a ``nostr_sdk.Filter``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from ._validation import validate_hex64, validate_kind, validate_timestamp


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """Immutable NIP-01 filter.

    Attributes:
        kinds: Event kinds to match.
        authors: Author public keys (hex).
        ids: Event IDs (hex).
        p_tags: Values of ``#p`` (referenced public keys).
        e_tags: Values of ``#e`` (referenced event IDs).
        since: Inclusive lower bound on ``created_at``.
        until: Inclusive upper bound on ``created_at``.
        limit: Maximum number of events per relay.
    """

    kinds: tuple[int, ...] = ()
    authors: tuple[str, ...] = ()
    ids: tuple[str, ...] = ()
    p_tags: tuple[str, ...] = ()
    e_tags: tuple[str, ...] = ()
    since: int | None = None
    until: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        for name in ("kinds", "authors", "ids", "p_tags", "e_tags"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        for kind in self.kinds:
            validate_kind(kind, "kinds")
        for name in ("authors", "ids", "p_tags", "e_tags"):
            for value in getattr(self, name):
                validate_hex64(value, name)
        if self.since is not None:
            validate_timestamp(self.since, "since")
        if self.until is not None:
            validate_timestamp(self.until, "until")
        if self.since is not None and self.until is not None and self.since > self.until:
            raise ValueError(f"since ({self.since}) must be <= until ({self.until})")
        if self.limit is not None:
            validate_timestamp(self.limit, "limit")

    def with_limit(self, limit: int) -> QueryFilter:
        """Return a copy with *limit* set."""
        return replace(self, limit=limit)

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 wire representation (``#p``/``#e`` keys)."""
        data: dict[str, Any] = {}
        if self.kinds:
            data["kinds"] = list(self.kinds)
        if self.authors:
            data["authors"] = list(self.authors)
        if self.ids:
            data["ids"] = list(self.ids)
        if self.p_tags:
            data["#p"] = list(self.p_tags)
        if self.e_tags:
            data["#e"] = list(self.e_tags)
        if self.since is not None:
            data["since"] = self.since
        if self.until is not None:
            data["until"] = self.until
        if self.limit is not None:
            data["limit"] = self.limit
        return data
