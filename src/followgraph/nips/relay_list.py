"""NIP-65 kind 10002 relay list decoder.

Each ``r`` tag names a relay with an optional marker:

* ``["r", url]`` -- read and write
* ``["r", url, "write"]`` -- write only
* ``["r", url, "read"]`` -- read only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from followgraph.models.constants import EventKind
from followgraph.models.relay import Relay

from .base import DecodeResult, check_kind


if TYPE_CHECKING:
    from followgraph.models.event import Event


logger = logging.getLogger(__name__)

_MARKER_INDEX = 2


@dataclass(frozen=True, slots=True)
class RelayListEntry:
    relay: Relay
    read: bool
    write: bool


@dataclass(frozen=True, slots=True)
class RelayList:
    """Relays declared by one author, in tag order, deduplicated by normalized URL."""

    author: str | None
    entries: tuple[RelayListEntry, ...]
    created_at: int

    @property
    def write_relays(self) -> tuple[Relay, ...]:
        """Relays the author publishes to (``write`` or unmarked)."""
        return tuple(entry.relay for entry in self.entries if entry.write)

    @property
    def read_relays(self) -> tuple[Relay, ...]:
        """Relays the author reads from (``read`` or unmarked)."""
        return tuple(entry.relay for entry in self.entries if entry.read)


def decode_relay_list(event: Event) -> DecodeResult[RelayList]:
    """Decode a kind 10002 event.

    Invalid URLs and unknown markers are skipped; for duplicate URLs the
    first entry wins.
    """
    wrong = check_kind(event, EventKind.RELAY_LIST)
    if wrong is not None:
        return wrong

    entries: list[RelayListEntry] = []
    seen: set[str] = set()
    for tag in event.tags:
        if len(tag) < 2 or tag[0] != "r":  # noqa: PLR2004
            continue
        relay = Relay.parse(tag[1])
        if relay is None:
            logger.debug("relay_list_entry_skipped reason=invalid_url url=%s", tag[1])
            continue
        if relay.url in seen:
            continue

        marker = tag[_MARKER_INDEX].strip().lower() if len(tag) > _MARKER_INDEX else ""
        if marker == "read":
            entry = RelayListEntry(relay, read=True, write=False)
        elif marker == "write":
            entry = RelayListEntry(relay, read=False, write=True)
        elif marker == "":
            entry = RelayListEntry(relay, read=True, write=True)
        else:
            logger.debug("relay_list_entry_skipped reason=unknown_marker marker=%s", marker)
            continue

        seen.add(relay.url)
        entries.append(entry)

    return DecodeResult.success(
        RelayList(author=event.pubkey, entries=tuple(entries), created_at=event.created_at)
    )
