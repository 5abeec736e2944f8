"""Builders for the events followgraph publishes.

Builders return unsigned [Event][followgraph.models.event.Event] objects;
signing is delegated to a [Signer][followgraph.utils.signer.Signer].
"""

from __future__ import annotations

from collections.abc import Iterable
from time import time

from followgraph.models.constants import EventKind
from followgraph.models.event import Event


# =============================================================================
# Kind 3 (NIP-02)
# =============================================================================


def build_contact_list_event(
    author: str,
    contacts: Iterable[str],
    *,
    created_at: int | None = None,
    content: str = "",
) -> Event:
    """Build an unsigned kind 3 contact list.

    One ``["p", pubkey]`` tag per contact in the given order; repeated
    contacts keep their first position.

    Args:
        author: Hex public key expected to sign the event.
        contacts: Contact public keys (hex).
        created_at: Event timestamp; defaults to now.
        content: Event content (legacy relay map JSON, usually empty).
    """
    tags = [["p", pubkey] for pubkey in dict.fromkeys(contacts)]
    return Event(
        created_at=int(time()) if created_at is None else created_at,
        kind=EventKind.CONTACTS,
        tags=tags,
        content=content,
        pubkey=author,
    )
