"""NIP-02 kind 3 contact list decoder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from followgraph.models.constants import EventKind
from followgraph.utils.keys import is_valid_public_key

from .base import DecodeResult, check_kind


if TYPE_CHECKING:
    from followgraph.models.event import Event


@dataclass(frozen=True, slots=True)
class ContactList:
    """Distinct contacts of one author, in first-seen tag order.

    Ordering is kept for display; membership tests use a set.

    Attributes:
        author: Author public key, when the event carried one.
        contacts: Distinct contact public keys.
        created_at: Timestamp of the contact list event.
        skipped: Number of ``p`` tags dropped as duplicates or invalid keys.
    """

    author: str | None
    contacts: tuple[str, ...]
    created_at: int
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.contacts)

    def __contains__(self, pubkey: object) -> bool:
        return pubkey in self.as_set()

    def as_set(self) -> frozenset[str]:
        return frozenset(self.contacts)


def decode_contacts(event: Event) -> DecodeResult[ContactList]:
    """Decode a kind 3 event into its contact set.

    Every tag whose first element is ``"p"`` contributes its second element.
    Values that are not valid public keys are dropped, never raised.
    """
    wrong = check_kind(event, EventKind.CONTACTS)
    if wrong is not None:
        return wrong

    seen: set[str] = set()
    contacts: list[str] = []
    skipped = 0
    for value in event.tag_values("p"):
        pubkey = value.strip().lower()
        if pubkey in seen or not is_valid_public_key(pubkey):
            skipped += 1
            continue
        seen.add(pubkey)
        contacts.append(pubkey)

    return DecodeResult.success(
        ContactList(
            author=event.pubkey,
            contacts=tuple(contacts),
            created_at=event.created_at,
            skipped=skipped,
        )
    )
