"""Decoders for the interaction kinds used in scoring.

* kind 1 text notes (NIP-01): ``p`` tags are mentions and reply targets.
* kind 6 reposts (NIP-18): the ``e`` tag references the reposted note.
* kind 7 reactions (NIP-25): the last ``e`` tag references the reacted note.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from followgraph.models.constants import EventKind

from .base import DecodeResult, ParseErrorKind, check_kind


if TYPE_CHECKING:
    from followgraph.models.event import Event


@dataclass(frozen=True, slots=True)
class TextNote:
    id: str | None
    author: str | None
    mentions: tuple[str, ...]
    created_at: int


@dataclass(frozen=True, slots=True)
class Reaction:
    author: str | None
    target_event: str
    content: str


@dataclass(frozen=True, slots=True)
class Repost:
    author: str | None
    target_event: str


def decode_text_note(event: Event) -> DecodeResult[TextNote]:
    """Decode a kind 1 note; ``mentions`` holds the distinct ``p`` tag values."""
    wrong = check_kind(event, EventKind.TEXT_NOTE)
    if wrong is not None:
        return wrong
    return DecodeResult.success(
        TextNote(
            id=event.id,
            author=event.pubkey,
            mentions=tuple(dict.fromkeys(event.tag_values("p"))),
            created_at=event.created_at,
        )
    )


def decode_reaction(event: Event) -> DecodeResult[Reaction]:
    """Decode a kind 7 reaction; fails when no ``e`` tag names the target."""
    wrong = check_kind(event, EventKind.REACTION)
    if wrong is not None:
        return wrong
    target = event.last_tag_value("e")
    if not target:
        return DecodeResult.failure(ParseErrorKind.INVALID_SHAPE, "reaction without e tag")
    return DecodeResult.success(
        Reaction(author=event.pubkey, target_event=target, content=event.content)
    )


def decode_repost(event: Event) -> DecodeResult[Repost]:
    """Decode a kind 6 repost; fails when no ``e`` tag names the target."""
    wrong = check_kind(event, EventKind.REPOST)
    if wrong is not None:
        return wrong
    target = event.first_tag_value("e")
    if not target:
        return DecodeResult.failure(ParseErrorKind.INVALID_SHAPE, "repost without e tag")
    return DecodeResult.success(Repost(author=event.pubkey, target_event=target))
