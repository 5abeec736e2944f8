"""Interaction scoring.

Ranks a viewer's contacts by how much the viewer engaged with them over a
trailing window. Four interaction types are counted per contact:

- replies: viewer text notes tagging the contact (``p`` tag).
- reactions: viewer reactions to one of the contact's notes.
- reposts: viewer reposts of one of the contact's notes.
- zaps: sats the viewer zapped to the contact.

The score is ``reactions * 1 + reposts * 3 + zaps / 10 + replies * 4``,
rounded half up to an integer.

Scoring is total: every input contact gets a record, and a category whose
data could not be fetched contributes zero instead of failing the call.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from followgraph.core.exceptions import PreconditionError
from followgraph.core.logger import Logger
from followgraph.models.constants import SECONDS_PER_DAY, EventKind
from followgraph.models.filter import QueryFilter
from followgraph.models.profile import InteractionScore
from followgraph.nips.interactions import decode_reaction, decode_repost, decode_text_note
from followgraph.nips.zaps import decode_zap_receipt
from followgraph.utils.keys import is_valid_public_key

from .utils import chunked, require_pubkey


if TYPE_CHECKING:
    from collections.abc import Iterable

    from followgraph.models.event import Event
    from followgraph.models.relay import Relay

    from .configs import FanoutConfig, ScoringConfig
    from .fanout import FanoutExecutor
    from .resolver import RelaySetResolver


REACTION_WEIGHT = 1
REPOST_WEIGHT = 3
ZAP_DIVISOR = 10
REPLY_WEIGHT = 4


def compute_score(*, replies: int = 0, reactions: int = 0, reposts: int = 0, zaps: int = 0) -> int:
    """Weighted score, rounded half up.

    Examples:
        ```python
        compute_score(reactions=3, reposts=1, zaps=50, replies=2)  # 3 + 3 + 5 + 8 = 19
        ```
    """
    total = (
        Decimal(reactions) * REACTION_WEIGHT
        + Decimal(reposts) * REPOST_WEIGHT
        + Decimal(zaps) / ZAP_DIVISOR
        + Decimal(replies) * REPLY_WEIGHT
    )
    return int(total.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(slots=True)
class _Tally:
    replies: int = 0
    reactions: int = 0
    reposts: int = 0
    zaps: int = 0

    def snapshot(self, pubkey: str) -> InteractionScore:
        return InteractionScore(
            pubkey=pubkey,
            score=compute_score(
                replies=self.replies,
                reactions=self.reactions,
                reposts=self.reposts,
                zaps=self.zaps,
            ),
            replies=self.replies,
            reactions=self.reactions,
            reposts=self.reposts,
            zaps=self.zaps,
        )


@dataclass(frozen=True, slots=True)
class InteractionEvents:
    """Raw events gathered for one scoring pass.

    Attributes:
        notes: Viewer text notes tagging any contact.
        reactions: Viewer reactions.
        reposts: Viewer reposts.
        zap_receipts: Zap receipts naming any contact as recipient.
        contact_notes: Contact text notes in the same window, used to
            attribute reaction and repost targets to their authors.
    """

    notes: tuple[Event, ...] = field(default=())
    reactions: tuple[Event, ...] = field(default=())
    reposts: tuple[Event, ...] = field(default=())
    zap_receipts: tuple[Event, ...] = field(default=())
    contact_notes: tuple[Event, ...] = field(default=())


def tally_interactions(
    viewer: str,
    contacts: Iterable[str],
    events: InteractionEvents,
    *,
    since: int | None = None,
    until: int | None = None,
) -> dict[str, InteractionScore]:
    """Count the viewer's interactions with each contact.

    Events outside ``[since, until]`` or not authored by the viewer are
    ignored, as are events that fail to decode.

    Returns:
        One [InteractionScore][followgraph.models.profile.InteractionScore]
        per distinct contact, in input order, including zero records.
    """
    tallies = {pubkey: _Tally() for pubkey in contacts}

    def in_window(event: Event) -> bool:
        if since is not None and event.created_at < since:
            return False
        return until is None or event.created_at <= until

    def by_viewer(event: Event) -> bool:
        return event.pubkey == viewer and in_window(event)

    note_authors: dict[str, str] = {}
    for event in events.contact_notes:
        if event.id is not None and event.pubkey in tallies:
            note_authors.setdefault(event.id, event.pubkey)

    for event in filter(by_viewer, events.notes):
        note = decode_text_note(event).value
        if note is None:
            continue
        for mention in note.mentions:
            if mention in tallies:
                tallies[mention].replies += 1

    for event in filter(by_viewer, events.reactions):
        reaction = decode_reaction(event).value
        if reaction is None:
            continue
        target = note_authors.get(reaction.target_event)
        if target is not None:
            tallies[target].reactions += 1

    for event in filter(by_viewer, events.reposts):
        repost = decode_repost(event).value
        if repost is None:
            continue
        target = note_authors.get(repost.target_event)
        if target is not None:
            tallies[target].reposts += 1

    for event in filter(in_window, events.zap_receipts):
        receipt = decode_zap_receipt(event).value
        if receipt is None or receipt.sender != viewer:
            continue
        for recipient in receipt.recipients:
            if recipient in tallies:
                tallies[recipient].zaps += receipt.amount

    return {pubkey: tally.snapshot(pubkey) for pubkey, tally in tallies.items()}


class InteractionScorer:
    """Fetch a viewer's recent interactions and score each contact.

    Args:
        executor: Fan-out executor.
        resolver: Relay set resolver for the viewer.
        config: Scoring defaults.
        fanout_config: Filter sizing; contact lists are chunked by
            ``max_filter_values``.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        executor: FanoutExecutor,
        resolver: RelaySetResolver,
        config: ScoringConfig,
        fanout_config: FanoutConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._executor = executor
        self._resolver = resolver
        self._config = config
        self._fanout_config = fanout_config
        self._clock = clock
        self._logger = Logger("scoring")

    async def _collect(
        self, relays: tuple[Relay, ...], filters: Iterable[QueryFilter]
    ) -> tuple[Event, ...]:
        batches = await asyncio.gather(*(self._executor.query(relays, f) for f in filters))
        merged: dict[str, Event] = {}
        for batch in batches:
            for event in batch:
                merged.setdefault(event.dedup_key, event)
        return tuple(merged.values())

    async def score(
        self,
        viewer: str,
        contacts: Iterable[str],
        window_days: int | None = None,
    ) -> dict[str, InteractionScore]:
        """Score every contact by the viewer's interactions within the window.

        Args:
            viewer: Hex (or npub) public key of the viewer.
            contacts: Hex public keys to score. Keys that are not valid
                public keys still get a zero record.
            window_days: Trailing window length; defaults to the configured value.

        Raises:
            PreconditionError: If *viewer* is invalid or *window_days* is not positive.
        """
        viewer = require_pubkey(viewer, "viewer")
        log = self._logger.bind(viewer=viewer)
        window_days = self._config.window_days if window_days is None else window_days
        if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
            raise PreconditionError(f"window_days must be a positive integer, got {window_days!r}")

        requested = tuple(dict.fromkeys(contacts))
        queryable = tuple(pk for pk in requested if is_valid_public_key(pk))
        until = int(self._clock())
        since = max(0, until - window_days * SECONDS_PER_DAY)
        if not queryable:
            return tally_interactions(viewer, requested, InteractionEvents())

        relays = await self._resolver.relay_set(viewer)
        chunks = list(chunked(queryable, self._fanout_config.max_filter_values))
        window: dict[str, Any] = {"since": since, "until": until}

        results = await asyncio.gather(
            self._collect(
                relays,
                (
                    QueryFilter(kinds=(EventKind.TEXT_NOTE,), authors=(viewer,), p_tags=c, **window)
                    for c in chunks
                ),
            ),
            self._collect(
                relays,
                [QueryFilter(kinds=(EventKind.REACTION,), authors=(viewer,), **window)],
            ),
            self._collect(
                relays,
                [QueryFilter(kinds=(EventKind.REPOST,), authors=(viewer,), **window)],
            ),
            self._collect(
                relays,
                (QueryFilter(kinds=(EventKind.ZAP_RECEIPT,), p_tags=c, **window) for c in chunks),
            ),
            self._collect(
                relays,
                (QueryFilter(kinds=(EventKind.TEXT_NOTE,), authors=c, **window) for c in chunks),
            ),
            return_exceptions=True,
        )

        categories = ("notes", "reactions", "reposts", "zap_receipts", "contact_notes")
        collected: dict[str, tuple[Event, ...]] = {}
        for name, result in zip(categories, results, strict=True):
            # gather(return_exceptions=True) captures CancelledError as a result
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                log.warning("scoring_fetch_failed", category=name, error=str(result))
                collected[name] = ()
            else:
                collected[name] = result

        scores = tally_interactions(
            viewer,
            requested,
            InteractionEvents(**collected),
            since=since,
            until=until,
        )
        log.info(
            "interactions_scored",
            contacts=len(scores),
            window_days=window_days,
            nonzero=sum(1 for s in scores.values() if s.score),
        )
        return scores
