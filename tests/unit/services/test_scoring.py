"""
Unit tests for services.scoring module.

Tests:
- compute_score() - weights and half-up rounding
- tally_interactions() - attribution of replies, reactions, reposts and zaps
- InteractionScorer.score() - window, totality, preconditions
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from followgraph.core.exceptions import ConnectivityError, PreconditionError
from followgraph.models.constants import SECONDS_PER_DAY
from followgraph.models.profile import InteractionScore
from followgraph.models.relay import Relay
from followgraph.services.engine import Engine
from followgraph.services.scoring import InteractionEvents, compute_score, tally_interactions

from tests.conftest import NOW


def _zap(make_event: Any, sender: str, recipient: str, msats: int, **kwargs: Any) -> Any:
    request = json.dumps({"kind": 9734, "pubkey": sender, "tags": [["p", recipient]]})
    return make_event(
        9735,
        "e" * 64,
        tags=[["p", recipient], ["amount", str(msats)], ["description", request]],
        **kwargs,
    )


# =============================================================================
# compute_score()
# =============================================================================


class TestComputeScore:
    """Tests for compute_score()."""

    def test_weights(self) -> None:
        """3 reactions + 1 repost + 50 sats + 2 replies = 3 + 3 + 5 + 8."""
        assert compute_score(replies=2, reactions=3, reposts=1, zaps=50) == 19

    def test_zero(self) -> None:
        assert compute_score() == 0

    @pytest.mark.parametrize(
        ("zaps", "expected"),
        [(4, 0), (5, 1), (14, 1), (15, 2), (25, 3), (1_000_000, 100_000)],
    )
    def test_half_up_rounding(self, zaps: int, expected: int) -> None:
        assert compute_score(zaps=zaps) == expected

    def test_keyword_only(self) -> None:
        with pytest.raises(TypeError):
            compute_score(1, 2, 3, 4)  # type: ignore[misc]


# =============================================================================
# tally_interactions()
# =============================================================================


class TestTallyInteractions:
    """Tests for tally_interactions()."""

    def test_every_contact_present(self, viewer: str, new_pubkey: Any) -> None:
        contacts = [new_pubkey(), new_pubkey(), "junk"]
        scores = tally_interactions(viewer, contacts, InteractionEvents())
        assert list(scores) == contacts
        assert scores["junk"] == InteractionScore(pubkey="junk")

    def test_attribution(self, viewer: str, new_pubkey: Any, make_event: Any) -> None:
        alice, bob = new_pubkey(), new_pubkey()
        alice_note = make_event(1, alice)
        bob_note = make_event(1, bob)
        events = InteractionEvents(
            notes=(
                make_event(1, viewer, tags=[["p", alice]]),
                make_event(1, viewer, tags=[["p", alice], ["p", bob]]),
            ),
            reactions=(
                make_event(7, viewer, tags=[["e", alice_note.id]], content="+"),
                make_event(7, viewer, tags=[["e", bob_note.id]], content="+"),
            ),
            reposts=(make_event(6, viewer, tags=[["e", alice_note.id]]),),
            zap_receipts=(_zap(make_event, viewer, bob, 21_000),),
            contact_notes=(alice_note, bob_note),
        )

        scores = tally_interactions(viewer, [alice, bob], events)

        assert scores[alice] == InteractionScore(
            pubkey=alice, score=2 * 4 + 1 + 3, replies=2, reactions=1, reposts=1
        )
        assert scores[bob] == InteractionScore(
            pubkey=bob, score=4 + 1 + 2, replies=1, reactions=1, zaps=21
        )

    def test_untracked_target_dropped(self, viewer: str, new_pubkey: Any, make_event: Any) -> None:
        """A reaction to a note by someone outside the contact list counts for nobody."""
        alice, stranger = new_pubkey(), new_pubkey()
        stranger_note = make_event(1, stranger)
        events = InteractionEvents(
            reactions=(make_event(7, viewer, tags=[["e", stranger_note.id]]),),
            contact_notes=(stranger_note,),
        )
        assert tally_interactions(viewer, [alice], events)[alice].reactions == 0

    def test_other_authors_ignored(self, viewer: str, new_pubkey: Any, make_event: Any) -> None:
        alice, someone = new_pubkey(), new_pubkey()
        events = InteractionEvents(notes=(make_event(1, someone, tags=[["p", alice]]),))
        assert tally_interactions(viewer, [alice], events)[alice].replies == 0

    def test_zap_sender_must_be_viewer(
        self, viewer: str, new_pubkey: Any, make_event: Any
    ) -> None:
        alice, someone = new_pubkey(), new_pubkey()
        events = InteractionEvents(
            zap_receipts=(
                _zap(make_event, someone, alice, 100_000),
                _zap(make_event, viewer, alice, 5_000),
            )
        )
        scores = tally_interactions(viewer, [alice], events)
        assert scores[alice].zaps == 5
        assert scores[alice].score == 1

    def test_window(self, viewer: str, new_pubkey: Any, make_event: Any) -> None:
        alice = new_pubkey()
        events = InteractionEvents(
            notes=(
                make_event(1, viewer, created_at=99, tags=[["p", alice]]),
                make_event(1, viewer, created_at=100, tags=[["p", alice]]),
                make_event(1, viewer, created_at=200, tags=[["p", alice]]),
                make_event(1, viewer, created_at=201, tags=[["p", alice]]),
            ),
            zap_receipts=(_zap(make_event, viewer, alice, 9_000, created_at=50),),
        )
        scores = tally_interactions(viewer, [alice], events, since=100, until=200)
        assert scores[alice].replies == 2
        assert scores[alice].zaps == 0

    def test_malformed_events_skipped(
        self, viewer: str, new_pubkey: Any, make_event: Any
    ) -> None:
        alice = new_pubkey()
        events = InteractionEvents(
            reactions=(make_event(7, viewer),),
            reposts=(make_event(6, viewer),),
        )
        assert tally_interactions(viewer, [alice], events)[alice] == InteractionScore(pubkey=alice)


# =============================================================================
# InteractionScorer
# =============================================================================


class TestInteractionScorer:
    """Tests for InteractionScorer.score() through the engine facade."""

    async def test_end_to_end(
        self,
        engine: Engine,
        transport: Any,
        relays: tuple[Relay, ...],
        viewer: str,
        new_pubkey: Any,
        make_event: Any,
    ) -> None:
        alice, bob = new_pubkey(), new_pubkey()
        alice_note = make_event(1, alice)
        transport.add(
            relays[0],
            alice_note,
            make_event(1, viewer, tags=[["p", alice]]),
            make_event(7, viewer, tags=[["e", alice_note.id]], content="+"),
        )
        transport.add(
            relays[1],
            make_event(6, viewer, tags=[["e", alice_note.id]]),
            _zap(make_event, viewer, bob, 50_000),
        )

        scores = await engine.score_interactions(viewer, [alice, bob])

        assert scores[alice].replies == 1
        assert scores[alice].reactions == 1
        assert scores[alice].reposts == 1
        assert scores[alice].score == 8
        assert scores[bob].zaps == 50
        assert scores[bob].score == 5

    async def test_unparsable_zap_request_degrades(
        self,
        engine: Engine,
        transport: Any,
        relays: tuple[Relay, ...],
        viewer: str,
        new_pubkey: Any,
        make_event: Any,
    ) -> None:
        """A zap request with an oversized integer counts for nothing."""
        alice = new_pubkey()
        description = '{"pubkey": "' + viewer + '", "tags": [], "x": ' + "1" * 5000 + "}"
        transport.add(
            relays[0],
            make_event(1, viewer, tags=[["p", alice]]),
            make_event(
                9735,
                "e" * 64,
                tags=[["p", alice], ["amount", "50000"], ["description", description]],
            ),
        )

        scores = await engine.score_interactions(viewer, [alice])

        assert scores[alice].zaps == 0
        assert scores[alice].replies == 1
        assert scores[alice].score == 4

    async def test_outside_window_ignored(
        self,
        engine: Engine,
        transport: Any,
        relays: tuple[Relay, ...],
        viewer: str,
        new_pubkey: Any,
        make_event: Any,
    ) -> None:
        alice = new_pubkey()
        transport.add(
            relays[0],
            make_event(1, viewer, created_at=NOW - 10 * SECONDS_PER_DAY, tags=[["p", alice]]),
        )

        assert (await engine.score_interactions(viewer, [alice], window_days=7))[alice].score == 0
        assert (await engine.score_interactions(viewer, [alice], window_days=30))[alice].score == 4

    async def test_fetches_contacts_when_omitted(
        self,
        engine: Engine,
        transport: Any,
        relays: tuple[Relay, ...],
        viewer: str,
        new_pubkey: Any,
        make_event: Any,
    ) -> None:
        alice, bob = new_pubkey(), new_pubkey()
        transport.add(relays[0], make_event(3, viewer, tags=[["p", alice], ["p", bob]]))

        scores = await engine.score_interactions(viewer)

        assert list(scores) == [alice, bob]

    async def test_relay_failures_degrade_to_zero(
        self,
        engine: Engine,
        transport: Any,
        relays: tuple[Relay, ...],
        viewer: str,
        new_pubkey: Any,
    ) -> None:
        alice = new_pubkey()
        for relay in relays:
            transport.failing[relay.url] = ConnectivityError("down")

        scores = await engine.score_interactions(viewer, [alice])

        assert scores == {alice: InteractionScore(pubkey=alice)}

    async def test_invalid_contacts_not_queried(
        self, engine: Engine, transport: Any, viewer: str
    ) -> None:
        scores = await engine.score_interactions(viewer, ["junk", "f" * 64])
        assert set(scores) == {"junk", "f" * 64}
        assert transport.fetch_calls == []

    async def test_empty_contacts(self, engine: Engine, viewer: str) -> None:
        assert await engine.score_interactions(viewer, []) == {}

    @pytest.mark.parametrize("window_days", [0, -3, 1.5, True])
    async def test_invalid_window(self, engine: Engine, viewer: str, window_days: Any) -> None:
        with pytest.raises(PreconditionError):
            await engine.score_interactions(viewer, [], window_days=window_days)

    async def test_invalid_viewer(self, engine: Engine) -> None:
        with pytest.raises(PreconditionError):
            await engine.score_interactions("junk", [])
