"""
Pytest configuration and shared fixtures for followgraph tests.

Provides:
- FakeTransport: in-memory relays honoring NIP-01 filters, with per-relay
  failures, delays and hangs
- Event and key factories (public keys are real secp256k1 points)
- Engine wiring over the fake transport with a fixed clock
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any

import pytest
from nostr_sdk import Keys

from followgraph.core.exceptions import ConnectivityError
from followgraph.models.event import Event
from followgraph.models.filter import QueryFilter
from followgraph.models.relay import Relay
from followgraph.services.configs import EngineConfig
from followgraph.services.engine import Engine


NOW = 1_700_000_000

RELAY_URLS = (
    "wss://relay.one.example",
    "wss://relay.two.example",
    "wss://relay.three.example",
    "wss://relay.four.example",
)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Fake Transport
# ============================================================================


def matches(event: Event, event_filter: QueryFilter) -> bool:
    """NIP-01 filter matching, enough for the fake relays."""
    if event_filter.kinds and event.kind not in event_filter.kinds:
        return False
    if event_filter.authors and event.pubkey not in event_filter.authors:
        return False
    if event_filter.ids and event.id not in event_filter.ids:
        return False
    if event_filter.p_tags and not set(event.tag_values("p")) & set(event_filter.p_tags):
        return False
    if event_filter.e_tags and not set(event.tag_values("e")) & set(event_filter.e_tags):
        return False
    if event_filter.since is not None and event.created_at < event_filter.since:
        return False
    return event_filter.until is None or event.created_at <= event_filter.until


class FakeTransport:
    """In-memory RelayTransport.

    ``stored`` maps relay URL to the events that relay holds. Relays listed
    in ``failing`` raise, those in ``hanging`` never answer, and ``delays``
    postpones answers by the given seconds.
    """

    def __init__(self) -> None:
        self.stored: dict[str, list[Event]] = {}
        self.failing: dict[str, BaseException] = {}
        self.hanging: set[str] = set()
        self.delays: dict[str, float] = {}
        self.rejecting: set[str] = set()
        self.fetch_calls: list[tuple[str, QueryFilter]] = []
        self.published: list[tuple[str, Event]] = []

    def add(self, relay: str | Relay, *events: Event) -> None:
        url = relay.url if isinstance(relay, Relay) else Relay(relay).url
        self.stored.setdefault(url, []).extend(events)

    async def _behave(self, url: str) -> None:
        if url in self.hanging:
            await asyncio.Event().wait()
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.failing:
            raise self.failing[url]

    async def fetch(self, relay: Relay, event_filter: QueryFilter, timeout: float) -> list[Event]:
        self.fetch_calls.append((relay.url, event_filter))
        await self._behave(relay.url)
        found = [e for e in self.stored.get(relay.url, []) if matches(e, event_filter)]
        found.sort(key=lambda e: -e.created_at)
        if event_filter.limit is not None:
            found = found[: event_filter.limit]
        return found

    async def publish(self, relay: Relay, event: Event, timeout: float) -> None:
        await self._behave(relay.url)
        if relay.url in self.rejecting:
            raise ConnectivityError(f"rejected by {relay.url}")
        self.published.append((relay.url, event))


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def relays() -> tuple[Relay, ...]:
    return tuple(Relay(url) for url in RELAY_URLS)


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def new_pubkey() -> Any:
    """Factory for valid hex public keys."""

    def _new() -> str:
        return Keys.generate().public_key().to_hex()

    return _new


@pytest.fixture
def viewer(new_pubkey: Any) -> str:
    return new_pubkey()


@pytest.fixture
def make_event() -> Any:
    """Factory for events with unique sequential IDs."""
    counter = itertools.count(1)

    def _make(
        kind: int,
        pubkey: str | None = None,
        *,
        created_at: int = NOW - 60,
        tags: list[list[str]] | None = None,
        content: str = "",
        event_id: str | None = None,
        signed: bool = True,
    ) -> Event:
        if event_id is None and signed:
            event_id = f"{next(counter):064x}"
        return Event(
            created_at=created_at,
            kind=kind,
            tags=tags or [],
            content=content,
            id=event_id,
            pubkey=pubkey,
            sig="ab" * 64 if signed else None,
        )

    return _make


# ============================================================================
# Engine
# ============================================================================


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig.model_validate(
        {
            "relays": {"defaults": list(RELAY_URLS[:2])},
            "fanout": {"query_timeout": 0.5, "first_timeout": 0.5},
            "publish": {"timeout": 0.5},
        }
    )


@pytest.fixture
def engine(engine_config: EngineConfig, transport: FakeTransport) -> Engine:
    return Engine(engine_config, transport=transport, clock=lambda: float(NOW))
