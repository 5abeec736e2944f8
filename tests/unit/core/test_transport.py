"""Unit tests for followgraph.core.transport."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from followgraph.core.exceptions import ConnectivityError, RelayTimeoutError
from followgraph.core.pool import RelayPool
from followgraph.core.transport import PoolTransport, RelayTransport
from followgraph.models.event import Event
from followgraph.models.filter import QueryFilter
from followgraph.models.relay import Relay


RELAY = Relay("wss://relay.example.com")


@pytest.fixture
def pool() -> RelayPool:
    async def _connect(relay: Relay) -> MagicMock:
        client = MagicMock()
        client.shutdown = AsyncMock()
        return client

    return RelayPool(connector=_connect)


class TestPoolTransport:
    """Tests for PoolTransport error mapping."""

    def test_satisfies_protocol(self, pool: RelayPool) -> None:
        assert isinstance(PoolTransport(pool), RelayTransport)

    async def test_fetch_returns_events(self, pool: RelayPool) -> None:
        events = [Event(created_at=1, kind=1)]
        with patch(
            "followgraph.core.transport.fetch_events", new=AsyncMock(return_value=events)
        ) as fetch:
            result = await PoolTransport(pool).fetch(RELAY, QueryFilter(kinds=(1,)), 2.0)

        assert result == events
        assert fetch.await_args.kwargs["timeout"] == 2.0

    async def test_fetch_timeout_mapped(self, pool: RelayPool) -> None:
        with (
            patch(
                "followgraph.core.transport.fetch_events",
                new=AsyncMock(side_effect=TimeoutError()),
            ),
            pytest.raises(RelayTimeoutError),
        ):
            await PoolTransport(pool).fetch(RELAY, QueryFilter(), 1.0)

    async def test_fetch_oserror_mapped(self, pool: RelayPool) -> None:
        with (
            patch(
                "followgraph.core.transport.fetch_events",
                new=AsyncMock(side_effect=OSError("reset")),
            ),
            pytest.raises(ConnectivityError, match="reset"),
        ):
            await PoolTransport(pool).fetch(RELAY, QueryFilter(), 1.0)

    async def test_failed_connection_discarded(self, pool: RelayPool) -> None:
        """A failing request does not leave a broken client in the pool."""
        with (
            patch(
                "followgraph.core.transport.fetch_events",
                new=AsyncMock(side_effect=OSError("reset")),
            ),
            pytest.raises(ConnectivityError),
        ):
            await PoolTransport(pool).fetch(RELAY, QueryFilter(), 1.0)
        assert pool.size == 0

    async def test_publish_rejection_mapped(self, pool: RelayPool) -> None:
        with (
            patch(
                "followgraph.core.transport.send_event",
                new=AsyncMock(side_effect=OSError("blocked")),
            ),
            pytest.raises(ConnectivityError, match="blocked"),
        ):
            await PoolTransport(pool).publish(RELAY, Event(created_at=1, kind=3), 1.0)

    async def test_connect_failure_mapped(self) -> None:
        pool = RelayPool(connector=AsyncMock(side_effect=OSError("refused")))
        with pytest.raises(ConnectivityError, match="refused"):
            await PoolTransport(pool).fetch(RELAY, QueryFilter(), 1.0)
