"""
Unit tests for core.pool module.

Tests:
- Configuration models (defaults, validation)
- Lazy connection on checkout and reuse
- Discard on failure, LRU eviction of idle connections
- close() lifecycle
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from followgraph.core.pool import PoolConfig, PoolLimitsConfig, RelayPool
from followgraph.models.relay import Relay


RELAY_A = Relay("wss://a.example.com")
RELAY_B = Relay("wss://b.example.com")
RELAY_C = Relay("wss://c.example.com")


def _connector() -> AsyncMock:
    """Connector returning a fresh mock client per call."""

    async def _connect(relay: Relay) -> MagicMock:
        client = MagicMock(name=f"client:{relay.url}")
        client.shutdown = AsyncMock()
        return client

    return AsyncMock(side_effect=_connect)


# =============================================================================
# Configuration
# =============================================================================


class TestPoolConfig:
    """Tests for pool configuration models."""

    def test_defaults(self) -> None:
        config = PoolConfig()
        assert config.limits.max_connections == 64
        assert config.timeouts.connect == 5.0
        assert config.proxy_url is None

    def test_from_dict(self) -> None:
        config = PoolConfig.model_validate({"limits": {"max_connections": 2}})
        assert config.limits.max_connections == 2

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValidationError):
            PoolLimitsConfig(max_connections=0)


# =============================================================================
# Checkout / release
# =============================================================================


class TestCheckout:
    """Tests for checkout(), release() and acquire()."""

    async def test_lazy_connect_and_reuse(self) -> None:
        """The first checkout connects; later ones reuse the client."""
        connector = _connector()
        pool = RelayPool(connector=connector)

        first = await pool.checkout(RELAY_A)
        await pool.release(RELAY_A)
        second = await pool.checkout(RELAY_A)
        await pool.release(RELAY_A)

        assert first is second
        assert connector.await_count == 1
        assert pool.size == 1

    async def test_acquire_discards_on_error(self) -> None:
        """A block that raises closes the connection."""
        pool = RelayPool(connector=_connector())

        with pytest.raises(RuntimeError, match="boom"):
            async with pool.acquire(RELAY_A) as client:
                raise RuntimeError("boom")

        client.shutdown.assert_awaited_once()
        assert pool.size == 0

    async def test_connector_failure_propagates(self) -> None:
        """Connection failures reach the caller and nothing is pooled."""
        pool = RelayPool(connector=AsyncMock(side_effect=OSError("refused")))

        with pytest.raises(OSError, match="refused"):
            await pool.checkout(RELAY_A)
        assert pool.size == 0

    async def test_lru_eviction(self) -> None:
        """Idle connections above the limit are closed oldest first."""
        config = PoolConfig.model_validate({"limits": {"max_connections": 2}})
        pool = RelayPool(config, connector=_connector())

        clients = {}
        for relay in (RELAY_A, RELAY_B, RELAY_C):
            async with pool.acquire(relay) as client:
                clients[relay.url] = client

        assert pool.size == 2
        clients[RELAY_A.url].shutdown.assert_awaited_once()
        clients[RELAY_C.url].shutdown.assert_not_awaited()

    async def test_in_use_not_evicted(self) -> None:
        """Connections in use survive even above the limit."""
        config = PoolConfig.model_validate({"limits": {"max_connections": 1}})
        pool = RelayPool(config, connector=_connector())

        first = await pool.checkout(RELAY_A)
        await pool.checkout(RELAY_B)

        assert pool.size == 2
        first.shutdown.assert_not_awaited()


# =============================================================================
# Lifecycle
# =============================================================================


class TestClose:
    """Tests for close()."""

    async def test_close_shuts_down_clients(self) -> None:
        pool = RelayPool(connector=_connector())
        async with pool.acquire(RELAY_A) as client:
            pass

        await pool.close()

        client.shutdown.assert_awaited_once()
        assert pool.is_closed
        assert pool.size == 0

    async def test_close_idempotent(self) -> None:
        pool = RelayPool(connector=_connector())
        await pool.close()
        await pool.close()
        assert pool.is_closed

    async def test_checkout_after_close(self) -> None:
        pool = RelayPool(connector=_connector())
        await pool.close()
        with pytest.raises(RuntimeError, match="closed"):
            await pool.checkout(RELAY_A)

    async def test_context_manager(self) -> None:
        async with RelayPool(connector=_connector()) as pool:
            assert not pool.is_closed
        assert pool.is_closed

    async def test_shutdown_errors_suppressed(self) -> None:
        """A client failing to shut down does not break close()."""

        async def _connect(relay: Relay) -> MagicMock:
            client = MagicMock()
            client.shutdown = AsyncMock(side_effect=RuntimeError("ffi"))
            return client

        pool = RelayPool(connector=_connect)
        async with pool.acquire(RELAY_A):
            pass
        await pool.close()
        assert pool.size == 0
