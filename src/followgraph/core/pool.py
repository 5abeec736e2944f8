"""
Reusable pool of open relay connections.

Amortizes WebSocket connection setup across queries: the first request to
a relay opens a ``nostr_sdk.Client`` bound to it, later requests reuse it.
The pool is an explicit capability owned by the caller (usually through
[Engine][followgraph.services.engine.Engine]) with a visible lifecycle,
never a hidden module-level singleton, so tests can substitute a fake
connector.

Examples:
    ```python
    async with RelayPool(PoolConfig()) as pool:
        async with pool.acquire(Relay("wss://nos.lol")) as client:
            ...
    ```

See Also:
    [PoolTransport][followgraph.core.transport.PoolTransport]: The relay
        transport built on this pool.
    [PoolConfig][followgraph.core.pool.PoolConfig]: Configuration model.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import OrderedDict
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from pydantic import BaseModel, Field

from followgraph.models.relay import Relay  # noqa: TC001
from followgraph.utils.protocol import connect_client

from .logger import Logger
from .metrics import POOL_CONNECTIONS, RELAY_REQUESTS


Connector = Callable[[Relay], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class PoolLimitsConfig(BaseModel):
    """Connection count limits.

    When more than ``max_connections`` relays are open, idle connections are
    closed least-recently-used first. Connections currently in use are never
    evicted, so the limit can be exceeded temporarily under load.
    """

    max_connections: int = Field(default=64, ge=1, le=1024, description="Maximum open relays")


class PoolTimeoutsConfig(BaseModel):
    """Timeout settings for pool operations (in seconds)."""

    connect: float = Field(default=5.0, ge=0.1, le=120.0, description="Relay connect timeout")


class PoolConfig(BaseModel):
    """Aggregate configuration for the relay connection pool."""

    limits: PoolLimitsConfig = Field(default_factory=PoolLimitsConfig)
    timeouts: PoolTimeoutsConfig = Field(default_factory=PoolTimeoutsConfig)
    proxy_url: str | None = Field(
        default=None, description="SOCKS5 proxy for Tor/I2P/Lokinet relays"
    )


# ---------------------------------------------------------------------------
# Pool Class
# ---------------------------------------------------------------------------


class RelayPool:
    """Pool of connected clients keyed by normalized relay URL.

    Connections are opened lazily on first
    [checkout()][followgraph.core.pool.RelayPool.checkout] and returned with
    [release()][followgraph.core.pool.RelayPool.release]; a failed
    connection can be released with ``discard=True`` so the next request
    reconnects. [close()][followgraph.core.pool.RelayPool.close] shuts down
    every client; a closed pool rejects new checkouts.

    Args:
        config: Pool configuration.
        connector: Coroutine function opening a client for a relay.
            Defaults to [connect_client()][followgraph.utils.protocol.connect_client].
    """

    def __init__(
        self,
        config: PoolConfig | None = None,
        *,
        connector: Connector | None = None,
    ) -> None:
        self._config = config or PoolConfig()
        self._connector = connector or self._default_connector
        self._clients: OrderedDict[str, Any] = OrderedDict()
        self._in_use: dict[str, int] = {}
        self._relay_locks: dict[str, asyncio.Lock] = {}
        self._closed = False
        self._logger = Logger("pool")

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def size(self) -> int:
        """Number of open connections."""
        return len(self._clients)

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def _default_connector(self, relay: Relay) -> Any:
        return await connect_client(
            relay,
            timeout=self._config.timeouts.connect,
            proxy_url=self._config.proxy_url,
        )

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------

    async def checkout(self, relay: Relay) -> Any:
        """Return a connected client for *relay*, opening one if needed.

        Raises:
            RuntimeError: If the pool has been closed.
            Exception: Whatever the connector raises when the relay is unreachable.
        """
        if self._closed:
            raise RuntimeError("RelayPool is closed")

        lock = self._relay_locks.setdefault(relay.url, asyncio.Lock())
        async with lock:
            client = self._clients.get(relay.url)
            if client is None:
                try:
                    client = await self._connector(relay)
                except BaseException:
                    RELAY_REQUESTS.labels(operation="connect", outcome="error").inc()
                    raise
                RELAY_REQUESTS.labels(operation="connect", outcome="ok").inc()
                if self._closed:
                    await self._shutdown_client(relay.url, client)
                    raise RuntimeError("RelayPool is closed")
                self._clients[relay.url] = client
                self._logger.debug("connection_opened", relay=relay.url, size=self.size)
            else:
                self._clients.move_to_end(relay.url)
            self._in_use[relay.url] = self._in_use.get(relay.url, 0) + 1

        await self._evict_idle()
        POOL_CONNECTIONS.set(self.size)
        return client

    async def release(self, relay: Relay, *, discard: bool = False) -> None:
        """Return a client obtained from [checkout()][followgraph.core.pool.RelayPool.checkout].

        Args:
            relay: The relay the client was checked out for.
            discard: Close the connection instead of keeping it for reuse.
        """
        count = self._in_use.get(relay.url, 0) - 1
        if count > 0:
            self._in_use[relay.url] = count
        else:
            self._in_use.pop(relay.url, None)

        if discard or self._closed:
            client = self._clients.pop(relay.url, None)
            if client is not None:
                await self._shutdown_client(relay.url, client)
        POOL_CONNECTIONS.set(self.size)

    @asynccontextmanager
    async def acquire(self, relay: Relay) -> AsyncIterator[Any]:
        """Check out a client for the duration of the ``async with`` block.

        The connection is discarded if the block raises, so a broken
        socket is never handed to the next caller.
        """
        client = await self.checkout(relay)
        discard = False
        try:
            yield client
        except BaseException:
            discard = True
            raise
        finally:
            await self.release(relay, discard=discard)

    async def close(self) -> None:
        """Shut down every pooled client. Idempotent."""
        self._closed = True
        clients = list(self._clients.items())
        self._clients.clear()
        self._in_use.clear()
        for url, client in clients:
            await self._shutdown_client(url, client)
        POOL_CONNECTIONS.set(0)
        if clients:
            self._logger.info("pool_closed", connections=len(clients))

    async def _evict_idle(self) -> None:
        """Close least-recently-used idle connections above the limit."""
        excess = self.size - self._config.limits.max_connections
        if excess <= 0:
            return
        for url in list(self._clients):
            if excess <= 0:
                break
            if self._in_use.get(url):
                continue
            client = self._clients.pop(url)
            await self._shutdown_client(url, client)
            excess -= 1

    async def _shutdown_client(self, url: str, client: Any) -> None:
        # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
        with contextlib.suppress(Exception):
            await client.shutdown()
        self._logger.debug("connection_closed", relay=url)

    async def __aenter__(self) -> RelayPool:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()
