"""Relay transport capability.

The services layer never opens sockets. It consumes
[RelayTransport][followgraph.core.transport.RelayTransport]: "send this
filter to that relay and return the matching events" and "send this event
to that relay and confirm acceptance". Any failure is reported as a
[ConnectivityError][followgraph.core.exceptions.ConnectivityError].

[PoolTransport][followgraph.core.transport.PoolTransport] implements the
capability on top of [RelayPool][followgraph.core.pool.RelayPool] and
nostr-sdk.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from nostr_sdk import NostrSdkError

from followgraph.utils.protocol import fetch_events, send_event

from .exceptions import ConnectivityError, RelayTimeoutError


if TYPE_CHECKING:
    from followgraph.models.event import Event
    from followgraph.models.filter import QueryFilter
    from followgraph.models.relay import Relay

    from .pool import RelayPool


@runtime_checkable
class RelayTransport(Protocol):
    """Request/response access to a single relay."""

    async def fetch(
        self,
        relay: Relay,
        event_filter: QueryFilter,
        timeout: float,  # noqa: ASYNC109
    ) -> list[Event]:
        """Return the events *relay* holds that match *event_filter*."""
        ...

    async def publish(
        self,
        relay: Relay,
        event: Event,
        timeout: float,  # noqa: ASYNC109
    ) -> None:
        """Send *event* to *relay*; return only once the relay accepted it."""
        ...


class PoolTransport:
    """[RelayTransport][followgraph.core.transport.RelayTransport] backed by a relay pool."""

    def __init__(self, pool: RelayPool) -> None:
        self._pool = pool

    @property
    def pool(self) -> RelayPool:
        return self._pool

    async def fetch(
        self,
        relay: Relay,
        event_filter: QueryFilter,
        timeout: float,  # noqa: ASYNC109
    ) -> list[Event]:
        try:
            async with self._pool.acquire(relay) as client:
                return await fetch_events(client, event_filter, timeout=timeout)
        except TimeoutError as e:
            raise RelayTimeoutError(f"fetch timed out: {relay.url}") from e
        except (OSError, ValueError, NostrSdkError) as e:
            raise ConnectivityError(f"fetch failed: {relay.url} ({e})") from e

    async def publish(
        self,
        relay: Relay,
        event: Event,
        timeout: float,  # noqa: ARG002, ASYNC109  # bounded by the caller
    ) -> None:
        try:
            async with self._pool.acquire(relay) as client:
                await send_event(client, relay, event)
        except TimeoutError as e:
            raise RelayTimeoutError(f"publish timed out: {relay.url}") from e
        except (OSError, ValueError, NostrSdkError) as e:
            raise ConnectivityError(f"publish failed: {relay.url} ({e})") from e
