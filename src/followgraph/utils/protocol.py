"""Nostr protocol client operations for followgraph.

Provides the nostr-sdk client factory used by the relay pool, plus the
conversions between followgraph models and nostr-sdk types. Everything
that touches ``nostr_sdk`` networking lives here so the services layer
only sees [Event][followgraph.models.event.Event] and
[QueryFilter][followgraph.models.filter.QueryFilter].

Attributes:
    create_client: Client factory with optional SOCKS5 proxy.
    connect_client: Create a client and connect it to a single relay.
    fetch_events: Run one filter against a connected client.
    send_event: Publish one event through a connected client.
    to_nostr_filter: QueryFilter -> ``nostr_sdk.Filter``.
    from_nostr_event / to_nostr_event: Event <-> ``nostr_sdk.Event``.

Note:
    Overlay networks (Tor, I2P, Lokinet) always use
    ``nostr_sdk.ConnectionMode.PROXY`` with a SOCKS5 proxy.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from datetime import timedelta
from ipaddress import ip_address
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from nostr_sdk import (
    Alphabet,
    Client,
    ClientBuilder,
    ClientOptions,
    Connection,
    ConnectionMode,
    ConnectionTarget,
    EventId,
    Filter,
    Kind,
    PublicKey,
    RelayUrl,
    SingleLetterTag,
    Timestamp,
)
from nostr_sdk import Event as NostrEvent

from followgraph.models.event import Event


if TYPE_CHECKING:
    from followgraph.models.filter import QueryFilter
    from followgraph.models.relay import Relay


logger = logging.getLogger(__name__)


async def _resolve_proxy(proxy_url: str) -> tuple[str, int]:
    """Split a SOCKS5 URL into a numeric host and port.

    nostr-sdk only accepts IP literals for the proxy, so hostnames (e.g. a
    ``tor`` compose service) are resolved off the event loop.
    """
    parsed = urlparse(proxy_url)
    host = (parsed.hostname or "127.0.0.1").strip("[]")
    try:
        ip_address(host)
    except ValueError:
        host = await asyncio.to_thread(socket.gethostbyname, host)
    return host, parsed.port or 9050


async def create_client(proxy_url: str | None = None) -> Client:
    """Create a read/write Nostr client without a signer.

    Signing happens outside the client, through a
    [Signer][followgraph.utils.signer.Signer]; the client only carries
    already-signed events.

    Args:
        proxy_url: SOCKS5 proxy URL for overlay networks (e.g., ``socks5://tor:9050``).

    Returns:
        Configured ``Client`` instance (call ``add_relay()`` before use).
    """
    builder = ClientBuilder()

    if proxy_url is not None:
        proxy_host, proxy_port = await _resolve_proxy(proxy_url)
        proxy_mode = ConnectionMode.PROXY(proxy_host, proxy_port)
        conn = Connection().mode(proxy_mode).target(ConnectionTarget.ONION)
        builder = builder.opts(ClientOptions().connection(conn))

    return builder.build()


async def connect_client(
    relay: Relay,
    *,
    timeout: float,  # noqa: ASYNC109
    proxy_url: str | None = None,
) -> Client:
    """Create a client bound to *relay* and wait for the connection.

    Raises:
        ValueError: If an overlay relay is requested without ``proxy_url``.
        OSError: If the relay refuses or fails the connection.
    """
    if relay.is_overlay and proxy_url is None:
        raise ValueError(f"proxy_url required for {relay.network} relay: {relay.url}")

    relay_url = RelayUrl.parse(relay.url)
    client = await create_client(proxy_url if relay.is_overlay else None)
    await client.add_relay(relay_url)
    output = await client.try_connect(timedelta(seconds=timeout))

    if relay_url not in output.success:
        error_message = output.failed.get(relay_url, "Unknown error")
        await client.shutdown()
        raise OSError(f"Connection failed: {relay.url} ({error_message})")

    logger.debug("relay_connected relay=%s", relay.url)
    return client


async def fetch_events(
    client: Client,
    event_filter: QueryFilter,
    *,
    timeout: float,  # noqa: ASYNC109
) -> list[Event]:
    """Fetch events matching *event_filter* from a connected client.

    Events that fail model validation are skipped with a debug log rather
    than failing the whole response.
    """
    events = await client.fetch_events(to_nostr_filter(event_filter), timedelta(seconds=timeout))
    result: list[Event] = []
    for evt in events.to_vec():
        try:
            result.append(from_nostr_event(evt))
        except (ValueError, TypeError) as e:
            logger.debug("event_skipped reason=invalid error=%s", e)
    return result


async def send_event(client: Client, relay: Relay, event: Event) -> None:
    """Send a signed event and require an acknowledgment from *relay*.

    Raises:
        OSError: If the relay did not accept the event.
    """
    output = await client.send_event(to_nostr_event(event))
    relay_url = RelayUrl.parse(relay.url)
    if relay_url not in output.success:
        error_message = output.failed.get(relay_url, "not acknowledged")
        raise OSError(f"Publish rejected: {relay.url} ({error_message})")


def to_nostr_filter(event_filter: QueryFilter) -> Filter:
    """Convert a [QueryFilter][followgraph.models.filter.QueryFilter] to a nostr-sdk ``Filter``."""
    f = Filter()
    if event_filter.kinds:
        f = f.kinds([Kind(k) for k in event_filter.kinds])
    if event_filter.authors:
        f = f.authors([PublicKey.parse(pk) for pk in event_filter.authors])
    if event_filter.ids:
        f = f.ids([EventId.parse(i) for i in event_filter.ids])
    if event_filter.since is not None:
        f = f.since(Timestamp.from_secs(event_filter.since))
    if event_filter.until is not None:
        f = f.until(Timestamp.from_secs(event_filter.until))
    if event_filter.limit is not None:
        f = f.limit(event_filter.limit)

    p_tag = SingleLetterTag.lowercase(Alphabet.P)
    for value in event_filter.p_tags:
        f = f.custom_tag(p_tag, value)
    e_tag = SingleLetterTag.lowercase(Alphabet.E)
    for value in event_filter.e_tags:
        f = f.custom_tag(e_tag, value)
    return f


def from_nostr_event(event: NostrEvent) -> Event:
    """Convert a ``nostr_sdk.Event`` to an [Event][followgraph.models.event.Event]."""
    return Event.from_json(event.as_json())


def to_nostr_event(event: Event) -> NostrEvent:
    """Convert a signed [Event][followgraph.models.event.Event] to a ``nostr_sdk.Event``.

    Raises:
        ValueError: If the event is unsigned.
    """
    if not event.is_signed:
        raise ValueError("only signed events can be sent to relays")
    return NostrEvent.from_json(event.to_json())
