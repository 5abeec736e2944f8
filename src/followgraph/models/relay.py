"""
Relay endpoints as the fan-out executor sees them.

A relay is identified by its normalized WebSocket URL. Two addresses that
differ only in letter case, a trailing slash, repeated path slashes or the
scheme's default port name the same relay, and normalizing a normalized URL
is a no-op, so the URL doubles as the deduplication key everywhere relay sets
are merged (resolved write relays, configured defaults, relay-list tags).

Hosts are classified with [classify_host()][followgraph.models.relay.classify_host]:
clearnet relays are forced to ``wss``, overlay relays (``.onion``, ``.i2p``,
``.loki``) to ``ws``, and loopback, private or reserved addresses are refused
because nobody else could reach them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from ipaddress import ip_address
from typing import Any, NamedTuple

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from .constants import NetworkType


_OVERLAY_SUFFIXES = {
    ".onion": NetworkType.TOR,
    ".i2p": NetworkType.I2P,
    ".loki": NetworkType.LOKI,
}

_LOCAL_HOSTNAMES = frozenset({"localhost", "localhost.localdomain"})

_DEFAULT_PORTS = {"ws": 80, "wss": 443}

_VALIDATOR = (
    Validator()
    .require_presence_of("scheme", "host")
    .allow_schemes("ws", "wss")
    .check_validity_of("scheme", "host", "port", "path")
)


def classify_host(host: str) -> NetworkType:
    """Classify a relay hostname or IP literal.

    Returns ``LOCAL`` for loopback, private, reserved and multicast addresses
    (IPv4-mapped IPv6 addresses are judged by their IPv4 part) and
    ``UNKNOWN`` for single-label names or labels with leading or trailing
    hyphens.
    """
    name = host.lower().strip("[]")
    if not name:
        return NetworkType.UNKNOWN

    for suffix, network in _OVERLAY_SUFFIXES.items():
        if name.endswith(suffix):
            return network

    if name in _LOCAL_HOSTNAMES:
        return NetworkType.LOCAL

    try:
        ip = ip_address(name)
    except ValueError:
        labels = name.split(".")
        if len(labels) < 2 or any(not lb or lb[0] == "-" or lb[-1] == "-" for lb in labels):
            return NetworkType.UNKNOWN
        return NetworkType.CLEARNET

    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    if not ip.is_global or ip.is_multicast or ip.is_reserved:
        return NetworkType.LOCAL
    return NetworkType.CLEARNET


class _Endpoint(NamedTuple):
    scheme: str
    host: str
    port: int | None
    path: str | None
    network: NetworkType

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        port = f":{self.port}" if self.port is not None else ""
        return f"{self.scheme}://{host}{port}{self.path or ''}"


def _normalize(raw: str) -> _Endpoint:
    uri = uri_reference(raw.strip()).normalize()
    try:
        _VALIDATOR.validate(uri)
    except UnpermittedComponentError:
        raise ValueError("Invalid scheme: must be ws or wss") from None
    except ValidationError as e:
        raise ValueError(f"Invalid URL: {e}") from None

    if uri.query:
        raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
    if uri.fragment:
        raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

    host = uri.host.strip("[]")
    network = classify_host(host)
    if network == NetworkType.LOCAL:
        raise ValueError(f"Local addresses not allowed: '{host}'")
    if network == NetworkType.UNKNOWN:
        raise ValueError(f"Invalid host: '{host}'")

    scheme = "wss" if network == NetworkType.CLEARNET else "ws"
    port = int(uri.port) if uri.port else None
    if port == _DEFAULT_PORTS[scheme]:
        port = None

    path = "/".join(segment for segment in (uri.path or "").split("/") if segment)
    return _Endpoint(scheme, host, port, f"/{path}" if path else None, network)


@dataclass(frozen=True, slots=True)
class Relay:
    """A normalized relay endpoint.

    Attributes:
        url: Normalized URL; the only field used for equality and hashing.
        network: Network the host belongs to.
        scheme: ``wss`` on clearnet, ``ws`` on overlay networks.
        host: Hostname or IP literal, IPv6 brackets stripped.
        port: Non-default port, or ``None``.
        path: Path without trailing slash, or ``None``.

    Raises:
        TypeError: If *raw_url* is not a string.
        ValueError: If the URL is malformed, not ``ws``/``wss``, carries a
            query or fragment, or points at a local address.

    Examples:
        ```python
        Relay("wss://Relay.Damus.io:443/").url    # 'wss://relay.damus.io'
        Relay("wss://abc123.onion").url           # 'ws://abc123.onion'
        ```
    """

    raw_url: str = field(repr=False, compare=False)

    url: str = field(init=False)
    network: NetworkType = field(init=False, compare=False)
    scheme: str = field(init=False, compare=False)
    host: str = field(init=False, compare=False)
    port: int | None = field(init=False, compare=False)
    path: str | None = field(init=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.raw_url, str):
            raise TypeError(f"raw_url must be a str, got {type(self.raw_url).__name__}")
        if "\x00" in self.raw_url:
            raise ValueError("Relay URL contains null bytes")

        endpoint = _normalize(self.raw_url)
        object.__setattr__(self, "url", endpoint.url)
        for name in ("network", "scheme", "host", "port", "path"):
            object.__setattr__(self, name, getattr(endpoint, name))

    def __str__(self) -> str:
        return self.url

    @property
    def is_overlay(self) -> bool:
        """Whether the relay is only reachable through a Tor, I2P or Lokinet proxy."""
        return self.network in (NetworkType.TOR, NetworkType.I2P, NetworkType.LOKI)

    @classmethod
    def parse(cls, url: Any) -> Relay | None:
        """Like the constructor, but returns ``None`` for anything unusable.

        Used for relay URLs found inside events, where junk is expected.
        """
        if not isinstance(url, str) or not url.strip():
            return None
        try:
            return cls(url.strip())
        except ValueError:
            return None


def dedupe_relays(*groups: Iterable[Relay]) -> tuple[Relay, ...]:
    """Concatenate relay groups, keeping the first occurrence of each relay."""
    return tuple(dict.fromkeys(relay for group in groups for relay in group))
