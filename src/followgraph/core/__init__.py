"""Core layer: relay connectivity and cross-cutting infrastructure.

Depends on ``followgraph.models`` and ``followgraph.utils`` and is depended
upon by ``followgraph.services``.

Attributes:
    RelayPool: Reusable pool of open relay connections with an explicit
        lifecycle. See [RelayPool][followgraph.core.pool.RelayPool].
    RelayTransport: The "query a relay / publish to a relay" capability.
        See [RelayTransport][followgraph.core.transport.RelayTransport].
    PoolTransport: nostr-sdk implementation of the transport on a pool.
    Logger: Structured logger with bound context; rendered by
        StructuredFormatter (key=value) or JsonFormatter.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
    Exceptions: [FollowgraphError][followgraph.core.exceptions.FollowgraphError]
        and its subclasses.
"""

from .exceptions import (
    ConfigurationError,
    ConnectivityError,
    FollowgraphError,
    PreconditionError,
    ProtocolError,
    PublishingError,
    RelayTimeoutError,
    SigningError,
)
from .logger import JsonFormatter, Logger, StructuredFormatter, format_kv_pairs
from .pool import PoolConfig, PoolLimitsConfig, PoolTimeoutsConfig, RelayPool
from .transport import PoolTransport, RelayTransport
from .yaml import load_yaml


__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "FollowgraphError",
    "JsonFormatter",
    "Logger",
    "PoolConfig",
    "PoolLimitsConfig",
    "PoolTimeoutsConfig",
    "PoolTransport",
    "PreconditionError",
    "ProtocolError",
    "PublishingError",
    "RelayPool",
    "RelayTimeoutError",
    "RelayTransport",
    "SigningError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
]
