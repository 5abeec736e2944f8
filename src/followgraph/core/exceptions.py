"""followgraph exception hierarchy.

Read paths never raise for missing or broken relay data: transport failures
and malformed payloads are recovered locally and degrade to empty or
default records. The exceptions below are reserved for the cases a caller
must act on.

Exception hierarchy:

```text
FollowgraphError (base -- never raised directly)
├── ConfigurationError      -- config validation, missing keys, bad YAML
├── ConnectivityError        -- relay unreachable, network failures
│   └── RelayTimeoutError    -- connection or response timed out
├── ProtocolError            -- relay sent something that is not Nostr
├── PreconditionError        -- invalid input, missing signing capability
├── SigningError             -- signer failed or returned an invalid event
└── PublishingError          -- no relay acknowledged a broadcast
```

See Also:
    [FanoutExecutor][followgraph.services.fanout.FanoutExecutor]: Catches
        [ConnectivityError][followgraph.core.exceptions.ConnectivityError]
        per relay and never lets it escape a read.
    [PublishCoordinator][followgraph.services.publisher.PublishCoordinator]:
        Raises the write-path errors.
"""

from __future__ import annotations


class FollowgraphError(Exception):
    """Base exception for all followgraph errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(FollowgraphError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(FollowgraphError):
    """Base for all relay/network connectivity errors."""


class RelayTimeoutError(ConnectivityError):
    """Connection or response timed out."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(FollowgraphError):
    """A relay response could not be interpreted as Nostr data."""


# ---------------------------------------------------------------------------
# Caller-facing failures
# ---------------------------------------------------------------------------


class PreconditionError(FollowgraphError):
    """An operation was called with invalid input or without a required capability.

    Terminates the specific operation, not the session.
    """


class SigningError(FollowgraphError):
    """The signing capability failed, or returned an event without valid authenticity fields."""


class PublishingError(FollowgraphError):
    """Failed to broadcast a Nostr event: no relay acknowledged it."""
