"""Per-identity relay set resolution (NIP-65).

An identity's relay set is its declared write relays followed by the
configured defaults, deduplicated by normalized URL. Lookup failures are
never errors: an identity without a usable relay list simply gets the
defaults.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from followgraph.core.logger import Logger
from followgraph.models.constants import EventKind
from followgraph.models.filter import QueryFilter
from followgraph.models.relay import dedupe_relays
from followgraph.nips.relay_list import decode_relay_list


if TYPE_CHECKING:
    from followgraph.models.relay import Relay

    from .configs import RelaysConfig
    from .fanout import FanoutExecutor


class RelaySetResolver:
    """Resolve the relays an identity publishes to.

    Args:
        executor: Fan-out executor used to look up kind 10002 events.
        config: Default and bootstrap relay sets.
    """

    def __init__(self, executor: FanoutExecutor, config: RelaysConfig) -> None:
        self._executor = executor
        self._config = config
        self._logger = Logger("resolver")

    @property
    def default_relays(self) -> tuple[Relay, ...]:
        return self._config.default_relays

    async def resolve_write_relays(self, pubkey: str) -> tuple[Relay, ...]:
        """Return the write relays declared in *pubkey*'s latest relay list.

        Args:
            pubkey: Hex public key.

        Returns:
            Write relays in declaration order; empty when no relay list was
            found or it could not be decoded.
        """
        log = self._logger.bind(pubkey=pubkey)
        event_filter = QueryFilter(kinds=(EventKind.RELAY_LIST,), authors=(pubkey,))
        event = await self._executor.query_first(self._config.bootstrap_relays, event_filter)
        if event is None:
            log.debug("relay_list_not_found")
            return ()
        if event.pubkey is not None and event.pubkey != pubkey:
            log.debug("relay_list_wrong_author", author=event.pubkey)
            return ()

        result = decode_relay_list(event)
        if result.value is None:
            log.debug("relay_list_invalid", error=result.error)
            return ()
        relays = result.value.write_relays
        log.debug("relay_list_resolved", write_relays=relays)
        return relays

    async def relay_set(self, pubkey: str) -> tuple[Relay, ...]:
        """Return *pubkey*'s write relays followed by the defaults, deduplicated."""
        return dedupe_relays(await self.resolve_write_relays(pubkey), self._config.default_relays)
