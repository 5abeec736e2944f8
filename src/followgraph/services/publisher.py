"""Contact list publishing.

[PublishCoordinator][followgraph.services.publisher.PublishCoordinator]
builds an unsigned kind 3 event, hands it to the external
[Signer][followgraph.utils.signer.Signer], checks the signed result and
broadcasts it to the viewer's relay set. The operation succeeds as soon
as one relay acknowledges the event.

Errors:
    PreconditionError: No signer configured, or invalid viewer/contact keys.
    SigningError: The signer failed or returned an event that does not
        match what was requested.
    PublishingError: No relay acknowledged the event.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from followgraph.core.exceptions import PreconditionError, SigningError
from followgraph.core.logger import Logger
from followgraph.models.event import Event
from followgraph.nips.event_builders import build_contact_list_event

from .utils import require_pubkey


if TYPE_CHECKING:
    from collections.abc import Iterable

    from followgraph.models.relay import Relay
    from followgraph.utils.signer import Signer

    from .fanout import FanoutExecutor
    from .resolver import RelaySetResolver


@dataclass(frozen=True, slots=True)
class PublishResult:
    """A signed event and the first relay that acknowledged it."""

    event: Event
    relay: Relay


class PublishCoordinator:
    """Sign and broadcast contact list updates.

    Args:
        executor: Fan-out executor used for the broadcast.
        resolver: Relay set resolver for the viewer.
        signer: External signing capability; ``None`` disables publishing.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        executor: FanoutExecutor,
        resolver: RelaySetResolver,
        signer: Signer | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._executor = executor
        self._resolver = resolver
        self._signer = signer
        self._clock = clock
        self._logger = Logger("publisher")

    @property
    def can_sign(self) -> bool:
        return self._signer is not None

    @staticmethod
    async def _sign(signer: Signer, unsigned: Event) -> Event:
        try:
            signed = await signer.sign(unsigned)
        except SigningError:
            raise
        except Exception as e:  # Intentionally broad: external signer boundary
            raise SigningError(f"signer failed: {e}") from e

        if not isinstance(signed, Event):
            raise SigningError(f"signer returned {type(signed).__name__}, expected Event")
        if not signed.is_signed:
            raise SigningError("signed event is missing id, pubkey or sig")
        if signed.pubkey != unsigned.pubkey:
            raise SigningError(
                f"signed event pubkey {signed.pubkey} does not match viewer {unsigned.pubkey}"
            )
        if signed.kind != unsigned.kind or signed.tags != unsigned.tags:
            raise SigningError("signer altered the event kind or tags")
        return signed

    async def publish_contact_list(self, viewer: str, contacts: Iterable[str]) -> PublishResult:
        """Replace *viewer*'s contact list with *contacts* and broadcast it.

        Args:
            viewer: Hex (or npub) public key the signer signs for.
            contacts: Full new contact set, hex or npub; order is kept.

        Returns:
            The signed event and the first relay that acknowledged it.

        Raises:
            PreconditionError: No signer, or invalid viewer/contact keys.
            SigningError: Signing failed or produced a mismatching event.
            PublishingError: No relay acknowledged the event.
        """
        if self._signer is None:
            raise PreconditionError("publishing requires a signer")
        viewer = require_pubkey(viewer, "viewer")
        new_contacts = [require_pubkey(pk, "contacts") for pk in contacts]

        unsigned = build_contact_list_event(
            viewer, new_contacts, created_at=int(self._clock())
        )
        signed = await self._sign(self._signer, unsigned)

        relays = await self._resolver.relay_set(viewer)
        self._logger.info(
            "publish_started",
            viewer=viewer,
            contacts=len(unsigned.tags),
            relays=len(relays),
            id=signed.id,
        )
        relay = await self._executor.broadcast(relays, signed)
        return PublishResult(event=signed, relay=relay)
