"""Signing capability boundary.

followgraph never performs the signing ceremony itself: publishing hands an
unsigned [Event][followgraph.models.event.Event] to whatever implements
[Signer][followgraph.utils.signer.Signer] (a browser extension bridge, a
remote bunker, a hardware device) and validates what comes back.

[KeysSigner][followgraph.utils.signer.KeysSigner] is the local
implementation backed by ``nostr_sdk.Keys``, used by the CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from nostr_sdk import EventBuilder, Kind, Tag, Timestamp

from .protocol import from_nostr_event


if TYPE_CHECKING:
    from nostr_sdk import Keys

    from followgraph.models.event import Event


@runtime_checkable
class Signer(Protocol):
    """External capability that turns an unsigned event into a signed one.

    Implementations raise any exception when unavailable or when the key
    holder rejects the request.
    """

    async def sign(self, event: Event) -> Event:
        """Return *event* with ``id``, ``pubkey``, and ``sig`` populated."""
        ...


class KeysSigner:
    """Sign events locally with a ``nostr_sdk.Keys`` pair.

    Examples:
        ```python
        signer = KeysSigner(KeysConfig().keys)
        signed = await signer.sign(unsigned)
        ```
    """

    def __init__(self, keys: Keys) -> None:
        self._keys = keys

    @property
    def public_key(self) -> str:
        """Hex public key of the signing keys."""
        return self._keys.public_key().to_hex()

    async def sign(self, event: Event) -> Event:
        builder = (
            EventBuilder(Kind(event.kind), event.content)
            .tags([Tag.parse(list(tag)) for tag in event.tags])
            .custom_created_at(Timestamp.from_secs(event.created_at))
        )
        return from_nostr_event(builder.sign_with_keys(self._keys))
