"""Kind-keyed decoder dispatch.

Every supported kind maps to exactly one decoder. Kinds without a decoder
are ignored: [decode()][followgraph.nips.registry.decode] returns ``None``
for them instead of raising.
"""

from __future__ import annotations

from collections.abc import Callable
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from followgraph.models.constants import EventKind

from .contacts import decode_contacts
from .interactions import decode_reaction, decode_repost, decode_text_note
from .metadata import decode_metadata
from .relay_list import decode_relay_list
from .zaps import decode_zap_receipt


if TYPE_CHECKING:
    from followgraph.models.event import Event

    from .base import DecodeResult


Decoder = Callable[["Event"], "DecodeResult[Any]"]

DECODERS: MappingProxyType[int, Decoder] = MappingProxyType(
    {
        EventKind.SET_METADATA: decode_metadata,
        EventKind.TEXT_NOTE: decode_text_note,
        EventKind.CONTACTS: decode_contacts,
        EventKind.REPOST: decode_repost,
        EventKind.REACTION: decode_reaction,
        EventKind.ZAP_RECEIPT: decode_zap_receipt,
        EventKind.RELAY_LIST: decode_relay_list,
    }
)


def decode(event: Event) -> DecodeResult[Any] | None:
    """Decode *event* with the decoder registered for its kind.

    Returns:
        The decoder's result, or ``None`` if the kind is not supported.
    """
    decoder = DECODERS.get(event.kind)
    if decoder is None:
        return None
    return decoder(event)
