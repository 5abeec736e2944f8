"""NIP decoders and event builders.

Each supported event kind has one pure decoder returning a
[DecodeResult][followgraph.nips.base.DecodeResult]; the kind-keyed
[decode()][followgraph.nips.registry.decode] dispatcher ignores unknown
kinds.

Attributes:
    decode_metadata: Kind 0 -> ProfileMetadata (NIP-01).
    decode_text_note: Kind 1 -> TextNote (NIP-01).
    decode_contacts: Kind 3 -> ContactList (NIP-02).
    decode_repost: Kind 6 -> Repost (NIP-18).
    decode_reaction: Kind 7 -> Reaction (NIP-25).
    decode_zap_receipt: Kind 9735 -> ZapReceipt (NIP-57).
    decode_relay_list: Kind 10002 -> RelayList (NIP-65).
    build_contact_list_event: Unsigned kind 3 builder.
"""

from .base import DecodeResult, ParseErrorKind
from .contacts import ContactList, decode_contacts
from .event_builders import build_contact_list_event
from .interactions import (
    Reaction,
    Repost,
    TextNote,
    decode_reaction,
    decode_repost,
    decode_text_note,
)
from .metadata import ProfileMetadata, decode_metadata
from .registry import DECODERS, decode
from .relay_list import RelayList, RelayListEntry, decode_relay_list
from .zaps import ZapReceipt, decode_zap_receipt


__all__ = [
    "DECODERS",
    "ContactList",
    "DecodeResult",
    "ParseErrorKind",
    "ProfileMetadata",
    "Reaction",
    "RelayList",
    "RelayListEntry",
    "Repost",
    "TextNote",
    "ZapReceipt",
    "build_contact_list_event",
    "decode",
    "decode_contacts",
    "decode_metadata",
    "decode_reaction",
    "decode_relay_list",
    "decode_repost",
    "decode_text_note",
    "decode_zap_receipt",
]
