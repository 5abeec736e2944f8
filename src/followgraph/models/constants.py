"""Protocol constants shared by the models, nips and services layers."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class NetworkType(StrEnum):
    """Where a relay host lives, as decided by
    [classify_host()][followgraph.models.relay.classify_host].

    Overlay relays (``TOR``, ``I2P``, ``LOKI``) are dialed through a SOCKS5
    proxy over ``ws://``. ``LOCAL`` and ``UNKNOWN`` only ever appear as
    classification results; a [Relay][followgraph.models.relay.Relay] with
    either cannot be constructed.
    """

    CLEARNET = "clearnet"
    TOR = "tor"
    I2P = "i2p"
    LOKI = "loki"
    LOCAL = "local"
    UNKNOWN = "unknown"


class EventKind(IntEnum):
    """Well-known Nostr event kinds consumed or produced by followgraph.

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note; ``p`` tags are mentions/replies.
        CONTACTS: Kind 3 -- contact list (NIP-02).
        REPOST: Kind 6 -- repost of a kind 1 note (NIP-18).
        REACTION: Kind 7 -- reaction to another event (NIP-25).
        ZAP_REQUEST: Kind 9734 -- zap request, embedded in receipts (NIP-57).
        ZAP_RECEIPT: Kind 9735 -- zap receipt published by a wallet (NIP-57).
        RELAY_LIST: Kind 10002 -- relay list metadata (NIP-65).
    """

    SET_METADATA = 0
    TEXT_NOTE = 1
    CONTACTS = 3
    REPOST = 6
    REACTION = 7
    ZAP_REQUEST = 9_734
    ZAP_RECEIPT = 9_735
    RELAY_LIST = 10_002


EVENT_KIND_MAX = 65_535

SECONDS_PER_DAY = 86_400
