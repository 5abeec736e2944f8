"""Pure frozen dataclasses with zero I/O for Nostr events, relays, and outputs.

The models layer is the foundation of the diamond DAG. It has **no dependencies**
on any other followgraph package. Every model uses
``@dataclass(frozen=True, slots=True)`` and validates in ``__post_init__`` so
invalid instances never escape the constructor.

Attributes:
    Event: Immutable event envelope with optional identifier fields.
    Relay: Normalized relay endpoint with RFC 3986 parsing and automatic
        [NetworkType][followgraph.models.constants.NetworkType] detection.
    QueryFilter: Declarative NIP-01 filter.
    UserProfile: Profile of a viewed identity (kind 0 + kind 3).
    ContactProfile: Display metadata for one contact.
    InteractionScore: Per-contact interaction snapshot.
    ComparisonData: Two users' profiles and contact lists side by side.
"""

from .constants import EVENT_KIND_MAX, SECONDS_PER_DAY, EventKind, NetworkType
from .event import Event
from .filter import QueryFilter
from .profile import ComparisonData, ContactProfile, InteractionScore, UserProfile
from .relay import Relay, dedupe_relays


__all__ = [
    "EVENT_KIND_MAX",
    "SECONDS_PER_DAY",
    "ComparisonData",
    "ContactProfile",
    "Event",
    "EventKind",
    "InteractionScore",
    "NetworkType",
    "QueryFilter",
    "Relay",
    "UserProfile",
    "dedupe_relays",
]
