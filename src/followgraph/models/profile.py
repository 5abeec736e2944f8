"""Output records returned to the caller.

[UserProfile][followgraph.models.profile.UserProfile],
[ContactProfile][followgraph.models.profile.ContactProfile], and
[InteractionScore][followgraph.models.profile.InteractionScore] are derived,
never authoritative: they are rebuilt from relay data on every request and
carry no identity beyond the public key.

[ComparisonData][followgraph.models.profile.ComparisonData] pairs two users'
outputs for side-by-side display; see
[Engine.compare()][followgraph.services.engine.Engine.compare].
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass


_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def format_timestamp(timestamp: int) -> str:
    """Render a unix timestamp as ``"January 5, 2024 at 3:07 PM"`` (UTC)."""
    dt = datetime.datetime.fromtimestamp(timestamp, datetime.UTC)
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"  # noqa: PLR2004
    return f"{_MONTHS[dt.month - 1]} {dt.day}, {dt.year} at {hour}:{dt.minute:02d} {meridiem}"


@dataclass(frozen=True, slots=True)
class ContactProfile:
    """Display metadata for one contact.

    An identity with no (or unparsable) kind 0 event is represented with
    only ``pubkey`` and ``npub`` set.
    """

    pubkey: str
    npub: str
    name: str | None = None
    display_name: str | None = None
    picture: str | None = None
    about: str | None = None

    @property
    def label(self) -> str:
        """Best human-readable label: name, display name, or npub."""
        return self.name or self.display_name or self.npub


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Profile of a viewed identity, combining kind 0 and kind 3 data.

    Attributes:
        pubkey: Hex public key.
        npub: Bech32 display encoding of ``pubkey``.
        name: Metadata ``name``, falling back to ``display_name``.
        display_name: Metadata ``display_name``.
        picture: Avatar URL.
        about: Free-form biography.
        contacts_count: Number of distinct contacts in the latest kind 3.
        last_updated: ``created_at`` of the latest kind 3, if any.
    """

    pubkey: str
    npub: str
    name: str | None = None
    display_name: str | None = None
    picture: str | None = None
    about: str | None = None
    contacts_count: int = 0
    last_updated: int | None = None

    @property
    def last_updated_display(self) -> str | None:
        """``last_updated`` rendered for humans, or ``None``."""
        if self.last_updated is None:
            return None
        return format_timestamp(self.last_updated)


@dataclass(frozen=True, slots=True)
class InteractionScore:
    """Snapshot of a viewer's interactions with one contact.

    Attributes:
        pubkey: The contact's hex public key.
        score: Weighted relevance score (see
            [compute_score()][followgraph.services.scoring.compute_score]).
        replies: Viewer notes that tag the contact.
        reactions: Viewer reactions to the contact's notes.
        reposts: Viewer reposts of the contact's notes.
        zaps: Total zapped amount in canonical units (sats).
    """

    pubkey: str
    score: int = 0
    replies: int = 0
    reactions: int = 0
    reposts: int = 0
    zaps: int = 0


@dataclass(frozen=True, slots=True)
class ComparisonData:
    """Side-by-side view of two identities and their contact lists."""

    current_user: UserProfile
    current_user_contacts: tuple[str, ...]
    target_user: UserProfile
    target_user_contacts: tuple[str, ...]

    @property
    def mutual_contacts(self) -> tuple[str, ...]:
        """Contacts followed by both users, in the current user's order."""
        target = set(self.target_user_contacts)
        return tuple(pk for pk in self.current_user_contacts if pk in target)

    @property
    def only_current_user(self) -> tuple[str, ...]:
        """Contacts followed only by the current user."""
        target = set(self.target_user_contacts)
        return tuple(pk for pk in self.current_user_contacts if pk not in target)

    @property
    def only_target_user(self) -> tuple[str, ...]:
        """Contacts followed only by the target user."""
        current = set(self.current_user_contacts)
        return tuple(pk for pk in self.target_user_contacts if pk not in current)
