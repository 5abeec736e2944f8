"""Profile and contact assembly.

Builds [UserProfile][followgraph.models.profile.UserProfile] and
[ContactProfile][followgraph.models.profile.ContactProfile] records from
the latest kind 0 and kind 3 events of each identity. Assembly is total:
every requested identity yields exactly one record, populated when a
usable metadata event was found and identity-only otherwise.

The module-level functions are pure and operate on events already
fetched; [ProfileAssembler][followgraph.services.assembler.ProfileAssembler]
does the fetching.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from followgraph.core.exceptions import ConnectivityError
from followgraph.core.logger import Logger
from followgraph.models.constants import EventKind
from followgraph.models.filter import QueryFilter
from followgraph.models.profile import ContactProfile, UserProfile
from followgraph.nips.contacts import decode_contacts
from followgraph.nips.metadata import ProfileMetadata, decode_metadata
from followgraph.utils.keys import to_npub

from .utils import chunked, require_pubkey


if TYPE_CHECKING:
    from collections.abc import Iterable

    from followgraph.models.event import Event
    from followgraph.models.relay import Relay

    from .configs import FanoutConfig
    from .fanout import FanoutExecutor
    from .resolver import RelaySetResolver


_logger = Logger("assembler")


# =============================================================================
# Pure assembly
# =============================================================================


def latest_by_author(events: Iterable[Event], kind: int) -> dict[str, Event]:
    """Pick each author's latest event of *kind*.

    Ties on ``created_at`` keep the lowest event ID, as relays do for
    replaceable events. Events without an author are ignored.
    """
    latest: dict[str, Event] = {}
    for event in sorted(events, key=lambda e: (-e.created_at, e.dedup_key)):
        if event.kind != kind or event.pubkey is None:
            continue
        latest.setdefault(event.pubkey, event)
    return latest


def _metadata(event: Event | None) -> ProfileMetadata | None:
    if event is None:
        return None
    result = decode_metadata(event)
    if result.value is None:
        _logger.debug("metadata_invalid", pubkey=event.pubkey, error=result.error)
    return result.value


def build_contact_profile(pubkey: str, metadata_event: Event | None = None) -> ContactProfile:
    """Build one contact record; identity-only when *metadata_event* is missing or malformed.

    Raises:
        ValueError: If *pubkey* is not a valid public key.
    """
    npub = to_npub(pubkey)
    metadata = _metadata(metadata_event)
    if metadata is None:
        return ContactProfile(pubkey=pubkey, npub=npub)
    return ContactProfile(
        pubkey=pubkey,
        npub=npub,
        name=metadata.name or metadata.display_name,
        display_name=metadata.display_name,
        picture=metadata.picture,
        about=metadata.about,
    )


def build_user_profile(
    pubkey: str,
    metadata_event: Event | None = None,
    contacts_event: Event | None = None,
) -> UserProfile:
    """Combine an identity's latest kind 0 and kind 3 events into a profile.

    Events authored by someone else are ignored. ``name`` falls back to
    ``display_name``; ``contacts_count`` counts distinct valid contacts.

    Raises:
        ValueError: If *pubkey* is not a valid public key.
    """
    if metadata_event is not None and metadata_event.pubkey not in (None, pubkey):
        metadata_event = None
    if contacts_event is not None and contacts_event.pubkey not in (None, pubkey):
        contacts_event = None

    contact = build_contact_profile(pubkey, metadata_event)
    contacts_count = 0
    last_updated = None
    if contacts_event is not None:
        decoded = decode_contacts(contacts_event)
        if decoded.value is not None:
            contacts_count = len(decoded.value)
            last_updated = decoded.value.created_at

    return UserProfile(
        pubkey=pubkey,
        npub=contact.npub,
        name=contact.name,
        display_name=contact.display_name,
        picture=contact.picture,
        about=contact.about,
        contacts_count=contacts_count,
        last_updated=last_updated,
    )


def assemble_contact_profiles(
    requested: Iterable[str], events: Iterable[Event]
) -> dict[str, ContactProfile]:
    """Map every requested identity to exactly one contact record.

    Args:
        requested: Hex public keys; duplicates collapse, first order kept.
        events: Candidate kind 0 events from any number of relays.

    Raises:
        ValueError: If a requested key is not a valid public key.
    """
    latest = latest_by_author(events, EventKind.SET_METADATA)
    return {
        pubkey: build_contact_profile(pubkey, latest.get(pubkey))
        for pubkey in dict.fromkeys(requested)
    }


# =============================================================================
# Fetching
# =============================================================================


class ProfileAssembler:
    """Fetch the events behind profiles and contact lists.

    Args:
        executor: Fan-out executor.
        resolver: Relay set resolver for the viewed identity.
        config: Fan-out sizing (``max_filter_values`` chunks large author lists).
    """

    def __init__(
        self,
        executor: FanoutExecutor,
        resolver: RelaySetResolver,
        config: FanoutConfig,
    ) -> None:
        self._executor = executor
        self._resolver = resolver
        self._config = config
        self._logger = _logger

    async def _latest(self, relays: Iterable[Relay], pubkey: str, kind: int) -> Event | None:
        return await self._executor.query_first(
            relays, QueryFilter(kinds=(kind,), authors=(pubkey,))
        )

    async def fetch_user_profile(self, pubkey: str) -> UserProfile:
        """Fetch *pubkey*'s latest metadata and contact list and build its profile."""
        pubkey = require_pubkey(pubkey, "pubkey")
        relays = await self._resolver.relay_set(pubkey)
        metadata_event, contacts_event = await asyncio.gather(
            self._latest(relays, pubkey, EventKind.SET_METADATA),
            self._latest(relays, pubkey, EventKind.CONTACTS),
        )
        profile = build_user_profile(pubkey, metadata_event, contacts_event)
        self._logger.debug(
            "user_profile_assembled",
            pubkey=pubkey,
            metadata=metadata_event is not None,
            contacts=profile.contacts_count,
        )
        return profile

    async def fetch_contacts(
        self, pubkey: str, relays: Iterable[Relay] | None = None
    ) -> tuple[str, ...]:
        """Return the distinct contacts of *pubkey*'s latest contact list.

        Empty when no contact list was found.
        """
        pubkey = require_pubkey(pubkey, "pubkey")
        if relays is None:
            relays = await self._resolver.relay_set(pubkey)
        event = await self._latest(relays, pubkey, EventKind.CONTACTS)
        if event is None or event.pubkey not in (None, pubkey):
            self._logger.debug("contacts_not_found", pubkey=pubkey)
            return ()
        decoded = decode_contacts(event)
        if decoded.value is None:
            return ()
        if decoded.value.skipped:
            self._logger.debug("contacts_skipped", pubkey=pubkey, skipped=decoded.value.skipped)
        return decoded.value.contacts

    async def fetch_contacts_for_update(self, pubkey: str) -> tuple[str, ...]:
        """Return *pubkey*'s current contacts as the base of a contact list edit.

        Every relay in the set is asked and the latest list among the
        answers wins. Unlike [fetch_contacts()][followgraph.services.assembler.ProfileAssembler.fetch_contacts],
        "no list" is only reported when at least one relay actually answered.

        Raises:
            ConnectivityError: If no relay answered, so the current list is unknown.
        """
        pubkey = require_pubkey(pubkey, "pubkey")
        relays = await self._resolver.relay_set(pubkey)
        outcome = await self._executor.query_outcome(
            relays, QueryFilter(kinds=(EventKind.CONTACTS,), authors=(pubkey,))
        )
        if not outcome.answered:
            raise ConnectivityError(
                f"no relay answered the contact list query ({len(relays)} tried)"
            )
        event = latest_by_author(outcome.events, EventKind.CONTACTS).get(pubkey)
        if event is None:
            self._logger.debug("contacts_not_found", pubkey=pubkey, answered=outcome.answered)
            return ()
        decoded = decode_contacts(event)
        return () if decoded.value is None else decoded.value.contacts

    async def fetch_contact_profiles(
        self,
        pubkeys: Iterable[str],
        relays: Iterable[Relay] | None = None,
    ) -> dict[str, ContactProfile]:
        """Fetch display metadata for many identities at once.

        Author lists longer than ``max_filter_values`` are split into
        several filters queried concurrently.

        Args:
            pubkeys: Hex (or npub) public keys.
            relays: Relays to query; defaults to the configured defaults.

        Returns:
            One record per distinct requested key, in request order.
        """
        requested = tuple(dict.fromkeys(require_pubkey(pk, "pubkeys") for pk in pubkeys))
        if not requested:
            return {}
        targets = tuple(relays) if relays is not None else self._resolver.default_relays

        batches = await asyncio.gather(
            *(
                self._executor.query(
                    targets, QueryFilter(kinds=(EventKind.SET_METADATA,), authors=chunk)
                )
                for chunk in chunked(requested, self._config.max_filter_values)
            )
        )
        events = [event for batch in batches for event in batch]
        profiles = assemble_contact_profiles(requested, events)
        self._logger.debug(
            "contact_profiles_assembled",
            requested=len(requested),
            with_metadata=sum(1 for p in profiles.values() if p.name or p.display_name),
        )
        return profiles
