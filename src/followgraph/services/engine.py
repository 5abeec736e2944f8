"""Engine facade.

[Engine][followgraph.services.engine.Engine] wires the relay transport,
fan-out executor, resolver, assembler, scorer and publisher together from
one [EngineConfig][followgraph.services.configs.EngineConfig], and
accepts identities as hex or ``npub``.

When no transport is injected the engine creates its own
[RelayPool][followgraph.core.pool.RelayPool] and closes it on exit.

Examples:
    ```python
    async with Engine.from_yaml("config/followgraph.yaml") as engine:
        profile = await engine.fetch_user_profile("npub1...")
        contacts = await engine.fetch_contacts(profile.pubkey)
        scores = await engine.score_interactions(profile.pubkey, contacts)
    ```
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from followgraph.core.exceptions import ConfigurationError, ConnectivityError, PublishingError
from followgraph.core.logger import Logger
from followgraph.core.pool import RelayPool
from followgraph.core.transport import PoolTransport
from followgraph.core.yaml import load_yaml
from followgraph.models.profile import ComparisonData

from .assembler import ProfileAssembler
from .configs import EngineConfig
from .fanout import FanoutExecutor
from .publisher import PublishCoordinator
from .resolver import RelaySetResolver
from .scoring import InteractionScorer
from .utils import require_pubkey


if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from followgraph.core.transport import RelayTransport
    from followgraph.models.profile import ContactProfile, InteractionScore, UserProfile
    from followgraph.models.relay import Relay
    from followgraph.utils.signer import Signer

    from .publisher import PublishResult


class Engine:
    """Aggregation engine over a set of unreliable relays.

    Args:
        config: Engine configuration; defaults to ``EngineConfig()``.
        transport: Relay transport; a pooled nostr-sdk transport is created
            (and owned) when omitted.
        signer: Signing capability for publishing; ``None`` makes the
            engine read-only.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        transport: RelayTransport | None = None,
        signer: Signer | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or EngineConfig()
        self._pool: RelayPool | None = None
        if transport is None:
            self._pool = RelayPool(self._config.pool)
            transport = PoolTransport(self._pool)
        self._transport = transport
        self._logger = Logger("engine")

        self.executor = FanoutExecutor(
            transport, self._config.fanout, publish_timeout=self._config.publish.timeout
        )
        self.resolver = RelaySetResolver(self.executor, self._config.relays)
        self.assembler = ProfileAssembler(self.executor, self.resolver, self._config.fanout)
        self.scorer = InteractionScorer(
            self.executor,
            self.resolver,
            self._config.scoring,
            self._config.fanout,
            clock=clock,
        )
        self.publisher = PublishCoordinator(self.executor, self.resolver, signer, clock=clock)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Engine:
        """Build an engine from a configuration mapping.

        Raises:
            ConfigurationError: If the mapping does not validate.
        """
        try:
            config = EngineConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid configuration: {e}") from e
        return cls(config, **kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path, **kwargs: Any) -> Engine:
        """Build an engine from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML is invalid or does not validate.
        """
        return cls.from_dict(load_yaml(path), **kwargs)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def transport(self) -> RelayTransport:
        return self._transport

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Wait for background broadcasts, then close the owned pool."""
        await self.executor.drain()
        if self._pool is not None:
            await self._pool.close()
        self._logger.debug("engine_closed")

    async def __aenter__(self) -> Engine:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def resolve_write_relays(self, identity: str) -> tuple[Relay, ...]:
        """Write relays declared by *identity* (empty when unknown)."""
        return await self.resolver.resolve_write_relays(require_pubkey(identity))

    async def relay_set(self, identity: str) -> tuple[Relay, ...]:
        """Write relays of *identity* followed by the defaults."""
        return await self.resolver.relay_set(require_pubkey(identity))

    async def fetch_user_profile(self, identity: str) -> UserProfile:
        return await self.assembler.fetch_user_profile(require_pubkey(identity))

    async def fetch_contacts(self, identity: str) -> tuple[str, ...]:
        return await self.assembler.fetch_contacts(require_pubkey(identity))

    async def fetch_contact_profiles(
        self,
        identities: Iterable[str],
        relays: Iterable[Relay] | None = None,
    ) -> dict[str, ContactProfile]:
        """Contact records keyed by hex public key, one per distinct identity."""
        return await self.assembler.fetch_contact_profiles(identities, relays)

    async def score_interactions(
        self,
        viewer: str,
        contacts: Iterable[str] | None = None,
        window_days: int | None = None,
    ) -> dict[str, InteractionScore]:
        """Score *viewer*'s contacts; fetches the contact list when *contacts* is omitted."""
        viewer = require_pubkey(viewer, "viewer")
        if contacts is None:
            contacts = await self.assembler.fetch_contacts(viewer)
        return await self.scorer.score(viewer, contacts, window_days)

    async def compare(self, current: str, target: str) -> ComparisonData:
        """Profiles and contact lists of two identities, side by side."""
        current = require_pubkey(current, "current")
        target = require_pubkey(target, "target")
        current_profile, current_contacts, target_profile, target_contacts = await asyncio.gather(
            self.assembler.fetch_user_profile(current),
            self.assembler.fetch_contacts(current),
            self.assembler.fetch_user_profile(target),
            self.assembler.fetch_contacts(target),
        )
        return ComparisonData(
            current_user=current_profile,
            current_user_contacts=current_contacts,
            target_user=target_profile,
            target_user_contacts=target_contacts,
        )

    async def publish_contact_list(self, viewer: str, contacts: Iterable[str]) -> PublishResult:
        """Sign and broadcast *viewer*'s new contact list."""
        return await self.publisher.publish_contact_list(viewer, contacts)

    async def update_contacts(
        self,
        viewer: str,
        *,
        add: Iterable[str] = (),
        remove: Iterable[str] = (),
    ) -> PublishResult:
        """Fetch *viewer*'s contacts, apply *add*/*remove*, and publish the result.

        Added keys are appended in order; removing an absent key is a no-op.
        An identity with no published list starts from empty, but only when
        some relay confirmed that; a list that could not be fetched is never
        replaced.

        Raises:
            PublishingError: If no relay answered the contact list query, or
                no relay acknowledged the new list.
        """
        viewer = require_pubkey(viewer, "viewer")
        removed = {require_pubkey(pk, "remove") for pk in remove}
        added = [require_pubkey(pk, "add") for pk in add]
        try:
            current = await self.assembler.fetch_contacts_for_update(viewer)
        except ConnectivityError as e:
            self._logger.warning("contacts_update_refused", viewer=viewer, error=str(e))
            raise PublishingError(f"current contact list unknown, not publishing: {e}") from e
        updated = [pk for pk in current if pk not in removed]
        updated.extend(added)
        return await self.publisher.publish_contact_list(viewer, dict.fromkeys(updated))
