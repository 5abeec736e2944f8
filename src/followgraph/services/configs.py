"""Engine configuration models.

All sections have working defaults, so an empty YAML file (or none at
all) yields a usable engine. Partial YAML overrides are merged field by
field by Pydantic.

Examples:
    ```yaml
    relays:
      defaults:
        - wss://relay.damus.io
        - wss://nos.lol
    fanout:
      query_timeout: 8.0
    scoring:
      window_days: 30
    ```

See Also:
    [Engine][followgraph.services.engine.Engine]: Consumes
        [EngineConfig][followgraph.services.configs.EngineConfig].
    [PoolConfig][followgraph.core.pool.PoolConfig]: Embedded pool section.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from followgraph.core.pool import PoolConfig
from followgraph.models.relay import Relay


DEFAULT_RELAYS: tuple[str, ...] = (
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
    "wss://nos.lol",
    "wss://relay.primal.net",
)


class RelaysConfig(BaseModel):
    """Relay sets used when an identity's own relays are unknown.

    Attributes:
        defaults: Appended to every identity's write relays.
        bootstrap: Queried for NIP-65 relay lists; falls back to ``defaults``.
    """

    defaults: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS), min_length=1)
    bootstrap: list[str] | None = Field(default=None, description="Relays for kind 10002 lookups")

    @field_validator("defaults", "bootstrap", mode="after")
    @classmethod
    def validate_urls(cls, v: list[str] | None) -> list[str] | None:
        """Reject relay URLs that do not normalize."""
        if v is None:
            return v
        for url in v:
            Relay(url)
        return v

    @property
    def default_relays(self) -> tuple[Relay, ...]:
        return tuple(dict.fromkeys(Relay(url) for url in self.defaults))

    @property
    def bootstrap_relays(self) -> tuple[Relay, ...]:
        if not self.bootstrap:
            return self.default_relays
        return tuple(dict.fromkeys(Relay(url) for url in self.bootstrap))


class FanoutConfig(BaseModel):
    """Timeouts and filter sizing for fan-out queries (seconds)."""

    query_timeout: float = Field(
        default=8.0, ge=0.1, le=120.0, description="Bound on a bulk query across all relays"
    )
    first_timeout: float = Field(
        default=5.0, ge=0.1, le=120.0, description="Bound on a first-match query"
    )
    max_filter_values: int = Field(
        default=250, ge=1, le=5000, description="Max authors/#p values per filter before chunking"
    )


class ScoringConfig(BaseModel):
    """Interaction scoring defaults."""

    window_days: int = Field(default=30, ge=1, le=365, description="Trailing window in days")


class PublishConfig(BaseModel):
    """Broadcast settings."""

    timeout: float = Field(
        default=10.0, ge=0.1, le=120.0, description="Bound on waiting for an acknowledgment"
    )


class EngineConfig(BaseModel):
    """Aggregate configuration for [Engine][followgraph.services.engine.Engine]."""

    relays: RelaysConfig = Field(default_factory=RelaysConfig)
    fanout: FanoutConfig = Field(default_factory=FanoutConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    keys_env: str = Field(
        default="PRIVATE_KEY",  # pragma: allowlist secret
        min_length=1,
        description="Environment variable holding the signing key (CLI publish only)",
    )
