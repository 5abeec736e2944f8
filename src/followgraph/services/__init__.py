"""Services layer: the aggregation operations built on the fan-out executor.

Attributes:
    Engine: Facade wiring every service from one
        [EngineConfig][followgraph.services.configs.EngineConfig].
    FanoutExecutor: Concurrent multi-relay query and broadcast.
    QueryOutcome: Merged query answer plus the relays that answered.
    RelaySetResolver: NIP-65 write relay resolution with default fallback.
    ProfileAssembler: User and contact profile assembly.
    InteractionScorer: Per-contact interaction scoring over a time window.
    PublishCoordinator: Contact list signing and broadcast.
"""

from .assembler import (
    ProfileAssembler,
    assemble_contact_profiles,
    build_contact_profile,
    build_user_profile,
)
from .configs import (
    DEFAULT_RELAYS,
    EngineConfig,
    FanoutConfig,
    PublishConfig,
    RelaysConfig,
    ScoringConfig,
)
from .engine import Engine
from .fanout import FanoutExecutor, QueryOutcome
from .publisher import PublishCoordinator, PublishResult
from .resolver import RelaySetResolver
from .scoring import InteractionEvents, InteractionScorer, compute_score, tally_interactions


__all__ = [
    "DEFAULT_RELAYS",
    "Engine",
    "EngineConfig",
    "FanoutConfig",
    "FanoutExecutor",
    "InteractionEvents",
    "InteractionScorer",
    "ProfileAssembler",
    "PublishConfig",
    "PublishCoordinator",
    "PublishResult",
    "QueryOutcome",
    "RelaySetResolver",
    "RelaysConfig",
    "ScoringConfig",
    "assemble_contact_profiles",
    "build_contact_profile",
    "build_user_profile",
    "compute_score",
    "tally_interactions",
]
