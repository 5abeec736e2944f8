r"""followgraph -- Nostr client aggregation engine.

Discovers where an identity publishes, queries many independent relays in
parallel, merges their partial and duplicated answers into one consistent
view (profile, contact list, per-contact interaction scores), and publishes
contact list updates through an external signer.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Fan-out, resolution, assembly, scoring, publishing
             /   |   \
          core  nips  utils    Relay pool and transport, decoders, key helpers
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses. Zero I/O, depends only on stdlib.
    core: Relay pool, transport capability, exceptions, logging, metrics.
    nips: Pure per-kind event decoders and event builders.
    utils: Key parsing, the signer boundary, nostr-sdk conversions.
    services: The engine and its component services.

Note:
    For lightweight usage, import directly from subpackages::

        from followgraph.models import Relay
        from followgraph.services import Engine

    Top-level imports (``from followgraph import Engine``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("followgraph")

__all__ = [
    "ComparisonData",
    "ContactProfile",
    "Engine",
    "EngineConfig",
    "Event",
    "FanoutExecutor",
    "InteractionScore",
    "InteractionScorer",
    "KeysSigner",
    "Logger",
    "ProfileAssembler",
    "PublishCoordinator",
    "QueryFilter",
    "Relay",
    "RelayPool",
    "RelaySetResolver",
    "Signer",
    "UserProfile",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("followgraph.core", "Logger"),
    "RelayPool": ("followgraph.core", "RelayPool"),
    "ComparisonData": ("followgraph.models", "ComparisonData"),
    "ContactProfile": ("followgraph.models", "ContactProfile"),
    "Event": ("followgraph.models", "Event"),
    "InteractionScore": ("followgraph.models", "InteractionScore"),
    "QueryFilter": ("followgraph.models", "QueryFilter"),
    "Relay": ("followgraph.models", "Relay"),
    "UserProfile": ("followgraph.models", "UserProfile"),
    "KeysSigner": ("followgraph.utils.signer", "KeysSigner"),
    "Signer": ("followgraph.utils.signer", "Signer"),
    "Engine": ("followgraph.services", "Engine"),
    "EngineConfig": ("followgraph.services", "EngineConfig"),
    "FanoutExecutor": ("followgraph.services", "FanoutExecutor"),
    "InteractionScorer": ("followgraph.services", "InteractionScorer"),
    "ProfileAssembler": ("followgraph.services", "ProfileAssembler"),
    "PublishCoordinator": ("followgraph.services", "PublishCoordinator"),
    "RelaySetResolver": ("followgraph.services", "RelaySetResolver"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'followgraph' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
