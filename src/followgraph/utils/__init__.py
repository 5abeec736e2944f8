"""Nostr key handling, signing boundary, and nostr-sdk protocol helpers.

The utils layer depends only on [followgraph.models][followgraph.models].
It provides the low-level protocol and cryptographic utilities used by
[followgraph.core][followgraph.core], [followgraph.nips][followgraph.nips],
and [followgraph.services][followgraph.services].

Attributes:
    keys: Public key parsing, ``npub`` encoding, and private key loading
        from environment variables with Pydantic validation.
    signer: The [Signer][followgraph.utils.signer.Signer] protocol and a
        local ``nostr_sdk.Keys`` implementation.
    protocol: nostr-sdk client factory, per-relay fetch/send helpers, and
        model conversions.

Examples:
    ```python
    from followgraph.utils.keys import parse_public_key, to_npub
    from followgraph.utils.signer import KeysSigner
    ```
"""
