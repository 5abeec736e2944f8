"""Nostr key handling utilities for followgraph.

Provides identity parsing (hex or ``npub`` bech32), the ``npub`` display
encoding, and a Pydantic model for loading a private key from an
environment variable for local signing.

Warning:
    Private keys must **never** be stored in configuration files, source code,
    or logged to any output. Always use environment variables or a secure
    secret management system.

See Also:
    [KeysSigner][followgraph.utils.signer.KeysSigner]: Signs events with the
        keys loaded by [KeysConfig][followgraph.utils.keys.KeysConfig].

Examples:
    ```python
    parse_public_key("npub1...")   # '3bf0c63f...'
    to_npub("3bf0c63f...")         # 'npub1...'
    ```
"""

from __future__ import annotations

import os
from typing import Any

from nostr_sdk import Keys, NostrSdkError, PublicKey
from pydantic import BaseModel, Field, model_validator


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret  # Default env var name

_HEX_DIGITS = frozenset("0123456789abcdef")


def parse_public_key(identity: str) -> str:
    """Parse a public key given as hex, ``npub``, or ``nostr:`` URI.

    Args:
        identity: Public key in any format accepted by ``nostr_sdk.PublicKey.parse``.

    Returns:
        The 64-character lowercase hex public key.

    Raises:
        ValueError: If *identity* is empty or not a valid public key.
    """
    if not identity or not isinstance(identity, str) or not identity.strip():
        raise ValueError("identity must be a non-empty string")
    try:
        return PublicKey.parse(identity.strip()).to_hex()
    except NostrSdkError as e:
        raise ValueError(f"invalid public key: {identity!r}") from e


def is_valid_public_key(value: str) -> bool:
    """Return True if *value* is a 64-char lowercase hex key on the secp256k1 curve."""
    if len(value) != 64 or any(c not in _HEX_DIGITS for c in value):  # noqa: PLR2004
        return False
    try:
        PublicKey.parse(value)
    except NostrSdkError:
        return False
    return True


def to_npub(pubkey: str) -> str:
    """Encode a hex public key as NIP-19 ``npub`` bech32.

    Raises:
        ValueError: If *pubkey* is not a valid public key.
    """
    try:
        return PublicKey.parse(pubkey).to_bech32()
    except NostrSdkError as e:
        raise ValueError(f"invalid public key: {pubkey!r}") from e


def load_keys_from_env(env_var: str) -> Keys:
    """Load the signing key pair from *env_var* (``nsec`` bech32 or hex secret).

    Raises:
        ValueError: If the variable is unset, empty, or not a valid secret key.
            The message names the variable, never its value.
    """
    value = os.getenv(env_var, "").strip()
    if not value:
        raise ValueError(f"{env_var} environment variable is required to sign events")
    try:
        return Keys.parse(value)
    except NostrSdkError:
        raise ValueError(f"{env_var} does not hold a valid secret key") from None


class KeysConfig(BaseModel):
    """Signing identity for ``publish``, loaded from the environment.

    Only the variable name is configurable; the secret itself never passes
    through YAML.

    Warning:
        ``keys`` holds a live private key. Do not serialize this model.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable holding the secret key",
    )
    keys: Keys = Field(repr=False, description="Key pair loaded from keys_env")

    @model_validator(mode="before")
    @classmethod
    def _load_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and "keys" not in data:
            data = {**data, "keys": load_keys_from_env(data.get("keys_env", ENV_PRIVATE_KEY))}
        return data

    @property
    def public_key(self) -> str:
        """Hex public key of the loaded identity."""
        return self.keys.public_key().to_hex()
