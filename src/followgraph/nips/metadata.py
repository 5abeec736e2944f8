"""NIP-01 kind 0 profile metadata decoder."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from followgraph.models.constants import EventKind

from .base import DecodeResult, ParseErrorKind, check_kind


if TYPE_CHECKING:
    from followgraph.models.event import Event


@dataclass(frozen=True, slots=True)
class ProfileMetadata:
    """Fields of a kind 0 ``content`` object that followgraph understands.

    Non-string values are dropped field by field; empty strings are
    treated as absent.
    """

    name: str | None = None
    display_name: str | None = None
    picture: str | None = None
    about: str | None = None
    nip05: str | None = None
    website: str | None = None
    banner: str | None = None
    lud16: str | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ProfileMetadata:
        # Some clients still publish the legacy camelCase "displayName".
        display_name = _text(data.get("display_name")) or _text(data.get("displayName"))
        return cls(
            name=_text(data.get("name")),
            display_name=display_name,
            picture=_text(data.get("picture")),
            about=_text(data.get("about")),
            nip05=_text(data.get("nip05")),
            website=_text(data.get("website")),
            banner=_text(data.get("banner")),
            lud16=_text(data.get("lud16")),
        )


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def decode_metadata(event: Event) -> DecodeResult[ProfileMetadata]:
    """Decode a kind 0 event's JSON ``content``."""
    wrong = check_kind(event, EventKind.SET_METADATA)
    if wrong is not None:
        return wrong
    try:
        data = json.loads(event.content)
    except (ValueError, RecursionError) as e:
        return DecodeResult.failure(ParseErrorKind.INVALID_JSON, str(e))
    if not isinstance(data, dict):
        return DecodeResult.failure(
            ParseErrorKind.INVALID_SHAPE, f"content is {type(data).__name__}, expected object"
        )
    return DecodeResult.success(ProfileMetadata.from_mapping(data))
