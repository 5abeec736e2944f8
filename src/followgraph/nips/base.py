"""Decoder result type shared by every NIP decoder.

Decoders are pure, total functions: they never raise for bad relay data.
Instead they return a [DecodeResult][followgraph.nips.base.DecodeResult]
that either carries the typed record or names what went wrong, and the
caller decides the fallback policy (skip, default record, zero).

Examples:
    ```python
    result = decode_metadata(event)
    if result.ok:
        use(result.value)
    else:
        logger.debug("metadata_invalid error=%s", result.error)
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar


if TYPE_CHECKING:
    from followgraph.models.event import Event


T = TypeVar("T")


class ParseErrorKind(StrEnum):
    """Reason a decoder could not produce a record.

    Attributes:
        WRONG_KIND: The event kind does not match the decoder.
        INVALID_JSON: ``content`` (or an embedded payload) is not valid JSON.
        INVALID_SHAPE: The JSON or tags have an unexpected structure.
        INVALID_VALUE: A field is present but its value is unusable.
    """

    WRONG_KIND = "wrong_kind"
    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True, slots=True)
class DecodeResult(Generic[T]):
    """Either a decoded record or a [ParseErrorKind][followgraph.nips.base.ParseErrorKind]."""

    value: T | None = None
    error: ParseErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> DecodeResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ParseErrorKind, detail: str | None = None) -> DecodeResult[T]:
        return cls(error=error, detail=detail)

    def value_or(self, default: T) -> T:
        """Return the decoded value, or *default* on failure."""
        if self.ok and self.value is not None:
            return self.value
        return default


def check_kind(event: Event, expected: int) -> DecodeResult[T] | None:
    """Return a ``WRONG_KIND`` failure if *event* is not of kind *expected*."""
    if event.kind != expected:
        return DecodeResult.failure(
            ParseErrorKind.WRONG_KIND, f"expected kind {expected}, got {event.kind}"
        )
    return None
