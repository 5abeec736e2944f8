"""NIP-57 kind 9735 zap receipt decoder.

A zap receipt is published by the recipient's wallet service, not by the
sender. The sender is identified by the ``pubkey`` of the kind 9734 zap
request embedded as JSON in the receipt's ``description`` tag.

Amounts on the wire are millisatoshis; followgraph counts whole sats
(milli-units floor-divided by 1000).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from followgraph.models.constants import EventKind

from .base import DecodeResult, check_kind


if TYPE_CHECKING:
    from followgraph.models.event import Event


logger = logging.getLogger(__name__)

MSATS_PER_SAT = 1000


@dataclass(frozen=True, slots=True)
class ZapReceipt:
    """Decoded zap receipt.

    Attributes:
        recipients: Distinct ``p`` tag values, in tag order.
        sender: ``pubkey`` of the embedded zap request, if parsable.
        amount: Zapped amount in sats (0 when unknown).
        target_event: Zapped event ID (``e`` tag), if any.
    """

    recipients: tuple[str, ...]
    sender: str | None
    amount: int
    target_event: str | None = None


def parse_msats(value: Any) -> int | None:
    """Parse a millisatoshi amount string, returning ``None`` when unusable."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value.isascii() or not value.isdigit():
        return None
    try:
        return int(value)
    except ValueError:
        # beyond the interpreter's int digit limit
        return None


def _amount_tag(tags: Any) -> int | None:
    if not isinstance(tags, list):
        return None
    for tag in tags:
        if isinstance(tag, list) and len(tag) >= 2 and tag[0] == "amount":  # noqa: PLR2004
            msats = parse_msats(tag[1])
            if msats is not None:
                return msats
    return None


def parse_zap_request(description: str | None) -> dict[str, Any] | None:
    """Parse the embedded zap request JSON, returning ``None`` when unusable."""
    if not description:
        return None
    try:
        request = json.loads(description)
    except (ValueError, RecursionError):
        logger.debug("zap_request_invalid reason=invalid_json")
        return None
    if not isinstance(request, dict):
        logger.debug("zap_request_invalid reason=not_an_object")
        return None
    return request


def decode_zap_receipt(event: Event) -> DecodeResult[ZapReceipt]:
    """Decode a kind 9735 event.

    Amount resolution, first match wins:

    1. the receipt's own ``amount`` tag;
    2. the ``amount`` tag of the embedded zap request;
    3. zero.
    """
    wrong = check_kind(event, EventKind.ZAP_RECEIPT)
    if wrong is not None:
        return wrong

    request = parse_zap_request(event.first_tag_value("description"))

    msats = _amount_tag([list(tag) for tag in event.tags])
    if msats is None and request is not None:
        msats = _amount_tag(request.get("tags"))

    sender = None
    if request is not None:
        pubkey = request.get("pubkey")
        if isinstance(pubkey, str) and pubkey:
            sender = pubkey.lower()

    recipients = tuple(dict.fromkeys(event.tag_values("p")))
    return DecodeResult.success(
        ZapReceipt(
            recipients=recipients,
            sender=sender,
            amount=(msats or 0) // MSATS_PER_SAT,
            target_event=event.first_tag_value("e"),
        )
    )
