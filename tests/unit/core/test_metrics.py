"""
Unit tests for core.metrics module.

Tests:
- Module-level metric objects and their types
- Outcome recording by the fan-out executor
"""

from __future__ import annotations

from typing import Any

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

from followgraph.core.exceptions import ConnectivityError
from followgraph.core.metrics import (
    FANOUT_EVENTS,
    POOL_CONNECTIONS,
    RELAY_REQUEST_SECONDS,
    RELAY_REQUESTS,
)
from followgraph.models.filter import QueryFilter
from followgraph.models.relay import Relay
from followgraph.services.fanout import FanoutExecutor


def _requests(operation: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "followgraph_relay_requests_total", {"operation": operation, "outcome": outcome}
    )
    return value or 0.0


class TestMetricObjects:
    """Tests for the module-level metric singletons."""

    def test_types(self) -> None:
        assert isinstance(RELAY_REQUESTS, Counter)
        assert isinstance(RELAY_REQUEST_SECONDS, Histogram)
        assert isinstance(FANOUT_EVENTS, Counter)
        assert isinstance(POOL_CONNECTIONS, Gauge)


class TestRecording:
    """Tests for metric updates during fan-out."""

    async def test_outcomes_counted(
        self, transport: Any, relays: tuple[Relay, ...], make_event: Any
    ) -> None:
        transport.add(relays[0], make_event(1, "a" * 64))
        transport.failing[relays[1].url] = ConnectivityError("down")
        ok_before = _requests("fetch", "ok")
        error_before = _requests("fetch", "error")
        events_before = REGISTRY.get_sample_value("followgraph_fanout_events_total") or 0.0

        await FanoutExecutor(transport).query(relays[:2], QueryFilter(kinds=(1,)))

        assert _requests("fetch", "ok") == ok_before + 1
        assert _requests("fetch", "error") == error_before + 1
        assert REGISTRY.get_sample_value("followgraph_fanout_events_total") == events_before + 1
