"""
Prometheus metrics for relay traffic.

Module-level metric objects (singletons, thread-safe) shared by every
engine in the process. The fan-out executor records one outcome per relay
call, and pool connects are counted separately so operators can tell
connection churn from query failures.

Exposition is left to the host application (``prometheus_client`` offers
``start_http_server`` and WSGI/ASGI apps); the core only records.

Architecture:
    RELAY_REQUESTS:           Counter of relay calls by operation and outcome.
    RELAY_REQUEST_SECONDS:    Histogram of per-relay call latency.
    FANOUT_EVENTS:            Counter of deduplicated events returned by queries.
    POOL_CONNECTIONS:         Gauge of open pooled relay connections.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


RELAY_REQUESTS = Counter(
    "followgraph_relay_requests",
    "Relay calls by operation (fetch/publish/connect) and outcome (ok/error/timeout)",
    ["operation", "outcome"],
)

RELAY_REQUEST_SECONDS = Histogram(
    "followgraph_relay_request_seconds",
    "Duration of a single relay call in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)

FANOUT_EVENTS = Counter(
    "followgraph_fanout_events",
    "Deduplicated events returned by fan-out queries",
)

POOL_CONNECTIONS = Gauge(
    "followgraph_pool_connections",
    "Open pooled relay connections",
)
