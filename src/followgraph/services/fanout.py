"""Concurrent multi-relay query and broadcast.

[FanoutExecutor][followgraph.services.fanout.FanoutExecutor] sends one
request per relay concurrently and merges the answers:

- ``query``: every relay, bounded by a timeout; results from relays that
  answer in time are merged and deduplicated by event ID. Relays that
  error or time out contribute nothing and never abort the operation.
  ``query_outcome`` returns the same merge together with the relays that
  answered, so callers can tell "nothing published" from "nobody answered".
- ``query_first``: returns the newest match from the first relay that
  yields any result; the remaining requests are left to finish in the
  background and their results are ignored.
- ``broadcast``: succeeds as soon as one relay acknowledges. Sends still
  in flight keep running in the background, each bounded by the publish
  timeout, and are joined by ``drain()``.

Every relay call is recorded in the Prometheus metrics of
[followgraph.core.metrics][followgraph.core.metrics].

See Also:
    [RelayTransport][followgraph.core.transport.RelayTransport]: The
        single-relay capability fanned out here.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from followgraph.core.exceptions import FollowgraphError, PublishingError
from followgraph.core.logger import Logger
from followgraph.core.metrics import FANOUT_EVENTS, RELAY_REQUEST_SECONDS, RELAY_REQUESTS
from followgraph.models.relay import dedupe_relays

from .configs import FanoutConfig


if TYPE_CHECKING:
    from collections.abc import Iterable

    from followgraph.core.transport import RelayTransport
    from followgraph.models.event import Event
    from followgraph.models.filter import QueryFilter
    from followgraph.models.relay import Relay


DEFAULT_PUBLISH_TIMEOUT = 10.0


def _newest_first(event: Event) -> tuple[int, str]:
    return (-event.created_at, event.dedup_key)


@dataclass(frozen=True, slots=True)
class QueryOutcome:
    """Merged answer of a fan-out query.

    Attributes:
        events: Unique by event ID, newest first.
        answered: Relays that returned a response in time (possibly empty),
            in request order.
    """

    events: tuple[Event, ...] = field(default=())
    answered: tuple[Relay, ...] = field(default=())


class FanoutExecutor:
    """Fan a request out to many relays and merge the results.

    Args:
        transport: Single-relay request capability.
        config: Query timeouts; defaults to ``FanoutConfig()``.
        publish_timeout: Bound on each broadcast send, in seconds.
    """

    def __init__(
        self,
        transport: RelayTransport,
        config: FanoutConfig | None = None,
        *,
        publish_timeout: float = DEFAULT_PUBLISH_TIMEOUT,
    ) -> None:
        self._transport = transport
        self._config = config or FanoutConfig()
        self._publish_timeout = publish_timeout
        self._background: set[asyncio.Task[Any]] = set()
        self._logger = Logger("fanout")

    @property
    def config(self) -> FanoutConfig:
        return self._config

    @property
    def pending(self) -> int:
        """Number of background tasks not yet finished."""
        return len(self._background)

    # -------------------------------------------------------------------------
    # Single relay calls
    # -------------------------------------------------------------------------

    async def _fetch_one(
        self,
        relay: Relay,
        event_filter: QueryFilter,
        timeout: float,  # noqa: ASYNC109
    ) -> list[Event] | None:
        """Fetch from one relay; ``None`` when the relay did not answer."""
        start = time.monotonic()
        outcome = "ok"
        try:
            async with asyncio.timeout(timeout):
                return await self._transport.fetch(relay, event_filter, timeout)
        except TimeoutError:
            outcome = "timeout"
            self._logger.debug("fetch_timeout", relay=relay.url, timeout=timeout)
            return None
        except (FollowgraphError, OSError) as e:
            outcome = "error"
            self._logger.debug("fetch_failed", relay=relay.url, error=str(e))
            return None
        finally:
            RELAY_REQUESTS.labels(operation="fetch", outcome=outcome).inc()
            RELAY_REQUEST_SECONDS.labels(operation="fetch").observe(time.monotonic() - start)

    async def _publish_one(
        self,
        relay: Relay,
        event: Event,
        timeout: float,  # noqa: ASYNC109
    ) -> tuple[Relay, str | None]:
        """Send to one relay; returns ``(relay, None)`` on ack, else ``(relay, reason)``."""
        start = time.monotonic()
        outcome = "ok"
        error: str | None = None
        try:
            async with asyncio.timeout(timeout):
                await self._transport.publish(relay, event, timeout)
        except TimeoutError:
            outcome = "timeout"
            error = f"timed out after {timeout}s"
        except (FollowgraphError, OSError) as e:
            outcome = "error"
            error = str(e) or type(e).__name__
        finally:
            RELAY_REQUESTS.labels(operation="publish", outcome=outcome).inc()
            RELAY_REQUEST_SECONDS.labels(operation="publish").observe(time.monotonic() - start)
        if error is not None:
            self._logger.debug("publish_rejected", relay=relay.url, error=error)
        return relay, error

    # -------------------------------------------------------------------------
    # Background task tracking
    # -------------------------------------------------------------------------

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for every background task to finish. Outcomes are discarded."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Fan-out operations
    # -------------------------------------------------------------------------

    async def query(
        self,
        relays: Iterable[Relay],
        event_filter: QueryFilter,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> list[Event]:
        """Query every relay concurrently and merge the answers.

        Returns:
            Events from all relays that answered in time, unique by event
            ID, newest first. Empty when no relay answered.
        """
        outcome = await self.query_outcome(relays, event_filter, timeout=timeout)
        return list(outcome.events)

    async def query_outcome(
        self,
        relays: Iterable[Relay],
        event_filter: QueryFilter,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> QueryOutcome:
        """Like [query()][followgraph.services.fanout.FanoutExecutor.query], also
        reporting which relays answered.

        Requests still running at the timeout are left to finish under their
        own per-relay bound; their results are ignored.
        """
        targets = dedupe_relays(relays)
        if not targets:
            return QueryOutcome()
        timeout = self._config.query_timeout if timeout is None else timeout

        tasks = {
            asyncio.create_task(self._fetch_one(relay, event_filter, timeout)): relay
            for relay in targets
        }
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            self._track(task)

        merged: dict[str, Event] = {}
        answered: set[Relay] = set()
        for task in done:
            if task.cancelled():
                continue
            if (exc := task.exception()) is not None:
                self._logger.warning("fetch_task_failed", error=str(exc))
                continue
            result = task.result()
            if result is None:
                continue
            answered.add(tasks[task])
            for event in result:
                merged.setdefault(event.dedup_key, event)

        FANOUT_EVENTS.inc(len(merged))
        self._logger.debug(
            "query_completed",
            relays=len(targets),
            answered=len(answered),
            events=len(merged),
        )
        return QueryOutcome(
            events=tuple(sorted(merged.values(), key=_newest_first)),
            answered=tuple(relay for relay in targets if relay in answered),
        )

    async def query_first(
        self,
        relays: Iterable[Relay],
        event_filter: QueryFilter,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> Event | None:
        """Return the newest match from the first relay that yields any result.

        The filter is capped at ``limit=1`` unless it already carries a
        limit. Requests still running when a result arrives are not
        cancelled; they finish in the background under their own timeout
        and [drain()][followgraph.services.fanout.FanoutExecutor.drain] joins them.

        Returns:
            The event, or ``None`` if no relay produced one within the timeout.
        """
        targets = dedupe_relays(relays)
        if not targets:
            return None
        timeout = self._config.first_timeout if timeout is None else timeout
        if event_filter.limit is None:
            event_filter = event_filter.with_limit(1)

        tasks = [asyncio.create_task(self._fetch_one(r, event_filter, timeout)) for r in targets]
        try:
            for next_done in asyncio.as_completed(tasks, timeout=timeout):
                try:
                    events = await next_done
                except TimeoutError:
                    break
                if events:
                    return min(events, key=_newest_first)
            return None
        finally:
            for task in tasks:
                if not task.done():
                    self._track(task)

    async def broadcast(
        self,
        relays: Iterable[Relay],
        event: Event,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> Relay:
        """Send *event* to every relay; return the first relay that acknowledges.

        Sends still in flight after the first acknowledgment continue in the
        background and are awaited by [drain()][followgraph.services.fanout.FanoutExecutor.drain].

        Raises:
            PublishingError: If no relay acknowledged within the timeout.
        """
        targets = dedupe_relays(relays)
        if not targets:
            raise PublishingError("no relays to publish to")
        timeout = self._publish_timeout if timeout is None else timeout

        tasks = [asyncio.create_task(self._publish_one(r, event, timeout)) for r in targets]
        failures: dict[str, str] = {}
        try:
            for next_done in asyncio.as_completed(tasks, timeout=timeout):
                try:
                    relay, error = await next_done
                except TimeoutError:
                    break
                if error is None:
                    self._logger.info("publish_acknowledged", relay=relay.url, id=event.id)
                    return relay
                failures[relay.url] = error
        finally:
            for task in tasks:
                if not task.done():
                    self._track(task)

        self._logger.warning(
            "publish_failed",
            relays=len(targets),
            rejected=len(failures),
            id=event.id,
        )
        detail = "; ".join(f"{url}: {reason}" for url, reason in failures.items())
        raise PublishingError(
            f"no relay acknowledged event {event.id} ({detail or 'timed out'})"
        )
