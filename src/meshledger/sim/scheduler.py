# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Discrete-event scheduler driving a cluster over logical time.

The core defines no timeouts or retries; this scheduler owns them:
- dropped gossip deliveries are retried with linear backoff
- decision triggers blocked on "no known block yet" are retried
- once ``max_retries`` is exhausted the event is abandoned and left for the
  bounded liveness audit to report

Loss is simulated by a seeded LinkModel, so every run is reproducible.
"""

from __future__ import annotations

import heapq
import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..cluster import Cluster
from ..consensus.audit import AuditReport, run_liveness_audit
from ..core.exceptions import (
    MeshLedgerError,
    NetworkError,
    NetworkFault,
    NoKnownBlockError,
)
from ..core.logging import log_event, run_context, set_logical_time
from .actor import EventKind, NodeActor, ScheduledEvent

logger = logging.getLogger(__name__)


class LinkModel:
    """Deterministic loss and latency model for peer links."""

    def __init__(self, drop_rate: float = 0.0, latency: int = 1, seed: int = 0):
        if not 0.0 <= drop_rate <= 1.0:
            raise ValueError(f"drop_rate must be within [0, 1], got {drop_rate}")
        if latency < 0:
            raise ValueError(f"latency must be non-negative, got {latency}")
        self.drop_rate = drop_rate
        self.latency = latency
        self._rng = random.Random(seed)
        self._partitioned: set[frozenset[str]] = set()

    def partition(self, a: str, b: str) -> None:
        """Drop every delivery between ``a`` and ``b`` until healed."""
        self._partitioned.add(frozenset((a, b)))

    def heal(self, a: str, b: str) -> None:
        self._partitioned.discard(frozenset((a, b)))

    def should_drop(self, sender: str, receiver: str) -> bool:
        if frozenset((sender, receiver)) in self._partitioned:
            return True
        return self.drop_rate > 0 and self._rng.random() < self.drop_rate


@dataclass
class SchedulerStats:
    processed: int = 0
    delivered: int = 0
    dropped: int = 0
    retried: int = 0
    abandoned: int = 0
    failures: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "delivered": self.delivered,
            "dropped": self.dropped,
            "retried": self.retried,
            "abandoned": self.abandoned,
            "failures": self.failures,
        }


class Scheduler:
    """Event loop over logical time, one actor per node."""

    def __init__(
        self,
        cluster: Cluster,
        link_model: LinkModel | None = None,
        max_retries: int | None = None,
        retry_backoff: int | None = None,
    ):
        settings = cluster.settings
        self.cluster = cluster
        self.link_model = link_model or LinkModel(
            drop_rate=settings.sim_drop_rate,
            latency=settings.sim_latency,
            seed=settings.sim_seed,
        )
        self.max_retries = settings.sim_max_retries if max_retries is None else max_retries
        self.retry_backoff = settings.sim_retry_backoff if retry_backoff is None else retry_backoff
        self.now = 0
        self.stats = SchedulerStats()
        self._queue: list[ScheduledEvent] = []
        self._seq = 0
        self._actors: dict[str, NodeActor] = {}

    def actor(self, node_id: str) -> NodeActor:
        self.cluster.registry.get(node_id)
        if node_id not in self._actors:
            self._actors[node_id] = NodeActor(node_id, self)
        return self._actors[node_id]

    @property
    def pending(self) -> int:
        return len(self._queue)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(
        self,
        kind: EventKind,
        node: str,
        at: int,
        payload: dict[str, Any] | None = None,
        attempt: int = 0,
    ) -> ScheduledEvent:
        self.cluster.registry.get(node)
        event = ScheduledEvent(
            time=at, seq=self._seq, kind=kind, node=node, payload=payload or {}, attempt=attempt
        )
        self._seq += 1
        heapq.heappush(self._queue, event)
        return event

    def schedule_proposal(self, node: str, value: Any, at: int) -> ScheduledEvent:
        return self.schedule(EventKind.PROPOSE, node, at, {"value": value})

    def schedule_decision(self, node: str, value: Any, at: int) -> ScheduledEvent:
        return self.schedule(EventKind.DECIDE, node, at, {"value": value})

    def broadcast(self, origin: str, block_id: str, at: int, size_bytes: int | None = None) -> None:
        """Let ``origin`` learn a block at ``at`` and flood it along peer links."""
        size = self.cluster.settings.default_gossip_size if size_bytes is None else size_bytes
        self.cluster.network.record_knowledge(origin, block_id, at)
        self.actor(origin).receive(block_id, at)
        self.fan_out(origin, block_id, at, size)

    def fan_out(
        self,
        node: str,
        block_id: str,
        at: int,
        size_bytes: int,
        exclude: Iterable[str] = (),
    ) -> int:
        """Schedule deliveries to every peer of ``node`` that lacks the block."""
        skip = set(exclude)
        network = self.cluster.network
        scheduled = 0
        for peer in sorted(network.peers_of(node)):
            if peer in skip or network.knowledge(peer, block_id) is not None:
                continue
            self.schedule(
                EventKind.DELIVER,
                peer,
                at + self.link_model.latency,
                {"sender": node, "block_id": block_id, "size_bytes": size_bytes},
            )
            scheduled += 1
        return scheduled

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def run(self, until: int | None = None) -> int:
        """Process events in (time, seq) order up to and including ``until``.

        Returns the number of events processed.
        """
        processed = 0
        with run_context():
            while self._queue:
                if until is not None and self._queue[0].time > until:
                    break
                event = heapq.heappop(self._queue)
                self.now = event.time
                set_logical_time(event.time)
                self._dispatch(event)
                processed += 1
        self.stats.processed += processed
        logger.info(f"Scheduler ran {processed} event(s), now={self.now}, pending={self.pending}")
        return processed

    def _dispatch(self, event: ScheduledEvent) -> None:
        actor = self.actor(event.node)
        actor.enqueue(event)
        try:
            result = actor.process_next()
        except NetworkError as e:
            if e.fault == NetworkFault.DROPPED:
                self.stats.dropped += 1
                log_event(logger, logging.WARNING, e.message, attempt=event.attempt, **e.details)
                self._retry(event, e)
            else:
                self._fail(event, e)
        except NoKnownBlockError as e:
            logger.debug(f"{e.message}; decision deferred")
            self._retry(event, e)
        except MeshLedgerError as e:
            self._fail(event, e)
        else:
            if event.kind == EventKind.DELIVER and result is not None:
                self.stats.delivered += 1

    def _retry(self, event: ScheduledEvent, error: MeshLedgerError) -> None:
        if event.attempt >= self.max_retries:
            self.stats.abandoned += 1
            logger.warning(
                f"Abandoning {event.kind} for {event.node} after {event.attempt} retries: {error.message}"
            )
            self.stats.failures.append({"event": str(event.kind), "node": event.node, **error.to_dict()})
            return
        self.stats.retried += 1
        self.schedule(
            event.kind,
            event.node,
            self.now + self.retry_backoff * (event.attempt + 1),
            event.payload,
            attempt=event.attempt + 1,
        )

    def _fail(self, event: ScheduledEvent, error: MeshLedgerError) -> None:
        log_event(
            logger,
            logging.WARNING,
            f"{event.kind} for {event.node} failed: {error.message}",
            error=error.__class__.__name__,
            **error.details,
        )
        self.stats.failures.append({"event": str(event.kind), "node": event.node, **error.to_dict()})

    # ------------------------------------------------------------------
    # Consensus driver
    # ------------------------------------------------------------------

    def run_consensus(
        self,
        value: Any,
        propose_at: int | None = None,
        decide_after: int = 1,
        until: int | None = None,
    ) -> AuditReport:
        """Drive every non-faulty node to propose and decide ``value``.

        All nodes propose the same externally agreed value; the engine only
        checks bookkeeping. Returns the liveness audit bounded by ``until``.
        """
        start = self.now if propose_at is None else propose_at
        for node in sorted(self.cluster.registry.non_faulty()):
            self.schedule_proposal(node, value, start)
            self.schedule_decision(node, value, start + decide_after)
        self.run(until=until)
        return run_liveness_audit(self.cluster.consensus, self.cluster.registry, deadline=until)
