# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Per-node cooperative actors.

Each node processes its inbox one event at a time, so no two mutations of
the same node's state ever interleave. Cross-node interaction happens only
through scheduled gossip deliveries.

An actor also keeps the node's local view: the blocks it has received and
when. Only the actor itself (or a broadcast it originates) writes to it, so
for a full node ``missing_blocks()`` is exactly what gossip has not yet
brought it.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..core.exceptions import NetworkError, NetworkFault

if TYPE_CHECKING:
    from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class EventKind(StrEnum):
    DELIVER = "deliver"
    PROPOSE = "propose"
    DECIDE = "decide"


@dataclass(order=True)
class ScheduledEvent:
    """An inbound event for one node, ordered by (time, seq)."""

    time: int
    seq: int
    kind: EventKind = field(compare=False)
    node: str = field(compare=False)
    payload: dict[str, Any] = field(default_factory=dict, compare=False)
    attempt: int = field(default=0, compare=False)


class NodeActor:
    """Single-threaded actor owning one node's inbox and local block view."""

    def __init__(self, node_id: str, scheduler: Scheduler):
        self.node_id = node_id
        self.scheduler = scheduler
        self.inbox: deque[ScheduledEvent] = deque()
        self.processed = 0
        self.local_blocks: dict[str, int] = {}  # block id -> logical time received

    @property
    def cluster(self):
        return self.scheduler.cluster

    def enqueue(self, event: ScheduledEvent) -> None:
        self.inbox.append(event)

    def receive(self, block_id: str, at: int) -> None:
        """Add a block to the local view. The first receipt wins."""
        self.local_blocks.setdefault(block_id, at)

    def missing_blocks(self) -> frozenset[str]:
        """Ledger blocks a full node has not received. Light nodes never miss any."""
        if not self.cluster.registry.get(self.node_id).is_full:
            return frozenset()
        return self.cluster.ledger.block_ids().difference(self.local_blocks)

    def process_next(self) -> Any:
        """Handle exactly one inbound event. Errors propagate to the scheduler."""
        event = self.inbox.popleft()
        self.processed += 1
        return self.handle(event)

    def handle(self, event: ScheduledEvent) -> Any:
        if not self.cluster.registry.is_non_faulty(self.node_id):
            logger.debug(f"{self.node_id} is faulty, ignoring {event.kind}")
            return None

        if event.kind == EventKind.DELIVER:
            return self._on_deliver(event)
        if event.kind == EventKind.PROPOSE:
            return self.cluster.consensus.propose(self.node_id, event.payload["value"], event.time)
        if event.kind == EventKind.DECIDE:
            return self.cluster.consensus.decide(self.node_id, event.payload["value"], event.time)
        raise ValueError(f"Unknown event kind: {event.kind}")

    def _on_deliver(self, event: ScheduledEvent):
        sender = event.payload["sender"]
        block_id = event.payload["block_id"]
        network = self.cluster.network

        if network.knowledge(self.node_id, block_id) is not None:
            logger.debug(f"{self.node_id} already knows {block_id}, skipping delivery from {sender}")
            return None

        if self.scheduler.link_model.should_drop(sender, self.node_id):
            raise NetworkError(
                f"Delivery of {block_id} from {sender} to {self.node_id} dropped",
                NetworkFault.DROPPED,
                {"sender": sender, "receiver": self.node_id, "block_id": block_id},
            )

        gossip = network.send_gossip(
            sender, self.node_id, block_id, event.payload["size_bytes"], event.time
        )
        self.receive(block_id, event.time)
        self.scheduler.fan_out(
            self.node_id, block_id, event.time, event.payload["size_bytes"], exclude={sender}
        )
        return gossip
