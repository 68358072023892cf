# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""GossipNetwork - logical block dissemination.

Gossip here is an event model, not a transport. The network owns:
- the symmetric peer-link set (the registry delegates to it)
- an append-only log of gossip events
- per-node knowledge records, at most one per (node, block) and write-once
- per-node traffic counters, derived from the event log

Knowledge causality: a node may only gossip a block it has already learned,
at or before the time of the gossip.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from ..core.exceptions import (
    KnowledgeConflictError,
    NetworkError,
    NetworkFault,
    SelfLinkError,
)
from ..core.logging import log_event
from ..ledger.store import LedgerStore
from .registry import NodeKind, PeerRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GossipEvent:
    sender: str
    receiver: str
    block_id: str
    size_bytes: int
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "sender": self.sender,
            "receiver": self.receiver,
            "block_id": self.block_id,
            "size_bytes": self.size_bytes,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class KnowledgeRecord:
    node: str
    block_id: str
    learned_at: int

    def to_dict(self) -> dict[str, Any]:
        return {"node": self.node, "block_id": self.block_id, "learned_at": self.learned_at}


@dataclass(frozen=True)
class TrafficMetrics:
    """Read-only snapshot of a node's gossip traffic."""

    node: str
    sent_bytes: int = 0
    recv_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"node": self.node, "sent_bytes": self.sent_bytes, "recv_bytes": self.recv_bytes}


class GossipNetwork:
    """Topology, knowledge and traffic for every node of a cluster."""

    def __init__(self, registry: PeerRegistry, ledger: LedgerStore):
        self.registry = registry
        self.ledger = ledger
        self._links: dict[str, set[str]] = defaultdict(set)
        self._events: list[GossipEvent] = []
        self._knowledge: dict[str, dict[str, KnowledgeRecord]] = defaultdict(dict)
        self._sent: dict[str, int] = defaultdict(int)
        self._recv: dict[str, int] = defaultdict(int)
        registry.bind_topology(self)

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def add_peer_link(self, a: str, b: str) -> None:
        """Link two registered nodes in both directions."""
        if a == b:
            raise SelfLinkError(a)
        self.registry.get(a)
        self.registry.get(b)
        if b in self._links[a]:
            return
        self._links[a].add(b)
        self._links[b].add(a)
        logger.info(f"Linked {a} <-> {b}")

    def remove_peer_link(self, a: str, b: str) -> None:
        """Unlink two nodes in both directions. Missing links are ignored."""
        if a == b:
            raise SelfLinkError(a)
        self.registry.get(a)
        self.registry.get(b)
        if b not in self._links.get(a, ()):
            return
        self._links[a].discard(b)
        self._links[b].discard(a)
        logger.info(f"Unlinked {a} <-> {b}")

    def peers_of(self, node_id: str) -> frozenset[str]:
        return frozenset(self._links.get(node_id, ()))

    def links(self) -> list[tuple[str, str]]:
        """Each undirected link once, as a sorted pair."""
        return sorted({tuple(sorted((a, b))) for a, peers in self._links.items() for b in peers})

    # ------------------------------------------------------------------
    # Knowledge
    # ------------------------------------------------------------------

    def record_knowledge(self, node: str, block_id: str, at: int) -> KnowledgeRecord:
        """Record that ``node`` learned ``block_id`` at ``at``.

        Idempotent for an identical record. A record is write-once: a
        different learn time raises KnowledgeConflictError.
        """
        self.registry.get(node)
        self._check_block(block_id)
        if at < 0:
            raise NetworkError(
                f"Knowledge time must be non-negative, got {at}",
                NetworkFault.INVALID_TIME,
                {"node": node, "at": at},
            )
        existing = self._knowledge[node].get(block_id)
        if existing is not None:
            if existing.learned_at != at:
                raise KnowledgeConflictError(node, block_id, existing.learned_at, at)
            return existing

        record = KnowledgeRecord(node=node, block_id=block_id, learned_at=at)
        self._knowledge[node][block_id] = record
        logger.debug(f"{node} learned {block_id} at {at}")
        return record

    def knowledge(self, node: str, block_id: str) -> KnowledgeRecord | None:
        return self._knowledge.get(node, {}).get(block_id)

    def known_blocks(self, node: str) -> frozenset[str]:
        return frozenset(self._knowledge.get(node, {}))

    def knows_any(self, node: str) -> bool:
        return bool(self._knowledge.get(node))

    def history(self, node: str) -> list[KnowledgeRecord]:
        """A node's knowledge records ordered by learn time."""
        return sorted(
            self._knowledge.get(node, {}).values(), key=lambda r: (r.learned_at, r.block_id)
        )

    def _check_block(self, block_id: str) -> None:
        if block_id not in self.ledger:
            raise NetworkError(
                f"Block not in ledger: {block_id}",
                NetworkFault.UNKNOWN_BLOCK,
                {"block_id": block_id},
            )

    # ------------------------------------------------------------------
    # Gossip
    # ------------------------------------------------------------------

    def send_gossip(
        self,
        sender: str,
        receiver: str,
        block_id: str,
        size_bytes: int,
        at: int,
    ) -> GossipEvent:
        """Deliver ``block_id`` from ``sender`` to ``receiver`` at time ``at``.

        Every check runs before any mutation; a rejected gossip leaves both
        endpoints unchanged.

        Raises:
            NetworkError: SELF_GOSSIP, INVALID_TIME, NOT_PEER or UNKNOWN_BLOCK.
            KnowledgeConflictError: the receiver already learned the block at
                a different time.
        """
        if sender == receiver:
            raise NetworkError(
                f"Node cannot gossip to itself: {sender}",
                NetworkFault.SELF_GOSSIP,
                {"node": sender},
            )
        if at < 0 or size_bytes < 0:
            raise NetworkError(
                f"Gossip time and size must be non-negative (at={at}, size={size_bytes})",
                NetworkFault.INVALID_TIME,
                {"at": at, "size_bytes": size_bytes},
            )
        for node in (sender, receiver):
            if node not in self.registry:
                raise NetworkError(
                    f"{node} is not a registered peer",
                    NetworkFault.NOT_PEER,
                    {"sender": sender, "receiver": receiver, "node": node},
                )
        if receiver not in self._links.get(sender, ()):
            raise NetworkError(
                f"{receiver} is not a peer of {sender}",
                NetworkFault.NOT_PEER,
                {"sender": sender, "receiver": receiver},
            )
        self._check_block(block_id)
        known = self.knowledge(sender, block_id)
        if known is None or known.learned_at > at:
            raise NetworkError(
                f"{sender} has not learned {block_id} by {at}",
                NetworkFault.UNKNOWN_BLOCK,
                {"sender": sender, "block_id": block_id, "at": at},
            )
        existing = self.knowledge(receiver, block_id)
        if existing is not None and existing.learned_at != at:
            raise KnowledgeConflictError(receiver, block_id, existing.learned_at, at)

        event = GossipEvent(
            sender=sender,
            receiver=receiver,
            block_id=block_id,
            size_bytes=size_bytes,
            timestamp=at,
        )
        self._events.append(event)
        self.record_knowledge(receiver, block_id, at)
        self._sent[sender] += size_bytes
        self._recv[receiver] += size_bytes
        log_event(logger, logging.DEBUG, "Gossip delivered", **event.to_dict())
        return event

    def events(self) -> list[GossipEvent]:
        return list(self._events)

    def metrics(self, node: str) -> TrafficMetrics:
        self.registry.get(node)
        return TrafficMetrics(node=node, sent_bytes=self._sent[node], recv_bytes=self._recv[node])

    # ------------------------------------------------------------------
    # Standing checks (read-only)
    # ------------------------------------------------------------------

    def audit_causality(self) -> list[str]:
        """Check every event against the knowledge it relied on and produced."""
        violations = []
        for event in self._events:
            sent = self.knowledge(event.sender, event.block_id)
            if sent is None or sent.learned_at > event.timestamp:
                violations.append(
                    f"{event.sender} gossiped {event.block_id} at {event.timestamp} before learning it"
                )
            received = self.knowledge(event.receiver, event.block_id)
            if received is None or received.learned_at != event.timestamp:
                violations.append(
                    f"{event.receiver} has no record of {event.block_id} at {event.timestamp}"
                )
        return violations

    def audit_traffic(self) -> list[str]:
        """Check the traffic counters against sums over the event log."""
        sent: dict[str, int] = defaultdict(int)
        recv: dict[str, int] = defaultdict(int)
        for event in self._events:
            sent[event.sender] += event.size_bytes
            recv[event.receiver] += event.size_bytes

        violations = []
        for node in self.registry.nodes():
            if self._sent[node.id] != sent[node.id]:
                violations.append(f"{node.id} sent_bytes {self._sent[node.id]} != {sent[node.id]}")
            if self._recv[node.id] != recv[node.id]:
                violations.append(f"{node.id} recv_bytes {self._recv[node.id]} != {recv[node.id]}")
        return violations

    def sync_set_violations(self) -> list[str]:
        """Check materialized sync sets against the block universe and knowledge."""
        universe = self.ledger.block_ids()
        violations = []
        for node in self.registry.nodes():
            unbacked = node.sync_set - self.known_blocks(node.id)
            if unbacked:
                violations.append(f"{node.id} syncs blocks it never learned: {sorted(unbacked)}")
            if node.kind == NodeKind.FULL:
                if node.sync_set != universe:
                    missing = sorted(universe - node.sync_set)
                    violations.append(f"Full node {node.id} is missing blocks: {missing}")
            elif not node.sync_set < universe:
                violations.append(f"Light node {node.id} sync set is not a strict subset of the ledger")
        return violations
