# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""PeerRegistry - node identities, roles, capacities and the fault model.

Peer links are not stored here. The registry is bound to a topology (the
GossipNetwork) which maintains the symmetric link set; link mutation and
peer lookups delegate to it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from ..core.config import get_config
from ..core.exceptions import (
    CapacityError,
    ConfigException,
    ConflictError,
    NotFoundError,
    RoleError,
)

logger = logging.getLogger(__name__)


class Role(StrEnum):
    VALIDATOR = "validator"
    MINER = "miner"
    ARCHIVE = "archive"
    OBSERVER = "observer"


class NodeKind(StrEnum):
    """Full nodes hold every block; light nodes hold a strict subset."""

    FULL = "full"
    LIGHT = "light"


class Topology(Protocol):
    """Symmetric peer-link maintenance the registry delegates to."""

    def add_peer_link(self, a: str, b: str) -> None: ...

    def remove_peer_link(self, a: str, b: str) -> None: ...

    def peers_of(self, node_id: str) -> frozenset[str]: ...


@dataclass
class PeerNode:
    """A registered node. Identity, kind, roles and capacities never change."""

    id: str
    kind: NodeKind
    roles: frozenset[Role]
    storage_cap: int
    bandwidth_cap: int
    sync_set: frozenset[str] = field(default_factory=frozenset)
    faulty: bool = False

    @property
    def is_full(self) -> bool:
        return self.kind == NodeKind.FULL

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": str(self.kind),
            "roles": sorted(str(r) for r in self.roles),
            "storage_cap": self.storage_cap,
            "bandwidth_cap": self.bandwidth_cap,
            "sync_set": sorted(self.sync_set),
            "faulty": self.faulty,
        }


def _parse_roles(roles: Iterable[Role | str]) -> frozenset[Role]:
    parsed = set()
    for role in roles:
        try:
            parsed.add(Role(role))
        except ValueError:
            raise RoleError(f"Unknown role: {role}", {"role": str(role)}) from None
    return frozenset(parsed)


class PeerRegistry:
    """Owns node identity and the non-faulty set."""

    def __init__(self, storage_threshold: int | None = None):
        if storage_threshold is None:
            storage_threshold = get_config().full_node_storage_threshold
        self.storage_threshold = storage_threshold
        self._nodes: dict[str, PeerNode] = {}
        self._topology: Topology | None = None

    def bind_topology(self, topology: Topology) -> None:
        """Attach the link-maintaining topology (done by GossipNetwork)."""
        self._topology = topology

    @property
    def topology(self) -> Topology:
        if self._topology is None:
            raise ConfigException("PeerRegistry has no topology bound; construct a GossipNetwork first")
        return self._topology

    def register_node(
        self,
        node_id: str,
        kind: NodeKind | str,
        roles: Iterable[Role | str],
        storage_cap: int,
        bandwidth_cap: int,
        storage_threshold: int | None = None,
    ) -> PeerNode:
        """Register a node.

        ``storage_threshold`` overrides the registry threshold for this one
        registration; journal replay passes the value recorded at the time.

        Raises:
            RoleError: roles empty or unknown, or archive on a light node.
            CapacityError: a negative capacity, or a full node whose storage
                does not exceed the high-water threshold.
            ConflictError: the id is already registered.
        """
        if node_id in self._nodes:
            raise ConflictError(f"Node already registered: {node_id}", existing_id=node_id)

        try:
            kind = NodeKind(kind)
        except ValueError:
            raise RoleError(f"Unknown node kind: {kind}", {"node": node_id, "kind": str(kind)}) from None
        parsed = _parse_roles(roles)
        if not parsed:
            raise RoleError(f"Node {node_id} must have at least one role", {"node": node_id})
        if Role.ARCHIVE in parsed and kind != NodeKind.FULL:
            raise RoleError(
                f"Archive node {node_id} must be a full node", {"node": node_id, "kind": str(kind)}
            )

        if storage_cap < 0 or bandwidth_cap < 0:
            raise CapacityError(
                f"Capacities of {node_id} must be non-negative",
                {"node": node_id, "storage_cap": storage_cap, "bandwidth_cap": bandwidth_cap},
            )
        threshold = self.storage_threshold if storage_threshold is None else storage_threshold
        if kind == NodeKind.FULL and storage_cap <= threshold:
            raise CapacityError(
                f"Full node {node_id} storage {storage_cap} does not exceed threshold {threshold}",
                {"node": node_id, "storage_cap": storage_cap, "threshold": threshold},
            )

        node = PeerNode(
            id=node_id,
            kind=kind,
            roles=parsed,
            storage_cap=storage_cap,
            bandwidth_cap=bandwidth_cap,
        )
        self._nodes[node_id] = node
        logger.info(f"Registered {kind} node {node_id} roles={sorted(parsed)}")
        return node

    def get(self, node_id: str) -> PeerNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFoundError("Node", node_id) from None

    def nodes(self) -> list[PeerNode]:
        return list(self._nodes.values())

    def full_nodes(self) -> list[PeerNode]:
        return [n for n in self._nodes.values() if n.kind == NodeKind.FULL]

    def light_nodes(self) -> list[PeerNode]:
        return [n for n in self._nodes.values() if n.kind == NodeKind.LIGHT]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    # Topology delegation

    def add_peer_link(self, a: str, b: str) -> None:
        self.topology.add_peer_link(a, b)

    def remove_peer_link(self, a: str, b: str) -> None:
        self.topology.remove_peer_link(a, b)

    def peers_of(self, node_id: str) -> frozenset[str]:
        self.get(node_id)
        if self._topology is None:
            return frozenset()
        return self._topology.peers_of(node_id)

    # Fault model

    def mark_faulty(self, node_id: str) -> None:
        node = self.get(node_id)
        if not node.faulty:
            node.faulty = True
            logger.warning(f"Node {node_id} marked faulty")

    def is_non_faulty(self, node_id: str) -> bool:
        node = self._nodes.get(node_id)
        return node is not None and not node.faulty

    def non_faulty(self) -> frozenset[str]:
        return frozenset(n.id for n in self._nodes.values() if not n.faulty)

    # Sync-set bookkeeping

    def update_sync_set(self, node_id: str, block_ids: Iterable[str]) -> None:
        """Materialize a node's sync set. Checked, not enforced, by the network audit."""
        self.get(node_id).sync_set = frozenset(block_ids)
