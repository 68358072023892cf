# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Cluster - the explicitly constructed bundle of one registry, ledger,
gossip network and consensus engine.

There is no module-level instance; callers build a Cluster and pass it to
whatever needs it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .consensus.engine import ConsensusEngine
from .core.config import CoreSettings, get_config
from .ledger.store import LedgerStore
from .network.gossip import GossipNetwork
from .network.registry import PeerRegistry


@dataclass
class Cluster:
    settings: CoreSettings
    registry: PeerRegistry
    ledger: LedgerStore
    network: GossipNetwork
    consensus: ConsensusEngine

    @classmethod
    def create(cls, settings: CoreSettings | None = None) -> Cluster:
        settings = settings or get_config()
        registry = PeerRegistry(storage_threshold=settings.full_node_storage_threshold)
        ledger = LedgerStore()
        network = GossipNetwork(registry, ledger)
        consensus = ConsensusEngine(registry, has_known_block=network.knows_any)
        return cls(
            settings=settings,
            registry=registry,
            ledger=ledger,
            network=network,
            consensus=consensus,
        )

    def materialize_sync_sets(self) -> None:
        """Copy each node's accumulated knowledge into its sync set."""
        for node in self.registry.nodes():
            self.registry.update_sync_set(node.id, self.network.known_blocks(node.id))

    def summary(self) -> dict[str, Any]:
        tip = self.ledger.chain_tip()
        return {
            "blocks": len(self.ledger),
            "chain_tip": tip.id if tip else None,
            "chain_height": self.ledger.height(tip.id) if tip else None,
            "nodes": [
                {
                    **node.to_dict(),
                    "peers": sorted(self.network.peers_of(node.id)),
                    "known_blocks": sorted(self.network.known_blocks(node.id)),
                    "traffic": self.network.metrics(node.id).to_dict(),
                    "phase": str(self.consensus.phase(node.id)),
                }
                for node in self.registry.nodes()
            ],
            "links": [list(link) for link in self.network.links()],
            "gossip_events": len(self.network.events()),
            "proposals": [p.to_dict() for p in self.consensus.proposals()],
            "decisions": [d.to_dict() for d in self.consensus.decisions()],
        }
