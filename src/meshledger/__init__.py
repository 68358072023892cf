# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""MeshLedger - block ledger, gossip dissemination and propose/decide consensus.

Architecture:
  PeerRegistry (node identities, roles, capacities)
    → LedgerStore (acyclic block arena, chain and DAG modes)
    → GossipNetwork (logical block dissemination, knowledge, traffic)
    → ConsensusEngine (per-node propose/decide, safety/liveness audits)

Key design principles:
  - No ambient global state: a Cluster is constructed explicitly and passed
    around.
  - Rejections are atomic: a failed operation leaves every store unchanged.
  - Temporal properties (agreement, termination) are audited out-of-band,
    never enforced synchronously.

CLI entry point: ``meshledger``
"""

__version__ = "0.1.0"

from .cluster import Cluster
from .consensus import ConsensusEngine, run_liveness_audit, run_safety_audit
from .ledger import BlockMeta, BlockRecord, LedgerStore
from .network import GossipNetwork, NodeKind, PeerRegistry, Role

__all__ = [
    "BlockMeta",
    "BlockRecord",
    "Cluster",
    "ConsensusEngine",
    "GossipNetwork",
    "LedgerStore",
    "NodeKind",
    "PeerRegistry",
    "Role",
    "__version__",
    "run_liveness_audit",
    "run_safety_audit",
]
