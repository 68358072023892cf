"""MeshLedger Network - node registry and logical gossip."""

from .gossip import GossipEvent, GossipNetwork, KnowledgeRecord, TrafficMetrics
from .registry import NodeKind, PeerNode, PeerRegistry, Role, Topology

__all__ = [
    "GossipEvent",
    "GossipNetwork",
    "KnowledgeRecord",
    "NodeKind",
    "PeerNode",
    "PeerRegistry",
    "Role",
    "Topology",
    "TrafficMetrics",
]
