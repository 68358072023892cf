"""MeshLedger Consensus - per-node propose/decide and out-of-band audits."""

from .audit import AuditKind, AuditReport, run_liveness_audit, run_safety_audit
from .engine import ConsensusEngine, Decision, NodeConsensusState, NodePhase, Proposal

__all__ = [
    "AuditKind",
    "AuditReport",
    "ConsensusEngine",
    "Decision",
    "NodeConsensusState",
    "NodePhase",
    "Proposal",
    "run_liveness_audit",
    "run_safety_audit",
]
