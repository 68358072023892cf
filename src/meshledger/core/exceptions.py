# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Custom exception hierarchy for MeshLedger.

Provides specific exception types for each error category so that callers
(and the CLI) can tell a malformed block from a rejected gossip delivery
from a refused consensus transition.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ValidationRule(StrEnum):
    """Block validation rule violated by a rejected append."""

    DUPLICATE_ID = "duplicate_id"
    MISSING_MERKLE_ROOT = "missing_merkle_root"
    EDGE_ARITY = "edge_arity"
    CYCLE = "cycle"
    UNKNOWN_PREDECESSOR = "unknown_predecessor"
    MODE_MIXING = "mode_mixing"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    MISSING_ANCESTOR_TRANSACTION = "missing_ancestor_transaction"


class NetworkFault(StrEnum):
    """Why a topology or gossip operation was refused."""

    SELF_LINK = "self_link"
    NOT_PEER = "not_peer"
    SELF_GOSSIP = "self_gossip"
    UNKNOWN_BLOCK = "unknown_block"
    INVALID_TIME = "invalid_time"
    KNOWLEDGE_CONFLICT = "knowledge_conflict"
    DROPPED = "dropped"


class MeshLedgerError(Exception):
    """Base exception for all MeshLedger errors.

    All MeshLedger-specific exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(MeshLedgerError):
    """A block was rejected before any mutation of the ledger.

    The ``rule`` attribute identifies which structural rule was violated.
    """

    def __init__(self, message: str, rule: ValidationRule, block_id: str | None = None):
        details: dict[str, Any] = {"rule": str(rule)}
        if block_id is not None:
            details["block_id"] = block_id
        super().__init__(message, details)
        self.rule = rule
        self.block_id = block_id


class NotFoundError(MeshLedgerError):
    """Exception for resource not found errors.

    Raised when:
    - Requested block doesn't exist
    - Requested node isn't registered
    """

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class NotApplicableError(MeshLedgerError):
    """An operation was asked of a block whose mode does not support it."""


class ConflictError(MeshLedgerError):
    """Exception for conflict errors.

    Raised when:
    - Attempting to register a duplicate resource
    """

    def __init__(self, message: str, existing_id: str | None = None):
        details = {}
        if existing_id:
            details["existing_id"] = existing_id
        super().__init__(message, details)
        self.existing_id = existing_id


class ConfigException(MeshLedgerError):
    """Exception for configuration and wiring errors."""


# ============================================================================
# Network
# ============================================================================


class NetworkError(MeshLedgerError):
    """A topology or gossip operation was rejected locally.

    State on both endpoints is unchanged; the caller may retry with
    corrected arguments.
    """

    def __init__(self, message: str, fault: NetworkFault, details: dict | None = None):
        merged = {"fault": str(fault)}
        merged.update(details or {})
        super().__init__(message, merged)
        self.fault = fault


class SelfLinkError(NetworkError):
    """A node tried to link to itself."""

    def __init__(self, node_id: str):
        super().__init__(
            f"Node cannot peer with itself: {node_id}",
            NetworkFault.SELF_LINK,
            {"node": node_id},
        )
        self.node_id = node_id


class KnowledgeConflictError(NetworkError):
    """A knowledge record already exists with a different learn time."""

    def __init__(self, node_id: str, block_id: str, existing_at: int, attempted_at: int):
        super().__init__(
            f"Node {node_id} already learned {block_id} at {existing_at}, not {attempted_at}",
            NetworkFault.KNOWLEDGE_CONFLICT,
            {
                "node": node_id,
                "block_id": block_id,
                "existing_at": existing_at,
                "attempted_at": attempted_at,
            },
        )
        self.node_id = node_id
        self.block_id = block_id
        self.existing_at = existing_at
        self.attempted_at = attempted_at


# ============================================================================
# Registry
# ============================================================================


class RegistryError(MeshLedgerError):
    """Base class for node registration errors."""


class RoleError(RegistryError):
    """Roles are empty, unknown, or incompatible with the node kind."""


class CapacityError(RegistryError):
    """A capacity is negative or below the full-node threshold."""


# ============================================================================
# Consensus
# ============================================================================


class ConsensusError(MeshLedgerError):
    """A consensus transition was refused.

    Fatal only to the attempted transition of one node; other nodes are
    unaffected.
    """

    def __init__(self, message: str, node_id: str, details: dict | None = None):
        merged: dict[str, Any] = {"node": node_id}
        merged.update(details or {})
        super().__init__(message, merged)
        self.node_id = node_id


class FaultyNodeError(ConsensusError):
    """The node is not in the non-faulty set."""


class DuplicateProposalError(ConsensusError):
    """The node has already proposed."""


class DuplicateDecisionError(ConsensusError):
    """The node has already decided."""


class PrematureDecisionError(ConsensusError):
    """The node has not proposed yet, or the decision is not after its proposal."""


class UnproposedValueError(ConsensusError):
    """No proposal carries the value being decided."""


class NoKnownBlockError(ConsensusError):
    """The node has not learned any block yet."""


# ============================================================================
# Audit findings
# ============================================================================


class AuditViolation(MeshLedgerError):
    """Base class for audit-only findings. Never auto-corrected."""


class SafetyViolation(AuditViolation):
    """Two decisions carry different values."""

    def __init__(self, first: Any, second: Any):
        super().__init__(
            f"Agreement violated: {first.decider} decided {first.value!r}, "
            f"{second.decider} decided {second.value!r}",
            {
                "first": {"node": first.decider, "value": first.value},
                "second": {"node": second.decider, "value": second.value},
            },
        )
        self.first = first
        self.second = second


class LivenessViolation(AuditViolation):
    """A non-faulty node did not decide within the audited bound."""

    def __init__(self, node_id: str, deadline: int | None = None, decided_at: int | None = None):
        if decided_at is None:
            message = f"Node {node_id} never decided"
        else:
            message = f"Node {node_id} decided at {decided_at}, after deadline {deadline}"
        super().__init__(
            message,
            {"node": node_id, "deadline": deadline, "decided_at": decided_at},
        )
        self.node_id = node_id
        self.deadline = deadline
        self.decided_at = decided_at
