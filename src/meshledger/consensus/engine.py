# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Propose/decide consensus - one state machine per node.

Each non-faulty node moves Idle -> Proposed -> Decided exactly once. The
engine checks per-node bookkeeping and Validity (a decided value must have
been proposed by someone). Agreement across nodes is deliberately not
checked here; see ``meshledger.consensus.audit``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.exceptions import (
    DuplicateDecisionError,
    DuplicateProposalError,
    FaultyNodeError,
    NoKnownBlockError,
    PrematureDecisionError,
    UnproposedValueError,
)
from ..network.registry import PeerRegistry

logger = logging.getLogger(__name__)


class NodePhase(StrEnum):
    IDLE = "idle"
    PROPOSED = "proposed"
    DECIDED = "decided"


@dataclass(frozen=True)
class Proposal:
    proposer: str
    value: Any
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"proposer": self.proposer, "value": self.value, "timestamp": self.timestamp}


@dataclass(frozen=True)
class Decision:
    decider: str
    value: Any
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"decider": self.decider, "value": self.value, "timestamp": self.timestamp}


@dataclass
class NodeConsensusState:
    """Private consensus state of a single node."""

    node_id: str
    proposal: Proposal | None = None
    decision: Decision | None = None

    @property
    def phase(self) -> NodePhase:
        if self.decision is not None:
            return NodePhase.DECIDED
        if self.proposal is not None:
            return NodePhase.PROPOSED
        return NodePhase.IDLE


class ConsensusEngine:
    """Directory of per-node consensus state machines.

    Args:
        registry: Source of the non-faulty node set.
        has_known_block: Optional callback answering whether a node has learned
            any block. When set, a node may only decide once it has.
    """

    def __init__(
        self,
        registry: PeerRegistry,
        has_known_block: Callable[[str], bool] | None = None,
    ):
        self.registry = registry
        self.has_known_block = has_known_block
        self._states: dict[str, NodeConsensusState] = {}

    def _state(self, node: str) -> NodeConsensusState:
        if not self.registry.is_non_faulty(node):
            raise FaultyNodeError(f"Node {node} is not a non-faulty node", node)
        if node not in self._states:
            self._states[node] = NodeConsensusState(node_id=node)
        return self._states[node]

    def propose(self, node: str, value: Any, t: int) -> Proposal:
        state = self._state(node)
        if state.phase != NodePhase.IDLE:
            raise DuplicateProposalError(
                f"Node {node} already {state.phase}", node, {"phase": str(state.phase)}
            )

        state.proposal = Proposal(proposer=node, value=value, timestamp=t)
        logger.info(f"{node} proposed {value!r} at {t}")
        return state.proposal

    def decide(self, node: str, value: Any, t: int) -> Decision:
        state = self._state(node)
        if state.phase == NodePhase.DECIDED:
            raise DuplicateDecisionError(f"Node {node} already decided", node)
        if state.proposal is None:
            raise PrematureDecisionError(f"Node {node} has not proposed yet", node)
        if t <= state.proposal.timestamp:
            raise PrematureDecisionError(
                f"Node {node} cannot decide at {t}, not after its proposal at {state.proposal.timestamp}",
                node,
                {"t": t, "proposed_at": state.proposal.timestamp},
            )
        if value not in self.proposed_values():
            raise UnproposedValueError(
                f"No node proposed {value!r}", node, {"value": value}
            )
        if self.has_known_block is not None and not self.has_known_block(node):
            raise NoKnownBlockError(f"Node {node} has not learned any block", node)

        state.decision = Decision(decider=node, value=value, timestamp=t)
        logger.info(f"{node} decided {value!r} at {t}")
        return state.decision

    def phase(self, node: str) -> NodePhase:
        state = self._states.get(node)
        return state.phase if state else NodePhase.IDLE

    def proposal(self, node: str) -> Proposal | None:
        state = self._states.get(node)
        return state.proposal if state else None

    def decision(self, node: str) -> Decision | None:
        state = self._states.get(node)
        return state.decision if state else None

    def proposals(self) -> list[Proposal]:
        return [s.proposal for s in self._states.values() if s.proposal is not None]

    def decisions(self) -> list[Decision]:
        return [s.decision for s in self._states.values() if s.decision is not None]

    def proposed_values(self) -> list[Any]:
        return [p.value for p in self.proposals()]
