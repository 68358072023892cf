# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Out-of-band safety and liveness audits.

Both audits are read-only passes over the engine's decisions. They never
block or cancel node operations and never correct what they find; a
finding is meant to fail a test run or a CLI invocation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from itertools import combinations
from typing import Any

from ..core.exceptions import AuditViolation, LivenessViolation, SafetyViolation
from ..network.registry import PeerRegistry
from .engine import ConsensusEngine

logger = logging.getLogger(__name__)


class AuditKind(StrEnum):
    SAFETY = "safety"
    LIVENESS = "liveness"


@dataclass
class AuditReport:
    kind: AuditKind
    violations: list[AuditViolation] = field(default_factory=list)
    checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.violations

    def raise_for_violations(self) -> None:
        """Raise the first finding, if any."""
        if self.violations:
            raise self.violations[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "ok": self.ok,
            "checked": self.checked,
            "violations": [v.to_dict() for v in self.violations],
        }


def run_safety_audit(engine: ConsensusEngine) -> AuditReport:
    """Agreement: every pair of decisions must carry the same value."""
    decisions = sorted(engine.decisions(), key=lambda d: (d.timestamp, d.decider))
    report = AuditReport(kind=AuditKind.SAFETY, checked=len(decisions))
    for first, second in combinations(decisions, 2):
        if first.value != second.value:
            report.violations.append(SafetyViolation(first, second))

    if report.violations:
        logger.error(f"Safety audit: {len(report.violations)} divergent decision pair(s)")
    else:
        logger.info(f"Safety audit passed over {len(decisions)} decision(s)")
    return report


def run_liveness_audit(
    engine: ConsensusEngine,
    registry: PeerRegistry,
    deadline: int | None = None,
) -> AuditReport:
    """Termination: every non-faulty node has decided, by ``deadline`` if given."""
    nodes = sorted(registry.non_faulty())
    report = AuditReport(kind=AuditKind.LIVENESS, checked=len(nodes))
    for node in nodes:
        decision = engine.decision(node)
        if decision is None:
            report.violations.append(LivenessViolation(node, deadline=deadline))
        elif deadline is not None and decision.timestamp > deadline:
            report.violations.append(
                LivenessViolation(node, deadline=deadline, decided_at=decision.timestamp)
            )

    if report.violations:
        logger.error(f"Liveness audit: {len(report.violations)} node(s) undecided")
    else:
        logger.info(f"Liveness audit passed over {len(nodes)} node(s)")
    return report
