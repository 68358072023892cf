"""Read-only commands: audits and status, plus journal reset."""

from __future__ import annotations

import argparse

from ...consensus.audit import run_liveness_audit, run_safety_audit
from ..output import output_result
from ..utils import get_journal, load_cluster

EXIT_SAFETY_VIOLATION = 2
EXIT_LIVENESS_VIOLATION = 3


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register audit and status commands on the CLI parser."""
    safety_parser = subparsers.add_parser(
        "run-safety-audit", help="Check that all decisions agree (exit 2 on violation)"
    )
    safety_parser.set_defaults(func=cmd_safety_audit)

    liveness_parser = subparsers.add_parser(
        "run-liveness-audit", help="Check that every non-faulty node decided (exit 3 on violation)"
    )
    liveness_parser.add_argument("--deadline", type=int, help="Latest acceptable decision time")
    liveness_parser.set_defaults(func=cmd_liveness_audit)

    status_parser = subparsers.add_parser("status", help="Show ledger, topology and consensus state")
    status_parser.add_argument(
        "--check", action="store_true", help="Also run the gossip causality, traffic and sync-set checks"
    )
    status_parser.set_defaults(func=cmd_status)

    reset_parser = subparsers.add_parser("reset", help="Delete the operation journal")
    reset_parser.set_defaults(func=cmd_reset)


def cmd_safety_audit(args: argparse.Namespace) -> int:
    cluster = load_cluster()
    report = run_safety_audit(cluster.consensus)
    output_result(report.to_dict())
    return 0 if report.ok else EXIT_SAFETY_VIOLATION


def cmd_liveness_audit(args: argparse.Namespace) -> int:
    cluster = load_cluster()
    report = run_liveness_audit(cluster.consensus, cluster.registry, deadline=args.deadline)
    output_result(report.to_dict())
    return 0 if report.ok else EXIT_LIVENESS_VIOLATION


def cmd_status(args: argparse.Namespace) -> int:
    cluster = load_cluster()
    summary = cluster.summary()
    if args.check:
        cluster.materialize_sync_sets()
        summary["checks"] = {
            "causality": cluster.network.audit_causality(),
            "traffic": cluster.network.audit_traffic(),
            "sync_sets": cluster.network.sync_set_violations(),
        }
    output_result(summary)
    return 0


def cmd_reset(args: argparse.Namespace) -> int:
    journal = get_journal()
    journal.reset()
    output_result({"journal": str(journal.path), "reset": True})
    return 0
