"""Consensus commands: propose, decide."""

from __future__ import annotations

import argparse

from ..utils import run_journaled


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the consensus commands on the CLI parser."""
    for name, func, help_text in (
        ("propose", cmd_propose, "Propose a value for a non-faulty node"),
        ("decide", cmd_decide, "Decide a proposed value for a node"),
    ):
        parser = subparsers.add_parser(name, help=help_text)
        parser.add_argument("node", help="Node id")
        parser.add_argument("value", help="Value")
        parser.add_argument("--at", type=int, required=True, help="Logical time")
        parser.set_defaults(func=func)


def cmd_propose(args: argparse.Namespace) -> int:
    return run_journaled("propose", {"node": args.node, "value": args.value, "at": args.at})


def cmd_decide(args: argparse.Namespace) -> int:
    return run_journaled("decide", {"node": args.node, "value": args.value, "at": args.at})
