"""Ledger commands: seed-genesis, append-block."""

from __future__ import annotations

import argparse

from ..utils import run_journaled


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the ledger commands on the CLI parser."""
    genesis_parser = subparsers.add_parser("seed-genesis", help="Create the genesis block")
    genesis_parser.add_argument("--id", dest="block_id", default="genesis", help="Genesis block id")
    genesis_parser.add_argument("--timestamp", type=int, default=0)
    genesis_parser.add_argument("--nonce", type=int, default=0)
    genesis_parser.set_defaults(func=cmd_seed_genesis)

    append_parser = subparsers.add_parser("append-block", help="Append a chain or DAG block")
    append_parser.add_argument("block_id", help="New block id")
    # Setting both is left to the ledger, which rejects it as an edge-arity error.
    append_parser.add_argument("--prev", help="Predecessor block id (chain mode)")
    append_parser.add_argument(
        "--parent",
        dest="parents",
        action="append",
        default=[],
        help="Parent block id (DAG mode, repeatable)",
    )
    append_parser.add_argument(
        "--tx", dest="transactions", action="append", default=[], help="Transaction ref (repeatable)"
    )
    append_parser.add_argument("--timestamp", type=int, default=0)
    append_parser.add_argument("--nonce", type=int, default=0)
    append_parser.add_argument(
        "--merkle-root", help="Explicit merkle root (computed from the transactions if omitted)"
    )
    append_parser.set_defaults(func=cmd_append_block)


def cmd_seed_genesis(args: argparse.Namespace) -> int:
    """Create the distinguished genesis block."""
    return run_journaled(
        "seed-genesis",
        {"block_id": args.block_id, "timestamp": args.timestamp, "nonce": args.nonce},
    )


def cmd_append_block(args: argparse.Namespace) -> int:
    """Validate and append a block."""
    return run_journaled(
        "append-block",
        {
            "block_id": args.block_id,
            "transactions": sorted(set(args.transactions)),
            "prev": args.prev,
            "parents": sorted(set(args.parents)),
            "timestamp": args.timestamp,
            "nonce": args.nonce,
            "merkle_root": args.merkle_root,
        },
    )
