#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""
MeshLedger CLI - harness surface for the ledger, gossip and consensus core.

Commands:
  meshledger seed-genesis                 Create the genesis block
  meshledger append-block <id> ...        Append a chain or DAG block
  meshledger register-node <id> ...       Register a full or light node
  meshledger add-peer-link <a> <b>        Link two nodes
  meshledger send-gossip <s> <r> <block>  Gossip a block to a peer
  meshledger propose <node> <value>       Propose a value
  meshledger decide <node> <value>        Decide a proposed value
  meshledger run-safety-audit             Exit 2 if decisions disagree
  meshledger run-liveness-audit           Exit 3 if a node never decided

Exit codes:
  0  success
  1  validation, network, registry or consensus error
  2  safety violation detected
  3  liveness violation detected
"""

from __future__ import annotations

import argparse
import logging
import sys

from ..core.exceptions import MeshLedgerError
from ..core.logging import configure_logging
from .commands import COMMAND_MODULES
from .config import CLIConfig, set_cli_config
from .output import output_error

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1


class ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with EXIT_ERROR; 2 and 3 are reserved for audit findings."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog}: error: {message}\n")


def app() -> argparse.ArgumentParser:
    """Build the argument parser.

    Subparsers inherit the parser class, so every subcommand shares the
    usage-error exit code.
    """
    parser = ArgumentParser(
        prog="meshledger",
        description="Block ledger, gossip and consensus harness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  meshledger seed-genesis
  meshledger append-block B1 --prev genesis --tx t1
  meshledger register-node A --kind light --role observer --storage 10 --bandwidth 10
  meshledger add-peer-link A B
  meshledger learn A genesis --at 0
  meshledger send-gossip A B genesis --at 5 --size 256
  meshledger propose A v --at 1
  meshledger decide A v --at 10
  meshledger run-safety-audit
        """,
    )
    parser.add_argument("--journal", help="Operation journal path (default: ~/.meshledger/journal.json)")
    parser.add_argument("--json", action="store_true", help="Emit JSON output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help exits 0, usage errors EXIT_ERROR
        return e.code if isinstance(e.code, int) else EXIT_ERROR

    configure_logging(level="DEBUG" if args.verbose else "WARNING", json_format=False)
    set_cli_config(CLIConfig.load(journal_path=args.journal, output="json" if args.json else None))

    try:
        return args.func(args)
    except MeshLedgerError as e:
        output_error(e.message, e.details)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
