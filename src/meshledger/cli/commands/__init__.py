"""CLI command modules. Each exposes ``register(subparsers)``."""

from . import audit, consensus, ledger, network

COMMAND_MODULES = [ledger, network, consensus, audit]

__all__ = ["COMMAND_MODULES"]
