"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import Any

from ..cluster import Cluster
from .config import get_cli_config
from .journal import Journal
from .output import output_result


def get_journal() -> Journal:
    return Journal(get_cli_config().journal_path)


def load_cluster() -> Cluster:
    """Replay the configured journal into a fresh cluster."""
    return get_journal().replay()


def run_journaled(command: str, params: dict[str, Any]) -> int:
    """Replay, apply one mutating command, record it and print the result.

    Errors propagate to ``main`` which maps them to exit codes.
    """
    journal = get_journal()
    cluster = journal.replay()
    result = journal.apply(cluster, command, params)
    output_result(result)
    return 0
