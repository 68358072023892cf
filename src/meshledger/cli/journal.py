# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Operation journal for the CLI.

Each CLI invocation is a separate process, so accepted mutating commands
are appended to a JSON journal and replayed into a fresh Cluster on the
next invocation. A command that fails is never recorded.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..cluster import Cluster
from ..core.config import CoreSettings
from ..core.exceptions import ConfigException
from ..ledger.models import BlockRecord

logger = logging.getLogger(__name__)

Operation = Callable[[Cluster, dict[str, Any]], dict[str, Any]]

OPERATIONS: dict[str, Operation] = {}


def operation(name: str) -> Callable[[Operation], Operation]:
    """Register a journaled operation under its CLI command name."""

    def decorator(func: Operation) -> Operation:
        OPERATIONS[name] = func
        return func

    return decorator


def _lookup(command: str) -> Operation:
    try:
        return OPERATIONS[command]
    except KeyError:
        raise ConfigException(f"Unknown journal command: {command}", {"command": command}) from None


@operation("seed-genesis")
def _seed_genesis(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    block = cluster.ledger.seed_genesis(args["block_id"], args["timestamp"], args["nonce"])
    return {"block": block.to_dict(), "height": 0}


@operation("append-block")
def _append_block(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    block = BlockRecord.create(
        args["block_id"],
        transactions=args["transactions"],
        prev=args["prev"],
        parents=args["parents"],
        timestamp=args["timestamp"],
        nonce=args["nonce"],
        merkle_root=args["merkle_root"],
    )
    cluster.ledger.append_block(block)
    result: dict[str, Any] = {"block": block.to_dict()}
    if block.parents:
        result["height"] = None
    else:
        result["height"] = cluster.ledger.height(block.id)
    return result


@operation("register-node")
def _register_node(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    # Replay uses the threshold in effect when the entry was first applied.
    args.setdefault("storage_threshold", cluster.registry.storage_threshold)
    node = cluster.registry.register_node(
        args["node_id"],
        args["kind"],
        args["roles"],
        args["storage_cap"],
        args["bandwidth_cap"],
        storage_threshold=args["storage_threshold"],
    )
    return {"node": node.to_dict()}


@operation("add-peer-link")
def _add_peer_link(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    cluster.registry.add_peer_link(args["a"], args["b"])
    return {"link": [args["a"], args["b"]], "linked": True}


@operation("remove-peer-link")
def _remove_peer_link(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    cluster.registry.remove_peer_link(args["a"], args["b"])
    return {"link": [args["a"], args["b"]], "linked": False}


@operation("learn")
def _learn(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    record = cluster.network.record_knowledge(args["node"], args["block_id"], args["at"])
    return {"knowledge": record.to_dict()}


@operation("send-gossip")
def _send_gossip(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    event = cluster.network.send_gossip(
        args["sender"], args["receiver"], args["block_id"], args["size_bytes"], args["at"]
    )
    return {
        "event": event.to_dict(),
        "sender": cluster.network.metrics(event.sender).to_dict(),
        "receiver": cluster.network.metrics(event.receiver).to_dict(),
    }


@operation("mark-faulty")
def _mark_faulty(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    cluster.registry.mark_faulty(args["node"])
    return {"node": args["node"], "faulty": True}


@operation("propose")
def _propose(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    proposal = cluster.consensus.propose(args["node"], args["value"], args["at"])
    return {"proposal": proposal.to_dict()}


@operation("decide")
def _decide(cluster: Cluster, args: dict[str, Any]) -> dict[str, Any]:
    decision = cluster.consensus.decide(args["node"], args["value"], args["at"])
    return {"decision": decision.to_dict()}


class Journal:
    """JSON list of ``{"command": ..., "args": ...}`` entries."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                entries = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigException(f"Journal {self.path} is not valid JSON: {e}") from e
        if not isinstance(entries, list):
            raise ConfigException(f"Journal {self.path} must hold a JSON list")
        return entries

    def replay(self, settings: CoreSettings | None = None) -> Cluster:
        """Rebuild a cluster by re-applying every recorded entry."""
        cluster = Cluster.create(settings)
        entries = self.load()
        for entry in entries:
            if not isinstance(entry, dict) or "command" not in entry:
                raise ConfigException(f"Journal {self.path} holds a malformed entry: {entry!r}")
            _lookup(entry["command"])(cluster, entry.get("args", {}))
        logger.debug(f"Replayed {len(entries)} journal entries from {self.path}")
        return cluster

    def apply(self, cluster: Cluster, command: str, args: dict[str, Any]) -> dict[str, Any]:
        """Apply a new operation and record it only if it succeeds."""
        result = _lookup(command)(cluster, args)
        self._append({"command": command, "args": args})
        return result

    def reset(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def _append(self, entry: dict[str, Any]) -> None:
        entries = self.load()
        entries.append(entry)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2)
        os.replace(tmp, self.path)
