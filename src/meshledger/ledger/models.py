# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Block data models.

Blocks live in an arena keyed by block id, so ``prev`` and ``parents`` hold
ids rather than object references. Records are frozen; a stored block is
never mutated.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

EMPTY_MERKLE_ROOT = hashlib.sha256(b"empty").hexdigest()


class BlockMode(StrEnum):
    """How a block attaches to its predecessors."""

    GENESIS = "genesis"
    CHAIN = "chain"  # exactly one prev, no parents
    DAG = "dag"  # one or more parents, no prev
    INVALID = "invalid"  # both or neither edge kind on a non-genesis block


def _hash_pair(left: str, right: str) -> str:
    return hashlib.sha256((left + right).encode()).hexdigest()


def compute_merkle_root(transactions: Iterable[str]) -> str:
    """Compute a Merkle root over a transaction set.

    Leaves are the SHA-256 of each transaction reference in sorted order, so
    the root does not depend on iteration order. An odd node at any level is
    paired with itself.
    """
    level = [hashlib.sha256(tx.encode()).hexdigest() for tx in sorted(transactions)]
    if not level:
        return EMPTY_MERKLE_ROOT

    while len(level) > 1:
        next_level = []
        for i in range(0, len(level), 2):
            left = level[i]
            right = level[i + 1] if i + 1 < len(level) else left
            next_level.append(_hash_pair(left, right))
        level = next_level
    return level[0]


@dataclass(frozen=True)
class BlockMeta:
    """Block header metadata. The merkle root must always be present."""

    timestamp: int = 0
    nonce: int = 0
    merkle_root: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "nonce": self.nonce,
            "merkle_root": self.merkle_root,
        }


@dataclass(frozen=True)
class BlockRecord:
    """A block as submitted to, and stored by, the LedgerStore."""

    id: str
    transactions: frozenset[str] = field(default_factory=frozenset)
    prev: str | None = None
    parents: frozenset[str] = field(default_factory=frozenset)
    meta: BlockMeta = field(default_factory=BlockMeta)

    def __post_init__(self) -> None:
        # Accept any iterable from callers while keeping the record hashable
        if not isinstance(self.transactions, frozenset):
            object.__setattr__(self, "transactions", frozenset(self.transactions))
        if not isinstance(self.parents, frozenset):
            object.__setattr__(self, "parents", frozenset(self.parents))

    @classmethod
    def create(
        cls,
        block_id: str,
        transactions: Iterable[str] = (),
        prev: str | None = None,
        parents: Iterable[str] = (),
        timestamp: int = 0,
        nonce: int = 0,
        merkle_root: str | None = None,
    ) -> BlockRecord:
        """Build a block, computing the merkle root when none is supplied."""
        txs = frozenset(transactions)
        root = merkle_root if merkle_root is not None else compute_merkle_root(txs)
        return cls(
            id=block_id,
            transactions=txs,
            prev=prev,
            parents=frozenset(parents),
            meta=BlockMeta(timestamp=timestamp, nonce=nonce, merkle_root=root),
        )

    @property
    def mode(self) -> BlockMode:
        has_prev = self.prev is not None
        has_parents = bool(self.parents)
        if has_prev and not has_parents:
            return BlockMode.CHAIN
        if has_parents and not has_prev:
            return BlockMode.DAG
        if not has_prev and not has_parents:
            return BlockMode.GENESIS
        return BlockMode.INVALID

    @property
    def predecessors(self) -> frozenset[str]:
        """Ids referenced along either edge kind."""
        if self.prev is not None:
            return self.parents | {self.prev}
        return self.parents

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "mode": str(self.mode),
            "transactions": sorted(self.transactions),
            "prev": self.prev,
            "parents": sorted(self.parents),
            "meta": self.meta.to_dict(),
        }
