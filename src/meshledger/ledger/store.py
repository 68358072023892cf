# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""LedgerStore - the append-only block arena.

Enforces the structural invariants of the ledger at append time:
- exactly one genesis, and every other block is either a chain successor
  (one ``prev``) or a DAG node (one or more ``parents``)
- no cycles along either edge kind
- globally unique block ids and transactions
- cumulative transaction inclusion along ``prev`` links

Every rejection happens before any mutation, so a failed append leaves the
store exactly as it was.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Iterator

from ..core.exceptions import (
    NotApplicableError,
    NotFoundError,
    ValidationError,
    ValidationRule,
)
from .models import BlockMode, BlockRecord

logger = logging.getLogger(__name__)

BlockObserver = Callable[[BlockRecord], None]


class AncestorView:
    """Lazy, restartable sequence of ancestor ids along ``prev`` links.

    Iteration yields the nearest ancestor first and ends at the genesis (or
    at the first block with no ``prev``). Each ``iter()`` starts over.
    """

    def __init__(self, store: LedgerStore, block_id: str):
        self._store = store
        self._block_id = block_id

    def __iter__(self) -> Iterator[str]:
        current = self._store.get(self._block_id).prev
        while current is not None:
            yield current
            current = self._store.get(current).prev

    def __repr__(self) -> str:
        return f"AncestorView({self._block_id!r})"


class LedgerStore:
    """Owns the block collection and its derived indexes.

    Blocks are kept in an arena keyed by id. Alongside each block the store
    keeps its full ancestor closure (across both edge kinds, built from the
    predecessors' closures at append time) and, for chain blocks, a cached
    height.
    """

    def __init__(self) -> None:
        self._blocks: dict[str, BlockRecord] = {}
        self._closure: dict[str, frozenset[str]] = {}
        self._heights: dict[str, int] = {}
        self._tx_index: dict[str, str] = {}  # tx -> block that introduced it
        self._genesis_id: str | None = None
        self._tip_id: str | None = None
        self._observers: list[BlockObserver] = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append_block(self, block: BlockRecord) -> BlockRecord:
        """Validate and insert a block.

        Raises:
            ValidationError: The block violates a structural rule; ``rule``
                names which one. The store is unchanged.
        """
        try:
            introduced = self._validate(block)
        except ValidationError as e:
            logger.warning(f"Rejected block {block.id}: {e.message} ({e.rule})")
            raise

        mode = block.mode
        if mode == BlockMode.GENESIS:
            closure: frozenset[str] = frozenset()
        else:
            closure = frozenset(block.predecessors).union(
                *(self._closure[p] for p in block.predecessors)
            )

        self._blocks[block.id] = block
        self._closure[block.id] = closure
        for tx in introduced:
            self._tx_index[tx] = block.id

        if mode == BlockMode.GENESIS:
            self._genesis_id = block.id
            self._heights[block.id] = 0
            self._tip_id = block.id
        elif mode == BlockMode.CHAIN:
            height = self._heights[block.prev] + 1
            self._heights[block.id] = height
            if height > self._heights[self._tip_id]:
                self._tip_id = block.id

        logger.info(
            f"Committed block {block.id} ({mode}, {len(block.transactions)} txs, "
            f"{len(introduced)} new)"
        )
        self._notify(block)
        return block

    def seed_genesis(self, block_id: str = "genesis", timestamp: int = 0, nonce: int = 0) -> BlockRecord:
        """Append the distinguished genesis record."""
        return self.append_block(BlockRecord.create(block_id, timestamp=timestamp, nonce=nonce))

    def _validate(self, block: BlockRecord) -> frozenset[str]:
        """Check every append rule. Returns the transactions the block introduces."""
        if block.id in self._blocks:
            raise ValidationError(
                f"Block id already present: {block.id}", ValidationRule.DUPLICATE_ID, block.id
            )

        if not block.meta.merkle_root:
            raise ValidationError(
                f"Block {block.id} has no merkle root", ValidationRule.MISSING_MERKLE_ROOT, block.id
            )

        mode = block.mode
        if mode == BlockMode.INVALID:
            raise ValidationError(
                f"Block {block.id} sets both prev and parents",
                ValidationRule.EDGE_ARITY,
                block.id,
            )
        if not self._blocks and mode != BlockMode.GENESIS:
            raise ValidationError(
                f"First block must be the genesis, got {mode} block {block.id}",
                ValidationRule.EDGE_ARITY,
                block.id,
            )
        if self._blocks and mode == BlockMode.GENESIS:
            raise ValidationError(
                f"Genesis already exists ({self._genesis_id}); block {block.id} needs a prev or parents",
                ValidationRule.EDGE_ARITY,
                block.id,
            )

        if block.id in block.predecessors:
            raise ValidationError(
                f"Block {block.id} references itself", ValidationRule.CYCLE, block.id
            )

        missing = sorted(p for p in block.predecessors if p not in self._blocks)
        if missing:
            raise ValidationError(
                f"Block {block.id} references unknown blocks: {', '.join(missing)}",
                ValidationRule.UNKNOWN_PREDECESSOR,
                block.id,
            )

        if any(block.id in self._closure[p] for p in block.predecessors):
            raise ValidationError(
                f"Block {block.id} would become its own ancestor", ValidationRule.CYCLE, block.id
            )

        inherited: frozenset[str] = frozenset()
        if mode == BlockMode.CHAIN:
            prev = self._blocks[block.prev]
            if prev.mode == BlockMode.DAG:
                raise ValidationError(
                    f"Chain block {block.id} cannot extend DAG block {prev.id}",
                    ValidationRule.MODE_MIXING,
                    block.id,
                )
            # prev already holds every transaction of its own ancestors
            inherited = prev.transactions

        introduced = block.transactions - inherited
        duplicates = sorted(tx for tx in introduced if tx in self._tx_index)
        if duplicates:
            raise ValidationError(
                f"Block {block.id} repeats recorded transactions: {', '.join(duplicates)}",
                ValidationRule.DUPLICATE_TRANSACTION,
                block.id,
            )

        lacking = inherited - block.transactions
        if lacking:
            raise ValidationError(
                f"Block {block.id} is missing ancestor transactions: {', '.join(sorted(lacking))}",
                ValidationRule.MISSING_ANCESTOR_TRANSACTION,
                block.id,
            )

        return introduced

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, observer: BlockObserver) -> Callable[[], None]:
        """Register a block-committed observer. Returns an unsubscribe callable."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, block: BlockRecord) -> None:
        for observer in list(self._observers):
            try:
                observer(block)
            except Exception:  # noqa: BLE001 - the append is already committed
                logger.exception(f"Block observer failed for {block.id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, block_id: str) -> BlockRecord:
        try:
            return self._blocks[block_id]
        except KeyError:
            raise NotFoundError("Block", block_id) from None

    def ancestors(self, block_id: str) -> AncestorView:
        """Ancestor ids of a block along ``prev`` links, nearest first."""
        if block_id not in self._blocks:
            raise NotFoundError("Block", block_id)
        return AncestorView(self, block_id)

    def height(self, block_id: str) -> int:
        """Cached chain height. Genesis is 0."""
        block = self.get(block_id)
        if block.mode == BlockMode.DAG:
            raise NotApplicableError(
                f"Height is undefined for DAG block {block_id}", {"block_id": block_id}
            )
        return self._heights[block_id]

    def closure(self, block_id: str) -> frozenset[str]:
        """Every block reachable from ``block_id`` along either edge kind."""
        self.get(block_id)
        return self._closure[block_id]

    def contains_transaction(self, tx: str) -> bool:
        return tx in self._tx_index

    def block_for_transaction(self, tx: str) -> BlockRecord:
        """The block that first recorded ``tx``."""
        try:
            return self._blocks[self._tx_index[tx]]
        except KeyError:
            raise NotFoundError("Transaction", tx) from None

    @property
    def genesis(self) -> BlockRecord | None:
        return self._blocks.get(self._genesis_id) if self._genesis_id else None

    def chain_tip(self) -> BlockRecord | None:
        """Highest chain block; the earliest appended wins ties."""
        return self._blocks.get(self._tip_id) if self._tip_id else None

    def block_ids(self) -> frozenset[str]:
        return frozenset(self._blocks)

    def blocks(self) -> list[BlockRecord]:
        """All blocks in append order."""
        return list(self._blocks.values())

    def digest(self) -> str:
        """SHA-256 over a canonical rendering of every stored block."""
        payload = json.dumps([b.to_dict() for b in self._blocks.values()], sort_keys=True)
        return hashlib.sha256(payload.encode()).hexdigest()

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)
