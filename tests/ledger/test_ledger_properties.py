"""Property tests for LedgerStore over generated block sequences."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from meshledger.core.exceptions import ValidationError
from meshledger.ledger import BlockMode, BlockRecord, LedgerStore

# Each step: (kind, predecessor picks, number of new transactions)
steps = st.lists(
    st.tuples(
        st.sampled_from(["chain", "dag"]),
        st.lists(st.integers(min_value=0, max_value=1000), min_size=1, max_size=3),
        st.integers(min_value=0, max_value=3),
    ),
    min_size=1,
    max_size=25,
)


def build(plan) -> LedgerStore:
    """Grow a valid ledger from a plan; predecessors are picked by index."""
    store = LedgerStore()
    store.seed_genesis("G")
    tx_counter = 0
    for i, (kind, picks, new_txs) in enumerate(plan):
        blocks = store.blocks()
        fresh = [f"tx{tx_counter + k}" for k in range(new_txs)]
        tx_counter += new_txs
        if kind == "chain":
            candidates = [b for b in blocks if b.mode != BlockMode.DAG]
            prev = candidates[picks[0] % len(candidates)]
            block = BlockRecord.create(
                f"B{i}", transactions=prev.transactions | set(fresh), prev=prev.id
            )
        else:
            parents = {blocks[p % len(blocks)].id for p in picks}
            block = BlockRecord.create(f"B{i}", transactions=fresh, parents=parents)
        store.append_block(block)
    return store


@given(steps)
@settings(max_examples=60, deadline=None)
def test_height_is_predecessor_height_plus_one(plan):
    store = build(plan)
    for block in store.blocks():
        if block.mode == BlockMode.CHAIN:
            assert store.height(block.id) == store.height(block.prev) + 1
            assert store.height(block.id) == len(list(store.ancestors(block.id)))


@given(steps)
@settings(max_examples=60, deadline=None)
def test_chain_blocks_hold_all_ancestor_transactions(plan):
    store = build(plan)
    for block in store.blocks():
        if block.prev is None:
            continue
        for ancestor_id in store.ancestors(block.id):
            assert store.get(ancestor_id).transactions <= block.transactions


@given(steps)
@settings(max_examples=60, deadline=None)
def test_no_block_is_its_own_ancestor(plan):
    store = build(plan)
    for block in store.blocks():
        assert block.id not in store.closure(block.id)


@given(steps, st.integers(min_value=0, max_value=1000))
@settings(max_examples=60, deadline=None)
def test_reappending_is_rejected_without_change(plan, pick):
    store = build(plan)
    existing = store.blocks()[pick % len(store)]
    before = store.digest()
    with pytest.raises(ValidationError):
        store.append_block(existing)
    assert store.digest() == before


@given(steps, st.integers(min_value=0, max_value=1000))
@settings(max_examples=60, deadline=None)
def test_reusing_a_recorded_transaction_is_rejected(plan, pick):
    store = build(plan)
    recorded = sorted(tx for b in store.blocks() for tx in b.transactions)
    if not recorded:
        return
    tx = recorded[pick % len(recorded)]
    before = store.digest()
    with pytest.raises(ValidationError):
        store.append_block(BlockRecord.create("fresh", transactions=[tx], parents=["G"]))
    assert store.digest() == before
