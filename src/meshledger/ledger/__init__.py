"""Block ledger: models and the append-only LedgerStore."""

from .models import EMPTY_MERKLE_ROOT, BlockMeta, BlockMode, BlockRecord, compute_merkle_root
from .store import AncestorView, LedgerStore

__all__ = [
    "EMPTY_MERKLE_ROOT",
    "AncestorView",
    "BlockMeta",
    "BlockMode",
    "BlockRecord",
    "LedgerStore",
    "compute_merkle_root",
]
