"""
Value observers for feedback-driven test execution.
Expose one piece of instrumented program state per observer to the
surrounding analysis code, borrowed from the target's memory or owned
after a snapshot round trip, with a deterministic content hash for
deduplication.
"""

from .cell import CellRef, CellRefMut, MutationCell
from .hashing import fixed_seed_hash
from .observers import (
    ExitKind,
    Observer,
    ObserverCollection,
    RefCellValueObserver,
    ValueObserver,
)
from .ownership import OwnedRef, Slot
from .snapshot import SnapshotConfig, load_snapshot, save_snapshot

__all__ = [
    "CellRef",
    "CellRefMut",
    "ExitKind",
    "MutationCell",
    "Observer",
    "ObserverCollection",
    "OwnedRef",
    "RefCellValueObserver",
    "SnapshotConfig",
    "Slot",
    "ValueObserver",
    "fixed_seed_hash",
    "load_snapshot",
    "save_snapshot",
]
