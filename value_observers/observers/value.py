"""
Observers over a single value.

`ValueObserver` reads a plain value through a borrowed reference (a `Slot`
or any mutable object the target mutates in place). `RefCellValueObserver`
reads a value held in a `MutationCell`, which the target mutates through the
same cell while the observer holds it.

Neither observer resets the value between executions: `pre_exec` is a no-op
on purpose. If a harness must avoid cross-run accumulation it resets the
external storage itself before each run.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Generic, Optional, TypeVar

from ..cell import CellRef, MutationCell
from ..errors import ObserverConsumedError, SnapshotFormatError
from ..hashing import try_fixed_seed_hash
from ..ownership import OwnedRef
from .base import Observer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ValueObserver(Observer, Generic[T]):
    """
    A simple observer with a single value.

    Starts out borrowing the caller's memory. `set` switches it, for good, to
    an owned copy; later writes to the original location are not seen.
    """
    kind = "value"

    def __init__(self, name: str, value: Any):
        super().__init__(name)
        self._value: Optional[OwnedRef[T]] = OwnedRef.borrowed(value)

    @classmethod
    def owned(cls, name: str, value: T) -> "ValueObserver[T]":
        """Build an observer that owns `value` from the start."""
        observer = cls.__new__(cls)
        Observer.__init__(observer, name)
        observer._value = OwnedRef.owned(value)
        return observer

    def _storage(self) -> OwnedRef[T]:
        if self._value is None:
            raise ObserverConsumedError(self.name)
        return self._value

    @property
    def is_owned(self) -> bool:
        return self._storage().is_owned

    def get_ref(self) -> T:
        """The current value, whichever ownership mode is active."""
        return self._storage().as_ref()

    def set(self, new_value: T) -> None:
        """Replace the content with an owned copy of `new_value`."""
        storage = self._storage()
        if storage.is_borrowed:
            logger.debug("Observer %s: borrowed -> owned", self.name)
        self._value = OwnedRef.owned(copy.deepcopy(new_value))

    def take(self) -> T:
        """Clone (borrowed) or move (owned) the value out. Consumes the observer."""
        value = self._storage().into_owned()
        self._value = None
        logger.debug("Observer %s consumed by take()", self.name)
        return value

    def pre_exec(self, state: Any, input: Any) -> None:
        # Does *not* reset the observed value.
        return None

    def hash(self) -> Optional[int]:
        return try_fixed_seed_hash(self.get_ref())

    def to_dict(self) -> Dict[str, Any]:
        value = copy.deepcopy(self.get_ref())
        return {
            "kind": self.kind,
            "name": self.name,
            "value": value,
            "hash": try_fixed_seed_hash(value),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ValueObserver[T]":
        name, value = _parse_payload(payload, cls.kind)
        return cls.owned(name, value)

    def __getstate__(self):
        return {"name": self.name, "value": self.get_ref()}

    def __setstate__(self, state):
        Observer.__init__(self, state["name"])
        # Nothing to borrow on the receiving side.
        self._value = OwnedRef.owned(state["value"])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, value={self._value!r})"


class RefCellValueObserver(Observer, Generic[T]):
    """
    A simple observer with a single `MutationCell`'d value.

    `get_ref` hands out a scoped read view; release it (or use it in a `with`
    block) before anything takes a write view of the same cell, otherwise
    the write fails with BorrowMutError.
    """
    kind = "refcell_value"

    def __init__(self, name: str, cell: MutationCell[T]):
        if not isinstance(cell, MutationCell):
            raise TypeError(
                f"RefCellValueObserver needs a MutationCell, got {type(cell).__name__}"
            )
        super().__init__(name)
        self._value: Optional[OwnedRef[MutationCell[T]]] = OwnedRef.borrowed(cell)

    @classmethod
    def owned(cls, name: str, value: T) -> "RefCellValueObserver[T]":
        """Build an observer that owns a fresh cell holding `value`."""
        observer = cls.__new__(cls)
        Observer.__init__(observer, name)
        observer._value = OwnedRef.owned(MutationCell(value))
        return observer

    def _cell(self) -> MutationCell[T]:
        if self._value is None:
            raise ObserverConsumedError(self.name)
        return self._value.as_ref()

    @property
    def is_owned(self) -> bool:
        self._cell()
        return self._value.is_owned

    def get_ref(self) -> CellRef[T]:
        """Scoped read view of the current value."""
        return self._cell().borrow()

    def set(self, new_value: T) -> None:
        """Replace the value in place through the cell; aliasing is kept."""
        self._cell().replace(new_value)

    def take(self) -> T:
        """Clone through the cell (borrowed) or move the inner value (owned)."""
        cell = self._cell()
        if self._value.is_owned:
            value = cell.into_inner()
        else:
            value = cell.get_copy()
        self._value = None
        logger.debug("Observer %s consumed by take()", self.name)
        return value

    def pre_exec(self, state: Any, input: Any) -> None:
        # Does *not* reset the observed value.
        return None

    def hash(self) -> Optional[int]:
        with self.get_ref() as value:
            return try_fixed_seed_hash(value)

    def to_dict(self) -> Dict[str, Any]:
        value = self._cell().get_copy()
        return {
            "kind": self.kind,
            "name": self.name,
            "value": value,
            "hash": try_fixed_seed_hash(value),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RefCellValueObserver[T]":
        name, value = _parse_payload(payload, cls.kind)
        return cls.owned(name, value)

    def __getstate__(self):
        with self.get_ref() as value:
            return {"name": self.name, "value": value}

    def __setstate__(self, state):
        Observer.__init__(self, state["name"])
        self._value = OwnedRef.owned(MutationCell(state["value"]))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, value={self._value!r})"


def _parse_payload(payload: Dict[str, Any], kind: str):
    if not isinstance(payload, dict):
        raise SnapshotFormatError(f"Observer payload must be a dict, got {type(payload).__name__}")
    if payload.get("kind", kind) != kind:
        raise SnapshotFormatError(f"Expected observer kind '{kind}', got '{payload.get('kind')}'")
    name = payload.get("name")
    if not isinstance(name, str):
        raise SnapshotFormatError("Observer payload is missing a string 'name'")
    if "value" not in payload:
        raise SnapshotFormatError(f"Observer payload '{name}' is missing 'value'")
    return name, payload["value"]


OBSERVER_KINDS = {
    ValueObserver.kind: ValueObserver,
    RefCellValueObserver.kind: RefCellValueObserver,
}


def observer_from_dict(payload: Dict[str, Any]) -> Observer:
    """Rebuild an owned observer of whichever kind `payload` names."""
    kind = payload.get("kind") if isinstance(payload, dict) else None
    cls = OBSERVER_KINDS.get(kind)
    if cls is None:
        raise SnapshotFormatError(f"Unknown observer kind: {kind!r}")
    return cls.from_dict(payload)
