"""
Single-owner mutation cell with runtime-checked borrows.

Any number of read views, or exactly one write view, may be live at once.
Conflicting requests raise immediately. Views are released when their
`with` block ends, when `release()` is called, or when they are collected.
Nothing here is thread-safe: one cell belongs to one execution context.
"""
from __future__ import annotations

import copy
from typing import Generic, TypeVar

from .errors import BorrowError, BorrowMutError

T = TypeVar("T")

_UNUSED = 0
_WRITING = -1


class MutationCell(Generic[T]):
    __slots__ = ("_value", "_borrows")

    def __init__(self, value: T):
        self._value = value
        # >0: number of live read views, -1: one live write view
        self._borrows = _UNUSED

    def borrow(self) -> "CellRef[T]":
        if self._borrows == _WRITING:
            raise BorrowError()
        self._borrows += 1
        return CellRef(self)

    def borrow_mut(self) -> "CellRefMut[T]":
        if self._borrows != _UNUSED:
            raise BorrowMutError()
        self._borrows = _WRITING
        return CellRefMut(self)

    def replace(self, value: T) -> T:
        if self._borrows != _UNUSED:
            raise BorrowMutError()
        old, self._value = self._value, value
        return old

    def into_inner(self) -> T:
        if self._borrows != _UNUSED:
            raise BorrowMutError()
        return self._value

    def get_copy(self) -> T:
        with self.borrow() as value:
            return copy.deepcopy(value)

    @property
    def is_borrowed(self) -> bool:
        return self._borrows != _UNUSED

    def __getstate__(self):
        with self.borrow() as value:
            return {"value": value}

    def __setstate__(self, state):
        self._value = state["value"]
        self._borrows = _UNUSED

    @property
    def is_mutably_borrowed(self) -> bool:
        return self._borrows == _WRITING

    def __repr__(self) -> str:
        if self._borrows == _WRITING:
            return "MutationCell(<borrowed>)"
        return f"MutationCell({self._value!r})"


class CellRef(Generic[T]):
    """Scoped read view of a MutationCell."""
    __slots__ = ("_cell",)

    def __init__(self, cell: MutationCell[T]):
        self._cell = cell

    @property
    def value(self) -> T:
        if self._cell is None:
            raise BorrowError("read view used after release")
        return self._cell._value

    def release(self) -> None:
        cell, self._cell = self._cell, None
        if cell is not None:
            cell._borrows -= 1

    def __enter__(self) -> T:
        return self.value

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __del__(self):
        self.release()

    def __repr__(self) -> str:
        if self._cell is None:
            return "CellRef(<released>)"
        return f"CellRef({self._cell._value!r})"


class CellRefMut(Generic[T]):
    """Scoped write view of a MutationCell. Assign `.value` to replace."""
    __slots__ = ("_cell",)

    def __init__(self, cell: MutationCell[T]):
        self._cell = cell

    @property
    def value(self) -> T:
        if self._cell is None:
            raise BorrowError("write view used after release")
        return self._cell._value

    @value.setter
    def value(self, new_value: T) -> None:
        if self._cell is None:
            raise BorrowError("write view used after release")
        self._cell._value = new_value

    def release(self) -> None:
        cell, self._cell = self._cell, None
        if cell is not None:
            cell._borrows = _UNUSED

    def __enter__(self) -> "CellRefMut[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __del__(self):
        self.release()

    def __repr__(self) -> str:
        if self._cell is None:
            return "CellRefMut(<released>)"
        return f"CellRefMut({self._cell._value!r})"
