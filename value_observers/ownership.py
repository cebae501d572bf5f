from __future__ import annotations

import copy
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Slot(Generic[T]):
    """
    A single mutable location owned by the harness.

    The instrumented target writes `slot.value`; observers borrowing the slot
    see every write, including rebinding to a new object.
    """
    __slots__ = ("value",)

    def __init__(self, value: T):
        self.value = value

    def __repr__(self) -> str:
        return f"Slot({self.value!r})"


class OwnedRef(Generic[T]):
    """
    Either a borrowed reference to caller-owned memory or a value owned here.

    Use the `borrowed` / `owned` constructors. `as_ref()` reads the current
    value whichever variant is active.
    """
    __slots__ = ("_slot", "_value", "_owned")

    def __init__(self, *, slot: Optional[Slot[T]] = None, value: Optional[T] = None, owned: bool):
        self._slot = slot
        self._value = value
        self._owned = owned

    @classmethod
    def borrowed(cls, target: Any) -> "OwnedRef[T]":
        # Plain objects get a private slot: in-place mutation stays visible,
        # rebinding by the caller does not.
        slot = target if isinstance(target, Slot) else Slot(target)
        return cls(slot=slot, owned=False)

    @classmethod
    def owned(cls, value: T) -> "OwnedRef[T]":
        return cls(value=value, owned=True)

    @property
    def is_owned(self) -> bool:
        return self._owned

    @property
    def is_borrowed(self) -> bool:
        return not self._owned

    def as_ref(self) -> T:
        if self._owned:
            return self._value
        return self._slot.value

    def into_owned(self, clone: Callable[[T], T] = copy.deepcopy) -> T:
        if self._owned:
            return self._value
        return clone(self._slot.value)

    def __repr__(self) -> str:
        if self._owned:
            return f"OwnedRef.Owned({self._value!r})"
        return f"OwnedRef.Ref({self._slot!r})"
