from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..errors import DuplicateObserverError, SnapshotFormatError
from ..hashing import fixed_seed_hash
from .base import ExitKind, Observer
from .value import observer_from_dict

logger = logging.getLogger(__name__)


class ObserverCollection:
    """
    The named observers attached to one execution context.

    Forwards the engine's lifecycle hooks to every observer in insertion
    order and lets feedback code look observers up by name. Parallel workers
    each need their own collection; nothing here is shared or locked.
    """

    def __init__(self, observers: Iterable[Observer] = ()):
        self._observers: Dict[str, Observer] = {}
        for observer in observers:
            self.add(observer)

    def add(self, observer: Observer) -> Observer:
        if observer.name in self._observers:
            raise DuplicateObserverError(observer.name)
        self._observers[observer.name] = observer
        return observer

    def match_name(self, name: str) -> Optional[Observer]:
        return self._observers.get(name)

    def names(self) -> List[str]:
        return list(self._observers)

    def __getitem__(self, name: str) -> Observer:
        return self._observers[name]

    def __contains__(self, name: object) -> bool:
        return name in self._observers

    def __iter__(self) -> Iterator[Observer]:
        return iter(self._observers.values())

    def __len__(self) -> int:
        return len(self._observers)

    # ------------------------------------------------------------------ #
    # Execution hooks
    # ------------------------------------------------------------------ #
    def pre_exec_all(self, state: Any, input: Any) -> None:
        for observer in self._observers.values():
            observer.pre_exec(state, input)

    def post_exec_all(self, state: Any, input: Any, exit_kind: ExitKind) -> None:
        for observer in self._observers.values():
            observer.post_exec(state, input, exit_kind)

    def pre_exec_child_all(self, state: Any, input: Any) -> None:
        for observer in self._observers.values():
            observer.pre_exec_child(state, input)

    def post_exec_child_all(self, state: Any, input: Any, exit_kind: ExitKind) -> None:
        for observer in self._observers.values():
            observer.post_exec_child(state, input, exit_kind)

    # ------------------------------------------------------------------ #
    # Fingerprints
    # ------------------------------------------------------------------ #
    def hashes(self) -> Dict[str, Optional[int]]:
        return {name: observer.hash() for name, observer in self._observers.items()}

    def combined_hash(self) -> int:
        """Fixed-seed hash over the ordered (name, hash) pairs of all observers."""
        return fixed_seed_hash(tuple(self.hashes().items()))

    # ------------------------------------------------------------------ #
    # Serialisation
    # ------------------------------------------------------------------ #
    def to_dict(self) -> Dict[str, Any]:
        return {"observers": [observer.to_dict() for observer in self._observers.values()]}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ObserverCollection":
        entries = payload.get("observers") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise SnapshotFormatError("Collection payload needs an 'observers' list")
        collection = cls(observer_from_dict(entry) for entry in entries)
        logger.debug("Rebuilt %d owned observers", len(collection))
        return collection
