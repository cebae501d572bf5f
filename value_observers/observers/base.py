from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ExitKind(Enum):
    """How one execution of the target ended, as reported by the engine."""
    OK = "ok"
    CRASH = "crash"
    OOM = "oom"
    TIMEOUT = "timeout"
    DIFF = "diff"


class Observer:
    """
    Passive window onto state the target produces during one execution.

    The engine calls the hooks around every run; all of them default to
    no-ops. `hash()` returns None unless a subclass provides a content hash.
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def pre_exec(self, state: Any, input: Any) -> None:
        return None

    def post_exec(self, state: Any, input: Any, exit_kind: ExitKind) -> None:
        return None

    def pre_exec_child(self, state: Any, input: Any) -> None:
        return None

    def post_exec_child(self, state: Any, input: Any, exit_kind: ExitKind) -> None:
        return None

    def hash(self) -> Optional[int]:
        return None

    def to_dict(self) -> dict:
        """
        Serialisation hook. The base form has no `kind` or `value`: it is
        reported in snapshots and comparisons but cannot be rebuilt.
        """
        return {"name": self.name, "hash": self.hash()}
