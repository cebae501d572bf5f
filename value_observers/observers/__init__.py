from .base import ExitKind, Observer
from .collection import ObserverCollection
from .value import RefCellValueObserver, ValueObserver, observer_from_dict

__all__ = [
    "ExitKind",
    "Observer",
    "ObserverCollection",
    "RefCellValueObserver",
    "ValueObserver",
    "observer_from_dict",
]
