"""
Observer error types.

All errors inherit from ObserverError. Misuse (overlapping borrows, using a
consumed observer) raises immediately instead of leaving state half-updated.
"""


class ObserverError(Exception):
    """Base exception for all observer failures."""
    pass


class BorrowError(ObserverError, RuntimeError):
    """Raised when a read view is requested while a write view is live."""

    def __init__(self, message: str = "value is already mutably borrowed"):
        super().__init__(message)


class BorrowMutError(ObserverError, RuntimeError):
    """Raised when a write view is requested while any other view is live."""

    def __init__(self, message: str = "value is already borrowed"):
        super().__init__(message)


class ObserverConsumedError(ObserverError):
    """Raised when an observer is used after take()."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Observer '{name}' was consumed by take()")


class DuplicateObserverError(ObserverError, ValueError):
    """Raised when two observers with the same name join one collection."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Observer name already registered: {name}")


class UnhashableValueError(ObserverError, TypeError):
    """Raised when a value has no canonical encoding for the content hash."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"No canonical hash encoding for type: {type_name}")


class SnapshotFormatError(ObserverError, ValueError):
    """Raised when a snapshot payload cannot be written or read back."""
    pass
