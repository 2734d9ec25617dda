class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when the requested student does not exist."""


class ConflictError(DomainError):
    """Raised when a write contradicts existing data (duplicate id, stale action)."""


class TransientStoreError(DomainError):
    """Raised when the store is unreachable or a concurrent update kept winning."""


class CleanupTimeoutError(DomainError):
    """Raised when a manual cleanup does not finish within its timeout."""


class PartialWriteError(DomainError):
    """Presence state was written but an audit/feed insert failed.

    `student` is the record as committed (None when the store rolled everything back).
    """

    def __init__(self, message: str, *, student=None, stage: str = ""):
        super().__init__(message)
        self.student = student
        self.stage = stage
