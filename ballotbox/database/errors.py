"""
Error taxonomy for the election store.

Domain outcomes (already voted, not voted, bad credentials) are returned as
typed results from ``ballotbox.database.outcomes``; only the conditions below
are raised.
"""


class ElectionStoreError(Exception):
    """Base class for store errors."""
    pass


class NotFound(ElectionStoreError):
    """A voter, candidate or admin does not exist."""
    pass


class ConstraintViolation(ElectionStoreError):
    """A uniqueness or integrity rule was broken (duplicate username, vote, ballot number)."""
    pass


class StorageUnavailable(ElectionStoreError):
    """The storage engine failed to open or to complete a transaction."""
    pass


class AuditWriteFailed(ElectionStoreError):
    """An audit entry could not be written. Never surfaced to end users."""
    pass
