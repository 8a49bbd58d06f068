"""Error taxonomy shared by the storage layer and its callers."""


class StoreError(Exception):
    """Base class for storage failures."""


class NotFound(StoreError):
    """The referenced user or entity does not exist."""


class InvalidInput(StoreError):
    """A key grammar or bounds rule was violated."""


class CorruptRecord(StoreError):
    """A stored value or key does not decode against the expected schema."""


class Conflict(StoreError):
    """The write transaction could not be completed due to contention."""


class TransactionTimeout(Conflict):
    """The caller's deadline expired or was cancelled before commit."""


class StorageUnavailable(StoreError):
    """The embedded engine failed at the I/O or environment level."""
