"""Cache exception hierarchy."""


class CacheError(Exception):
    """Base class for every error raised by the cache layer."""


class InvalidKeyError(CacheError, ValueError):
    """A key, key part, prefix or pattern is empty or malformed."""


class BackingStoreError(CacheError):
    """The persistent tier could not complete an operation.

    Never surfaced to ``with_cache`` callers: reads degrade to a miss and
    writes are logged and dropped.
    """


class StoreUnavailableError(BackingStoreError):
    """The backing database could not be reached or rejected the query."""


class SerializationError(BackingStoreError):
    """A value could not be encoded for, or decoded from, the backing tier."""
