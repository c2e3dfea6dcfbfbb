"""
Exception hierarchy for the pwned range cache.

Input problems abort a run, transport and cache I/O problems are reported
per query, and integrity problems mean the cache can no longer be trusted.
"""


class PwnedCacheError(Exception):
    """Base class for every error raised by this package."""


class InvalidHashError(PwnedCacheError, ValueError):
    """The input is not a 32 character hexadecimal hash."""


class TransportError(PwnedCacheError):
    """Building, sending or reading a range request failed."""


class TruncatedStreamError(TransportError):
    """The range body ended part way through a suffix."""


class CacheIOError(PwnedCacheError):
    """A partition directory or file could not be created, read or written."""


class IntegrityError(PwnedCacheError):
    """A cached partition is corrupt. Answers from it cannot be trusted."""


class PartitionCorruptionError(IntegrityError):
    pass
