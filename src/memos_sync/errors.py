"""Exception types raised by memos-sync."""


class MemosSyncError(Exception):
    """Base class for all memos-sync errors."""


class ConfigurationError(MemosSyncError):
    """Settings are incomplete or invalid. Raised before any I/O happens."""


class RemoteFetchError(MemosSyncError):
    """The remote snapshot could not be fetched (network, auth, timeout)."""
