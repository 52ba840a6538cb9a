"""
Remote capability contract.

The sync runner only needs ``fetch_snapshot``; anything able to produce a
``RemoteSnapshot`` (the HTTP client, a fixture in tests) can stand in.
"""

from memos_sync.models import RemoteSnapshot


class RemoteCapability:
    """Source of remote notes and attachments."""

    def fetch_snapshot(self) -> RemoteSnapshot:
        """Return every note and attachment, or raise RemoteFetchError."""
        raise NotImplementedError
