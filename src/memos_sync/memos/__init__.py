"""
Memos API Client Package

Package Structure:
    - base.py: RemoteCapability contract used by the sync runner
    - client.py: MemosClient, the HTTP implementation

Usage:
    from memos_sync.memos import MemosClient
"""

from memos_sync.memos.base import RemoteCapability
from memos_sync.memos.client import MemosClient, memo_to_note, derive_title

__all__ = ['RemoteCapability', 'MemosClient', 'memo_to_note', 'derive_title']
