"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import tempfile
import shutil
from typing import Callable, Generator, List, Optional

import pytest

# Add src/ to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from memos_sync.config import Authorization, SettingsStore, SyncSettings
from memos_sync.memos.base import RemoteCapability
from memos_sync.models import RemoteAttachment, RemoteNote, RemoteSnapshot
from memos_sync.vault import LocalFilesystem


class StaticRemote(RemoteCapability):
    """Remote capability serving a fixed snapshot (or raising a fixed error)."""

    def __init__(self, snapshot: Optional[RemoteSnapshot] = None, error: Optional[Exception] = None):
        self.snapshot = snapshot or RemoteSnapshot()
        self.error = error
        self.calls = 0

    def fetch_snapshot(self) -> RemoteSnapshot:
        self.calls += 1
        if self.error:
            raise self.error
        return self.snapshot


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real MEMOS_* variables from leaking into settings."""
    for key in ("MEMOS_BASE_URL", "MEMOS_ACCESS_TOKEN", "MEMOS_OPEN_ID", "MEMOS_SYNC_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_vault() -> Generator[str, None, None]:
    """Create a temporary vault directory for testing."""
    vault_dir = tempfile.mkdtemp(prefix="test_vault_")
    yield vault_dir
    shutil.rmtree(vault_dir, ignore_errors=True)


@pytest.fixture
def fs(temp_vault: str) -> LocalFilesystem:
    return LocalFilesystem(temp_vault)


@pytest.fixture
def store(temp_vault: str) -> SettingsStore:
    """A settings store with valid credentials, keyring disabled."""
    store = SettingsStore(os.path.join(temp_vault, "memos_sync.json"), use_keyring=False)
    store.save(SyncSettings(authorization=Authorization("https://memos.example.com", access_token="tok")))
    return store


@pytest.fixture
def make_note() -> Callable[..., RemoteNote]:
    def _make(id="abc", content="hello", title=None, created_at=1699990000,
              updated_at=1700000000, archived=False) -> RemoteNote:
        return RemoteNote(id=id, title=title if title is not None else f"title-{id}", content=content,
                          created_at=created_at, updated_at=updated_at, archived=archived)
    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., RemoteSnapshot]:
    def _make(notes: Optional[List[RemoteNote]] = None,
              files: Optional[List[RemoteAttachment]] = None) -> RemoteSnapshot:
        return RemoteSnapshot(notes=notes or [], files=files or [])
    return _make


def write_file(root: str, rel_path: str, content: bytes = b"x") -> str:
    """Create a file (and parents) below root."""
    path = os.path.join(root, *rel_path.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return path


def read_file(root: str, rel_path: str) -> bytes:
    with open(os.path.join(root, *rel_path.split("/")), "rb") as f:
        return f.read()
