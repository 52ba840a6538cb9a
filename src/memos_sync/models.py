"""
Data Models Module

Plain value objects shared by the remote client, the normalizer, the
reconciler and the plan executor.
"""

from typing import List, Optional


class RemoteNote:
    """A memo as returned by the remote service."""

    def __init__(self, id: str, title: str = "", content: str = "",
                 created_at: Optional[int] = None, updated_at: Optional[int] = None,
                 archived: bool = False):
        self.id = str(id)
        self.title = title
        self.content = content
        self.created_at = created_at
        self.updated_at = updated_at
        self.archived = archived

    def __repr__(self):
        return f"RemoteNote(id={self.id!r}, title={self.title!r}, archived={self.archived})"


class RemoteAttachment:
    """A resource file. ``content`` is None when its download failed."""

    def __init__(self, filename: str, content: Optional[bytes] = None, note_id: Optional[str] = None):
        self.filename = filename
        self.content = content
        self.note_id = note_id

    def __repr__(self):
        size = "None" if self.content is None else f"{len(self.content)}B"
        return f"RemoteAttachment(filename={self.filename!r}, content={size})"


class RemoteSnapshot:
    """Everything one fetch returned."""

    def __init__(self, notes: Optional[List[RemoteNote]] = None,
                 files: Optional[List[RemoteAttachment]] = None):
        self.notes = notes or []
        self.files = files or []


class NormalizedEntry:
    """A target file: path relative to the sync folder, bytes, remote update time."""

    __slots__ = ("relative_path", "content", "remote_updated_at")

    def __init__(self, relative_path: str, content: Optional[bytes], remote_updated_at: Optional[int] = None):
        self.relative_path = relative_path
        self.content = content
        self.remote_updated_at = remote_updated_at

    def __eq__(self, other):
        if not isinstance(other, NormalizedEntry):
            return NotImplemented
        return (self.relative_path, self.content, self.remote_updated_at) == \
            (other.relative_path, other.content, other.remote_updated_at)

    def __repr__(self):
        return f"NormalizedEntry({self.relative_path!r}, updated={self.remote_updated_at})"


class CollectionPlan:
    """Writes, skips, deletes and directories for one collection (memos or resources)."""

    def __init__(self, root: str):
        self.root = root
        self.directories: List[str] = []
        self.writes: List[NormalizedEntry] = []
        self.skipped_writes: List[str] = []
        self.deletes: List[str] = []

    @property
    def write_paths(self) -> List[str]:
        return [entry.relative_path for entry in self.writes]

    def is_empty(self) -> bool:
        return not (self.directories or self.writes or self.deletes)

    def __repr__(self):
        return (f"CollectionPlan({self.root!r}, writes={len(self.writes)}, "
                f"skipped={len(self.skipped_writes)}, deletes={len(self.deletes)})")


class ReconciliationPlan:
    """The full plan of one sync run: notes and attachments, reconciled separately."""

    def __init__(self, notes: CollectionPlan, attachments: CollectionPlan):
        self.notes = notes
        self.attachments = attachments

    @property
    def collections(self) -> List[CollectionPlan]:
        return [self.notes, self.attachments]

    @property
    def writes(self) -> List[NormalizedEntry]:
        return self.notes.writes + self.attachments.writes

    @property
    def write_paths(self) -> List[str]:
        return self.notes.write_paths + self.attachments.write_paths

    @property
    def skipped_writes(self) -> List[str]:
        return self.notes.skipped_writes + self.attachments.skipped_writes

    @property
    def deletes(self) -> List[str]:
        return self.notes.deletes + self.attachments.deletes

    @property
    def directories(self) -> List[str]:
        return self.notes.directories + self.attachments.directories


class EntryResult:
    """Outcome of a single filesystem operation from a plan."""

    def __init__(self, action: str, path: str, error: Optional[BaseException] = None):
        self.action = action  # "mkdir" | "write" | "delete"
        self.path = path
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self):
        status = "ok" if self.ok else f"failed: {self.error}"
        return f"EntryResult({self.action} {self.path!r}, {status})"


class ExecutionReport:
    """Per-entry results of executing a plan."""

    def __init__(self):
        self.results: List[EntryResult] = []

    def add(self, result: EntryResult):
        self.results.append(result)

    def extend(self, other: "ExecutionReport"):
        self.results.extend(other.results)

    def _count(self, action: str) -> int:
        return sum(1 for r in self.results if r.action == action and r.ok)

    @property
    def written(self) -> int:
        return self._count("write")

    @property
    def deleted(self) -> int:
        return self._count("delete")

    @property
    def created_dirs(self) -> int:
        return self._count("mkdir")

    @property
    def failures(self) -> List[EntryResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures
