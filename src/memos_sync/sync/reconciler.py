"""
Reconciler Module

Computes the plan that brings the local sync folder in line with the remote
snapshot: which files to write, which to leave alone, which to delete and
which directories must exist first.

Notes and attachments are reconciled independently with the same set
difference and different write-or-skip policies:
- notes are skipped when their remote update time predates the watermark
- attachments are skipped when the file already exists (or has no content)

The reconciler never touches the filesystem; the local state is passed in.
"""

from typing import Callable, Iterable, List, Optional, Sequence, Set

from memos_sync.constants import MEMOS_DIR, RESOURCES_DIR
from memos_sync.errors import ConfigurationError
from memos_sync.models import CollectionPlan, NormalizedEntry, ReconciliationPlan
from memos_sync.utils import ancestor_dirs


class LocalState:
    """Files and folders currently present, relative to the sync folder."""

    def __init__(self, files: Iterable[str] = (), folders: Iterable[str] = ()):
        self.files: Set[str] = set(files)
        self.folders: Set[str] = set(folders)

    @classmethod
    def from_listing(cls, base: str, files: Iterable[str], folders: Iterable[str]) -> "LocalState":
        """Build from vault-relative listings by stripping the ``base/`` prefix."""
        prefix = base.strip("/") + "/"

        def strip(paths):
            return [p[len(prefix):] for p in paths if p.startswith(prefix)]

        return cls(strip(files), strip(folders))

    def files_under(self, root: str) -> List[str]:
        prefix = root + "/"
        return sorted(p for p in self.files if p.startswith(prefix))


def should_skip_note(entry: NormalizedEntry, watermark: Optional[int]) -> bool:
    """
    A note is skipped only when both the watermark and its update time are
    known and the update happened strictly before the watermark.
    """
    if watermark is None or entry.remote_updated_at is None:
        return False
    return entry.remote_updated_at * 1000 < watermark


def should_skip_attachment(entry: NormalizedEntry, local: LocalState) -> bool:
    """Attachments are immutable: existing files are never rewritten."""
    return entry.content is None or entry.relative_path in local.files


def plan_collection(root: str, entries: Sequence[NormalizedEntry], local: LocalState,
                    skip: Callable[[NormalizedEntry], bool]) -> CollectionPlan:
    """
    Plan one collection.

    Args:
        root: Collection directory relative to the sync folder ("memos")
        entries: Normalized target files of the collection
        local: Current local state
        skip: Write-or-skip policy for the collection

    Returns:
        CollectionPlan whose retained set is every entry path, skipped or not
    """
    plan = CollectionPlan(root)
    retained: Set[str] = set()
    planned_dirs: Set[str] = set()

    def ensure_dir(path: str):
        if path not in local.folders and path not in planned_dirs:
            planned_dirs.add(path)
            plan.directories.append(path)

    ensure_dir(root)

    for entry in entries:
        retained.add(entry.relative_path)
        if skip(entry):
            plan.skipped_writes.append(entry.relative_path)
            continue
        for directory in ancestor_dirs(entry.relative_path):
            ensure_dir(directory)
        plan.writes.append(entry)

    plan.deletes = [p for p in local.files_under(root) if p not in retained]
    return plan


def reconcile(folder_to_sync: str, notes: Sequence[NormalizedEntry],
              attachments: Sequence[NormalizedEntry], local: LocalState,
              watermark: Optional[int] = None) -> ReconciliationPlan:
    """
    Build the reconciliation plan for one sync run.

    Args:
        folder_to_sync: Sync folder name; blank names are rejected
        notes: Normalized notes (paths under ``memos/``)
        attachments: Normalized attachments (paths under ``resources/``)
        local: Local state relative to the sync folder
        watermark: Last sync time in epoch milliseconds, None for a full sync

    Raises:
        ConfigurationError: If the sync folder name is empty
    """
    if not folder_to_sync or not folder_to_sync.strip():
        raise ConfigurationError("同步目录名不能为空")

    return ReconciliationPlan(
        notes=plan_collection(MEMOS_DIR, notes, local, lambda e: should_skip_note(e, watermark)),
        attachments=plan_collection(RESOURCES_DIR, attachments, local,
                                    lambda e: should_skip_attachment(e, local)),
    )
