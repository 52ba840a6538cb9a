"""
Plan Executor Module

Applies a ReconciliationPlan through a FilesystemCapability with concurrent
per-entry writes and deletes. Every operation yields an EntryResult; nothing
is raised for a single failed entry.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from memos_sync import config
from memos_sync.constants import MEMOS_DIR
from memos_sync.logger import logger
from memos_sync.models import CollectionPlan, EntryResult, ExecutionReport, NormalizedEntry, ReconciliationPlan
from memos_sync.utils import ancestor_dirs, join_path
from memos_sync.vault import FilesystemCapability


class PlanExecutor:
    """Executes reconciliation plans below a base folder of the vault."""

    def __init__(self, fs: FilesystemCapability, base: str, max_workers: Optional[int] = None):
        self.fs = fs
        self.base = base.strip("/")
        self.max_workers = max_workers or config.MAX_PARALLEL_WORKERS

    def _path(self, relative_path: str) -> str:
        return join_path(self.base, relative_path)

    def ensure_base(self) -> ExecutionReport:
        """Create the sync folder and its parents if missing."""
        report = ExecutionReport()
        for directory in ancestor_dirs(self.base + "/_"):
            try:
                present = self.fs.exists(directory)
            except Exception as e:
                logger.error(f"检查目录失败 {directory}: {e}")
                report.add(EntryResult("mkdir", directory, e))
                continue
            if not present:
                report.add(self._mkdir_abs(directory))
        return report

    def _mkdir_abs(self, path: str) -> EntryResult:
        try:
            if not self.fs.exists(path):
                self.fs.create_folder(path)
            logger.debug(f"创建目录: {path}")
        except Exception as e:
            logger.error(f"创建目录失败 {path}: {e}")
            return EntryResult("mkdir", path, e)
        return EntryResult("mkdir", path)

    def _write(self, entry: NormalizedEntry, text: bool) -> EntryResult:
        path = self._path(entry.relative_path)
        try:
            if text:
                self.fs.write(path, entry.content.decode("utf-8"))
            else:
                self.fs.write_binary(path, entry.content)
        except Exception as e:
            logger.error(f"写入失败 {path}: {e}")
            return EntryResult("write", entry.relative_path, e)
        logger.debug(f"写入: {path}")
        return EntryResult("write", entry.relative_path)

    def _delete(self, relative_path: str) -> EntryResult:
        path = self._path(relative_path)
        try:
            self.fs.remove(path)
        except Exception as e:
            logger.error(f"删除失败 {path}: {e}")
            return EntryResult("delete", relative_path, e)
        logger.debug(f"删除: {path}")
        return EntryResult("delete", relative_path)

    def execute_collection(self, plan: CollectionPlan) -> ExecutionReport:
        """
        Run one collection plan.

        Stale files sitting where a planned directory goes are deleted
        first, then directories are created in order. The remaining writes
        and deletes never share a path, so they are dispatched together to
        the worker pool.
        """
        report = ExecutionReport()
        planned_dirs = set(plan.directories)
        blocking = [path for path in plan.deletes if path in planned_dirs]
        for path in blocking:
            report.add(self._delete(path))

        for directory in plan.directories:
            report.add(self._mkdir_abs(self._path(directory)))

        text = plan.root == MEMOS_DIR
        tasks = [(self._write, (entry, text)) for entry in plan.writes]
        tasks += [(self._delete, (path,)) for path in plan.deletes if path not in planned_dirs]
        if not tasks:
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(func, *args) for func, args in tasks]
            with logger.progress(len(futures), f"🔄 {plan.root}") as update:
                for future in as_completed(futures):
                    report.add(future.result())
                    update(1)
        return report

    def execute(self, plan: ReconciliationPlan) -> ExecutionReport:
        """Run every collection; one collection failing never stops the next."""
        report = self.ensure_base()
        for collection in plan.collections:
            try:
                report.extend(self.execute_collection(collection))
            except Exception as e:
                logger.error(f"{collection.root} 执行失败: {e}")
                report.add(EntryResult("collection", collection.root, e))
        return report
