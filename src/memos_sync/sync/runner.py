"""
Sync Runner Module

Orchestrates one sync run:
    load settings -> fetch -> normalize -> list local -> reconcile
    -> execute -> persist watermark

Only fetch and plan computation decide whether a run failed. Per-entry
write/delete failures are reported in the ExecutionReport and do not block
the watermark update.
"""

import threading
from typing import Callable, Optional

from memos_sync import config
from memos_sync.config import Authorization, SettingsStore, apply_env_overrides
from memos_sync.errors import ConfigurationError, MemosSyncError, RemoteFetchError
from memos_sync.logger import logger
from memos_sync.memos.base import RemoteCapability
from memos_sync.memos.client import MemosClient
from memos_sync.models import ExecutionReport, ReconciliationPlan, RemoteSnapshot
from memos_sync.notifications import Notifier
from memos_sync.sync.executor import PlanExecutor
from memos_sync.sync.normalizer import NoteRenderer, normalize_snapshot, render_note
from memos_sync.sync.reconciler import LocalState, reconcile
from memos_sync.utils import now_ms
from memos_sync.vault import FilesystemCapability


class SyncOutcome:
    """Result of one ``SyncRunner.run`` call."""

    def __init__(self, success: bool = False, skipped: bool = False,
                 error: Optional[BaseException] = None,
                 plan: Optional[ReconciliationPlan] = None,
                 report: Optional[ExecutionReport] = None):
        self.success = success
        self.skipped = skipped
        self.error = error
        self.plan = plan
        self.report = report

    def __str__(self):
        if self.skipped:
            return "⏭️ 已有同步正在进行，本次跳过"
        if not self.success:
            return f"❌ 同步失败: {self.error}"
        if self.report is None:
            return "✅ 计划已生成 (dry run)"
        return f"✅ 同步成功: 写入 {self.report.written}，删除 {self.report.deleted}，失败 {len(self.report.failures)}"


class SyncRunner:
    """Runs sync jobs for one vault. At most one run is active at a time."""

    def __init__(self, store: SettingsStore, fs: FilesystemCapability,
                 remote_factory: Callable[[Authorization], RemoteCapability] = MemosClient,
                 notifier: Optional[Notifier] = None,
                 renderer: NoteRenderer = render_note,
                 fetch_timeout: Optional[float] = None,
                 clock: Callable[[], int] = now_ms):
        """
        Args:
            store: Where settings (and the watermark) are persisted
            fs: Filesystem capability rooted at the vault
            remote_factory: Builds the remote capability from credentials
            notifier: Receives started/succeeded/failed notices
            renderer: Note-to-content collaborator
            fetch_timeout: Upper bound in seconds for the remote fetch
            clock: Epoch-millisecond clock used for the new watermark
        """
        self.store = store
        self.fs = fs
        self.remote_factory = remote_factory
        self.notifier = notifier or Notifier()
        self.renderer = renderer
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else config.FETCH_TIMEOUT
        self.clock = clock
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def run(self, dry_run: bool = False, full: bool = False) -> SyncOutcome:
        """
        Run a sync. Returns immediately with ``skipped=True`` if another run
        is still in progress.

        Args:
            dry_run: Compute and log the plan without touching files or the watermark
            full: Ignore the stored watermark and rewrite every note
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("上一次同步仍在进行，忽略本次触发")
            return SyncOutcome(skipped=True)
        try:
            return self._run(dry_run=dry_run, full=full)
        finally:
            self._run_lock.release()

    def _run(self, dry_run: bool, full: bool) -> SyncOutcome:
        settings = apply_env_overrides(self.store.load())
        try:
            settings.validate()
        except ConfigurationError as e:
            self.notifier.notice(str(e))
            return SyncOutcome(error=e)

        folder = settings.folder_to_sync.strip("/")
        watermark = None if full else settings.last_sync_time
        self.notifier.sync_started()
        started_at = self.clock()

        try:
            snapshot = self.fetch(settings.authorization)
            notes, attachments = normalize_snapshot(snapshot, settings.file_name_format, renderer=self.renderer)
            files, folders = self.fs.list(folder)
            local = LocalState.from_listing(folder, files, folders)
            plan = reconcile(folder, notes, attachments, local, watermark=watermark)
        except (MemosSyncError, OSError, ValueError) as e:
            logger.error(f"同步失败: {e}")
            self.notifier.sync_failed(e)
            return SyncOutcome(error=e)

        self._log_plan(plan)
        if dry_run:
            return SyncOutcome(success=True, plan=plan)

        report = PlanExecutor(self.fs, folder).execute(plan)
        for failure in report.failures:
            logger.debug(f"失败条目: {failure}")

        try:
            self.store.save_watermark(started_at)
        except OSError as e:
            logger.error(f"保存同步时间失败: {e}")

        logger.summary_table("📊 同步汇总", [
            ("✅ 写入", report.written, "green"),
            ("⏭️ 跳过", len(plan.skipped_writes), "yellow"),
            ("🗑️ 删除", report.deleted, ""),
            ("📁 新建目录", report.created_dirs, ""),
            ("❌ 失败", len(report.failures), "red" if report.failures else ""),
        ])
        self.notifier.sync_succeeded(report)
        return SyncOutcome(success=True, plan=plan, report=report)

    def fetch(self, authorization: Authorization) -> RemoteSnapshot:
        """
        Fetch the remote snapshot on a daemon thread, bounded by ``fetch_timeout``.

        Raises:
            RemoteFetchError: On timeout or any failure of the remote capability
        """
        result = {}

        def target():
            try:
                result["snapshot"] = self.remote_factory(authorization).fetch_snapshot()
            except Exception as e:
                result["error"] = e

        worker = threading.Thread(target=target, name="memos-fetch", daemon=True)
        worker.start()
        worker.join(self.fetch_timeout)

        if worker.is_alive():
            raise RemoteFetchError(f"获取远端数据超时 ({self.fetch_timeout:.0f}s)")
        error = result.get("error")
        if isinstance(error, RemoteFetchError):
            raise error
        if error is not None:
            raise RemoteFetchError(str(error)) from error
        return result["snapshot"]

    def _log_plan(self, plan: ReconciliationPlan):
        for collection in plan.collections:
            logger.info(
                f"{collection.root}: 写入 {len(collection.writes)}，跳过 {len(collection.skipped_writes)}，"
                f"删除 {len(collection.deletes)}，新建目录 {len(collection.directories)}",
                icon="📋",
            )
            for path in collection.deletes:
                logger.debug(f"待删除: {path}")
