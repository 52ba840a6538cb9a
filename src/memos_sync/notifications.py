"""User-facing sync notices."""

from typing import List

from memos_sync.logger import logger
from memos_sync.models import ExecutionReport


class Notifier:
    """
    Emits the three run-level notices: started, succeeded, failed.

    Failure notices are persistent: they are kept in ``persistent`` until
    ``dismiss`` is called, and rendered as a panel.
    """

    FAILURE_HINT = "同步 Memos 失败，请检查授权信息 (baseUrl / Access Token / OpenID) 和网络连接。"

    def __init__(self):
        self.persistent: List[str] = []

    def sync_started(self):
        logger.info("开始同步 Memos...", icon="🚀")

    def sync_succeeded(self, report: ExecutionReport):
        logger.success(f"Memos 同步完成：写入 {report.written}，删除 {report.deleted}")

    def sync_failed(self, error: BaseException):
        message = f"{self.FAILURE_HINT}\n{error}"
        self.persistent.append(message)
        logger.panel(message, title="❌ Memos Sync", style="red")

    def notice(self, message: str):
        """A one-off notice, e.g. for incomplete settings."""
        logger.warning(message)

    def dismiss(self):
        self.persistent.clear()
