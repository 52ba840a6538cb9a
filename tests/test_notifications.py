"""Tests for run-level sync notices."""

from memos_sync.errors import RemoteFetchError
from memos_sync.models import ExecutionReport
from memos_sync.notifications import Notifier


def test_failure_notice_is_persistent_until_dismissed():
    notifier = Notifier()
    notifier.sync_failed(RemoteFetchError("HTTP 502"))

    notifier.sync_started()
    notifier.sync_succeeded(ExecutionReport())
    notifier.notice("incomplete settings")

    assert len(notifier.persistent) == 1
    assert notifier.persistent[0].startswith(Notifier.FAILURE_HINT)
    assert "HTTP 502" in notifier.persistent[0]

    notifier.dismiss()
    assert notifier.persistent == []


def test_failures_accumulate():
    notifier = Notifier()
    notifier.sync_failed(RemoteFetchError("first"))
    notifier.sync_failed(RemoteFetchError("second"))
    assert [m.splitlines()[-1] for m in notifier.persistent] == ["first", "second"]


def test_non_failure_notices_are_not_persistent():
    notifier = Notifier()
    notifier.sync_started()
    notifier.sync_succeeded(ExecutionReport())
    notifier.notice("请先配置 Memos 服务器地址 (baseUrl)")
    assert notifier.persistent == []
