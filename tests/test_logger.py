"""Tests for the console logger."""

from io import StringIO

from rich.console import Console

from memos_sync.logger import Logger, LogLevel


def _logger(level=LogLevel.INFO):
    buf = StringIO()
    return Logger(level=level, console=Console(file=buf, width=120, color_system=None)), buf


def test_level_filtering():
    log, buf = _logger(LogLevel.WARNING)
    log.info("hidden")
    log.warning("shown")
    assert "hidden" not in buf.getvalue()
    assert "shown" in buf.getvalue()


def test_level_from_env(monkeypatch):
    monkeypatch.setenv("MEMOS_SYNC_LOG_LEVEL", "debug")
    log, _ = _logger()
    assert log.level is LogLevel.DEBUG


def test_markup_in_messages_is_escaped():
    log, buf = _logger()
    log.info("file [bold]x[/bold].md")
    assert "[bold]x[/bold]" in buf.getvalue()


def test_panel_ignores_level():
    log, buf = _logger(LogLevel.ERROR)
    log.panel("sync failed", title="Memos Sync")
    assert "sync failed" in buf.getvalue()


def test_summary_table_rows():
    log, buf = _logger()
    log.summary_table("Summary", [("written", 3, "green"), ("deleted", 0, "")])
    out = buf.getvalue()
    assert "written" in out and "3" in out and "deleted" in out


def test_progress_update_when_disabled():
    log, _ = _logger(LogLevel.ERROR)
    with log.progress(2, "memos") as update:
        update()
        update(1)
