"""
Console logger for memos-sync.

One module-level ``logger`` instance is shared by the runner, the plan
executor worker threads and the scheduler timer thread, so every console
write goes through a single lock.
"""

import os
import threading
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table


class LogLevel(Enum):
    """日志级别"""
    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3
    ERROR = 4


# level -> (style, default icon)
_LEVEL_FORMAT = {
    LogLevel.DEBUG: ("dim", "🔧"),
    LogLevel.INFO: ("blue", "ℹ️ "),
    LogLevel.SUCCESS: ("green", "✅"),
    LogLevel.WARNING: ("yellow", "⚠️ "),
    LogLevel.ERROR: ("red bold", "❌"),
}

LEVEL_ENV_VAR = "MEMOS_SYNC_LOG_LEVEL"

# (label, value, style) rows for summary_table
SummaryRow = Tuple[str, object, str]


def _level_from_env(default: LogLevel) -> LogLevel:
    name = os.getenv(LEVEL_ENV_VAR, "").strip().upper()
    return LogLevel.__members__.get(name, default)


class Logger:
    """
    线程安全的控制台日志记录器 (rich)

    - 时间戳 + 图标 + 彩色级别
    - 运行标题、失败面板
    - 计划执行进度条
    - 同步汇总表格
    """

    def __init__(self, level: LogLevel = LogLevel.INFO, console: Optional[Console] = None):
        self.level = _level_from_env(level)
        self.console = console or Console()
        self._lock = threading.Lock()

    def set_level(self, level: LogLevel):
        self.level = level

    def enabled_for(self, level: LogLevel) -> bool:
        return level.value >= self.level.value

    def _print(self, renderable, **kwargs):
        with self._lock:
            self.console.print(renderable, **kwargs)

    def log(self, level: LogLevel, message, icon: Optional[str] = None):
        if not self.enabled_for(level):
            return
        style, default_icon = _LEVEL_FORMAT[level]
        stamp = datetime.now().strftime("%H:%M:%S")
        text = escape(str(message))
        self._print(f"[cyan][{stamp}][/cyan] [{style}]{icon or default_icon} {text}[/{style}]", highlight=False)

    def debug(self, message, icon=None):
        self.log(LogLevel.DEBUG, message, icon)

    def info(self, message, icon=None):
        self.log(LogLevel.INFO, message, icon)

    def success(self, message, icon=None):
        self.log(LogLevel.SUCCESS, message, icon)

    def warning(self, message, icon=None):
        self.log(LogLevel.WARNING, message, icon)

    def error(self, message, icon=None):
        self.log(LogLevel.ERROR, message, icon)

    def header(self, message, icon=""):
        """运行标题 (INFO 级别)"""
        if self.enabled_for(LogLevel.INFO):
            self._print(Panel(escape(f"{icon} {message}".strip()), style="bold magenta", expand=False))

    def panel(self, message, title: str = "", style: str = "red"):
        """醒目的面板，不受日志级别限制 (用于同步失败通知)"""
        self._print(Panel(escape(str(message)), title=title or None, style=style))

    @contextmanager
    def progress(self, total: int, description: str):
        """
        进度条，yield 一个 ``update(advance=1)`` 函数。

        INFO 以下级别关闭时不渲染，但 update 仍可调用。
        """
        columns = (
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
        )
        with Progress(*columns, console=self.console, disable=not self.enabled_for(LogLevel.INFO)) as bar:
            task = bar.add_task(description, total=total)
            yield lambda advance=1: bar.update(task, advance=advance)

    def summary_table(self, title: str, rows: Iterable[SummaryRow]):
        """同步汇总表格：每行 (名称, 数量, 样式)"""
        if not self.enabled_for(LogLevel.INFO):
            return
        table = Table(title=title, header_style="bold cyan")
        table.add_column("状态", style="dim")
        table.add_column("数量", justify="right")
        for label, value, style in rows:
            table.add_row(label, f"[{style}]{value}[/{style}]" if style else str(value))
        self._print(table)


logger = Logger()
