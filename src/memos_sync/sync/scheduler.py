"""
Sync Scheduler Module

Triggers SyncRunner periodically on a daemon timer. Changing the interval
cancels the pending timer and re-arms it; an interval of 0 disables it.
"""

import threading
from typing import Callable, Optional

from memos_sync.logger import logger
from memos_sync.sync.runner import SyncOutcome, SyncRunner


class SyncScheduler:
    """Periodic trigger for a SyncRunner."""

    def __init__(self, runner: SyncRunner, interval: int = 0, unit_seconds: float = 60.0,
                 interval_source: Optional[Callable[[], int]] = None):
        """
        Args:
            runner: Runner to trigger
            interval: Minutes between runs, 0 disables the timer
            unit_seconds: Length of one interval unit (minutes in production)
            interval_source: Re-read after every timed run; a changed value
                re-arms the timer with it (0 stops it)
        """
        self.runner = runner
        self.interval_source = interval_source
        self.interval = interval
        self.unit_seconds = unit_seconds
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._stopped = False
        self._mutex = threading.Lock()

    @property
    def is_armed(self) -> bool:
        with self._mutex:
            return self._timer is not None

    def start(self):
        with self._mutex:
            self._stopped = False
            self._rearm()

    def set_interval(self, interval: int):
        """Cancel the pending timer and re-arm with the new interval."""
        if interval < 0:
            raise ValueError(f"同步间隔不能为负数: {interval}")
        with self._mutex:
            self.interval = interval
            if not self._stopped:
                self._rearm()
        logger.info(f"同步间隔已更新为 {interval} 分钟" if interval else "定时同步已关闭", icon="⏱️")

    def shutdown(self):
        """Cancel the timer for good."""
        with self._mutex:
            self._stopped = True
            self._cancel()

    def trigger(self) -> SyncOutcome:
        """Run a sync now, in the calling thread."""
        return self.runner.run()

    def _cancel(self):
        # Must be called with mutex held
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _rearm(self):
        # Must be called with mutex held
        self._cancel()
        if self.interval <= 0:
            return
        generation = self._generation
        self._timer = threading.Timer(self.interval * self.unit_seconds, self._tick, args=(generation,))
        self._timer.daemon = True
        self._timer.start()

    def _tick(self, generation: int):
        with self._mutex:
            if generation != self._generation or self._stopped:
                return
            self._timer = None

        try:
            self.runner.run()
        except Exception as e:
            logger.error(f"定时同步异常: {e}")

        latest = self._read_interval()

        with self._mutex:
            # Re-arm only if nobody changed the interval or stopped us meanwhile
            if generation != self._generation or self._stopped:
                return
            if latest is not None and latest != self.interval:
                logger.info(f"同步间隔已更新为 {latest} 分钟" if latest else "定时同步已关闭", icon="⏱️")
                self.interval = latest
            self._rearm()

    def _read_interval(self) -> Optional[int]:
        if self.interval_source is None:
            return None
        try:
            latest = self.interval_source()
        except Exception as e:
            logger.error(f"读取同步间隔失败: {e}")
            return None
        if not isinstance(latest, int) or latest < 0:
            logger.warning(f"无效的同步间隔 {latest!r}，保持 {self.interval} 分钟")
            return None
        return latest
