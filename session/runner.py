"""后台线程驱动监测器的调度队列"""

import logging
import threading
import time
from typing import Optional

from session.monitor import AlertMonitor

logger = logging.getLogger(__name__)

# 单次休眠上限（秒），保证 stop() 能及时生效
_MAX_IDLE_S = 0.05


class MonitorRunner:
    """在守护线程中循环调用 monitor.pump()，直到 stop()。"""

    def __init__(self, monitor: AlertMonitor):
        self.monitor = monitor
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self.last_error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """启动监测和处理线程。"""
        if self._running:
            return
        self.last_error = None
        self.monitor.start()
        self._running = True
        self._thread = threading.Thread(target=self._loop, daemon=True, name="AlertMonitor")
        self._thread.start()

    def stop(self):
        """停止处理线程并执行监测器的清理流程。"""
        self._running = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None
        self.monitor.stop()

    def _loop(self):
        scheduler = self.monitor.scheduler
        while self._running:
            try:
                self.monitor.pump()
            except Exception as e:
                # 样本格式错误等调用方缺陷：记录后终止本次会话
                logger.exception("监测周期异常，停止监测: %s", e)
                self.last_error = e
                self._running = False
                self.monitor.stop()
                break

            next_due = scheduler.next_due()
            if next_due is None:
                delay = _MAX_IDLE_S
            else:
                delay = min(max(next_due - scheduler.clock.now(), 0.0) / 1000.0, _MAX_IDLE_S)
            time.sleep(delay)
