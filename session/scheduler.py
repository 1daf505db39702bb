"""单时钟定时调度器：统一管理告警自动清除、采样节拍和 1Hz 计时。"""

import heapq
import itertools
import time
from typing import Callable, List, Optional


class MonotonicClock:
    """系统单调时钟，单位毫秒"""

    def now(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """手动推进的时钟，用于测试和离线模拟"""

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def set(self, value_ms: float):
        if value_ms < self._now:
            raise ValueError(f"时钟不能倒退: {value_ms} < {self._now}")
        self._now = float(value_ms)

    def advance(self, delta_ms: float):
        self.set(self._now + delta_ms)


class ScheduledTask:
    """调度任务句柄"""

    def __init__(self, action: Callable[[], None], fire_at: float,
                 interval_ms: Optional[float] = None, name: str = "", catch_up: bool = True):
        self.action = action
        self.fire_at = fire_at
        self.interval_ms = interval_ms
        self.name = name
        # False: 错过的周期合并为一次，不补跑
        self.catch_up = catch_up
        self.cancelled = False

    @property
    def repeating(self) -> bool:
        return self.interval_ms is not None

    def __repr__(self):
        return f"ScheduledTask({self.name or self.action!r}, fire_at={self.fire_at:.1f})"


class Scheduler:
    """(fire_at, action) 队列，由单一时钟驱动，stop 时一次清空。"""

    def __init__(self, clock=None):
        self.clock = clock if clock is not None else MonotonicClock()
        self._queue: List[tuple] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, action: Callable[[], None], name: str = "") -> ScheduledTask:
        """delay_ms 毫秒后执行一次 action"""
        task = ScheduledTask(action, self.clock.now() + delay_ms, name=name)
        self._push(task)
        return task

    def call_every(self, interval_ms: float, action: Callable[[], None], name: str = "",
                   catch_up: bool = True) -> ScheduledTask:
        """
        每隔 interval_ms 毫秒执行一次 action（首次在一个周期后）。

        Args:
            catch_up: True 时落后的周期逐个补跑（计时用）；
                False 时跳过已错过的周期，下次触发对齐到当前时间之后（采样用）
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms 必须为正数: {interval_ms}")
        task = ScheduledTask(action, self.clock.now() + interval_ms, interval_ms=interval_ms,
                             name=name, catch_up=catch_up)
        self._push(task)
        return task

    def cancel(self, task: Optional[ScheduledTask]):
        if task is not None:
            task.cancelled = True

    def cancel_all(self):
        for _, _, task in self._queue:
            task.cancelled = True
        self._queue.clear()

    def next_due(self) -> Optional[float]:
        """最早一个有效任务的触发时间，无任务时返回 None"""
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def pending(self) -> int:
        self._drop_cancelled()
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def run_due(self, now: Optional[float] = None) -> int:
        """
        按时间顺序执行所有已到期任务。

        Args:
            now: 截止时间，缺省为当前时钟

        Returns:
            本次执行的任务数
        """
        if now is None:
            now = self.clock.now()
        executed = 0
        while True:
            task = self._pop_due(now)
            if task is None:
                return executed
            self._run(task, now)
            executed += 1

    def advance(self, delta_ms: float) -> int:
        """推进 ManualClock，逐个任务设置时钟到其触发时间后执行"""
        if not isinstance(self.clock, ManualClock):
            raise TypeError("advance() 只能用于 ManualClock")
        target = self.clock.now() + delta_ms
        executed = 0
        while True:
            task = self._pop_due(target)
            if task is None:
                break
            self.clock.set(max(task.fire_at, self.clock.now()))
            self._run(task, self.clock.now())
            executed += 1
        self.clock.set(target)
        return executed

    # ---- 内部实现 ----

    def _push(self, task: ScheduledTask):
        heapq.heappush(self._queue, (task.fire_at, next(self._seq), task))

    def _drop_cancelled(self):
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def _pop_due(self, now: float) -> Optional[ScheduledTask]:
        self._drop_cancelled()
        if not self._queue or self._queue[0][0] > now:
            return None
        _, _, task = heapq.heappop(self._queue)
        return task

    def _run(self, task: ScheduledTask, now: float):
        # 先重新排队再执行，action 内部可以取消自身
        if task.repeating:
            steps = 1
            if not task.catch_up:
                steps = max(1, int((now - task.fire_at) // task.interval_ms) + 1)
            task.fire_at += steps * task.interval_ms
            self._push(task)
        task.action()
