"""监测会话：串联分类、冷却、分发和统计，管理开始/停止生命周期。"""

import logging
import random
import threading
from dataclasses import replace
from typing import Callable, Optional

from alerts.dispatcher import AlertDispatcher
from alerts.messages import MessageSelector
from evaluators.alert_classifier import AlertClassifier
from evaluators.cooldown_gate import CooldownGate
from models.data_models import AlertState, Sample, SessionStats
from session.aggregator import SessionAggregator
from session.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

# 会话计时节拍（毫秒）
TICK_INTERVAL_MS = 1000.0

# 默认采样间隔，约 30 fps
DEFAULT_SAMPLE_INTERVAL_MS = 1000.0 / 30


class SessionContext:
    """单次监测会话的全部可变状态，start() 时创建，stop() 后丢弃。"""

    def __init__(self, dispatcher: AlertDispatcher):
        self.gate = CooldownGate()
        self.aggregator = SessionAggregator()
        self.dispatcher = dispatcher
        self.tick_task: Optional[ScheduledTask] = None
        self.sample_task: Optional[ScheduledTask] = None
        self.last_state: Optional[AlertState] = None


class AlertMonitor:
    """驾驶员告警监测器。

    测量源可拉取（传入 source，由采样节拍调用 source.read()），
    也可推送（外部直接调用 process_sample）。
    """

    def __init__(self, settings_store, visual_sink, speech_sink,
                 source=None, scheduler: Optional[Scheduler] = None,
                 rng: Optional[random.Random] = None,
                 sample_interval_ms: float = DEFAULT_SAMPLE_INTERVAL_MS):
        self.settings_store = settings_store
        self.visual_sink = visual_sink
        self.speech_sink = speech_sink
        self.source = source
        self.scheduler = scheduler or Scheduler()
        self.classifier = AlertClassifier()
        self.selector = MessageSelector(rng)
        self.sample_interval_ms = sample_interval_ms

        self._lock = threading.RLock()
        self._context: Optional[SessionContext] = None
        self._last_stats = SessionStats()
        self._last_state: Optional[AlertState] = None
        self._on_cycle: Optional[Callable[[Sample, AlertState, bool], None]] = None

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._context is not None

    def start(self):
        """开始监测：重置冷却和统计，启动计时与采样节拍。"""
        with self._lock:
            if self._context is not None:
                self._teardown()

            dispatcher = AlertDispatcher(
                self.visual_sink, self.speech_sink, self.scheduler, selector=self.selector,
            )
            ctx = SessionContext(dispatcher)
            ctx.tick_task = self.scheduler.call_every(
                TICK_INTERVAL_MS, ctx.aggregator.on_tick, name="session-tick"
            )
            if self.source is not None:
                # 处理慢于采样间隔时丢弃积压的节拍，只处理最新一帧
                ctx.sample_task = self.scheduler.call_every(
                    self.sample_interval_ms, self._pull_sample, name="sample", catch_up=False
                )
            self._context = ctx
            self._last_state = None
            logger.info("监测开始")

    def stop(self) -> SessionStats:
        """停止监测：停止两个节拍、清除弹窗定时器、取消语音，冻结统计。"""
        with self._lock:
            if self._context is None:
                return self.stats
            stats = self._teardown()
            logger.info(
                "监测停止: 时长=%ds 疲劳=%d 分心=%d",
                stats.session_duration_seconds,
                stats.drowsiness_events,
                stats.distraction_events,
            )
            return stats

    def _teardown(self) -> SessionStats:
        ctx = self._context
        self.scheduler.cancel(ctx.tick_task)
        self.scheduler.cancel(ctx.sample_task)
        ctx.dispatcher.shutdown()
        ctx.aggregator.freeze()
        self._last_stats = ctx.aggregator.stats
        self._context = None
        return self._last_stats

    # ------------------------------------------------------------------
    # 采样周期
    # ------------------------------------------------------------------

    def process_sample(self, sample: Sample, now: Optional[float] = None) -> AlertState:
        """处理一帧样本，返回分类结果"""
        with self._lock:
            if self._context is None:
                raise RuntimeError("监测未开始，无法处理样本")
            if now is None:
                now = self.scheduler.clock.now()
            return self.run_cycle(self._context, sample, now)

    def run_cycle(self, ctx: SessionContext, sample: Sample, now: float) -> AlertState:
        """分类 → 冷却判定 → 分发 + 统计"""
        settings = self.settings_store.get()
        state = self.classifier.classify(sample, settings)
        ctx.last_state = state
        self._last_state = state

        fired = ctx.gate.should_fire(state, now)
        if fired:
            logger.info("告警触发: %s severity=%.2f", state.type, state.severity)
            ctx.dispatcher.dispatch(state, settings)
            ctx.aggregator.on_alert_fired(state)

        if self._on_cycle:
            self._on_cycle(sample, state, fired)
        return state

    def _pull_sample(self):
        sample = self.source.read()
        if sample is None:
            return
        self.run_cycle(self._context, sample, self.scheduler.clock.now())

    def pump(self) -> int:
        """执行所有到期的调度任务（由运行线程或测试调用）"""
        with self._lock:
            return self.scheduler.run_due()

    def set_on_cycle(self, callback: Callable[[Sample, AlertState, bool], None]):
        self._on_cycle = callback

    # ------------------------------------------------------------------
    # 读取状态
    # ------------------------------------------------------------------

    @property
    def stats(self) -> SessionStats:
        """当前会话统计的副本；停止后为冻结值"""
        with self._lock:
            if self._context is not None:
                return replace(self._context.aggregator.stats)
            return replace(self._last_stats)

    @property
    def last_state(self) -> Optional[AlertState]:
        return self._last_state

    @property
    def context(self) -> Optional[SessionContext]:
        return self._context

    def snapshot(self) -> dict:
        """JSON 可序列化的当前状态"""
        with self._lock:
            state = self._last_state
            return {
                "active": self.active,
                "state": state.to_dict() if state is not None else None,
                "stats": self.stats.to_dict(),
                "alert": getattr(self.visual_sink, "current", None) if self.active else None,
                "settings": self.settings_store.get().to_dict(),
            }
