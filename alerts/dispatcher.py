"""告警分发：选取文案后交给可视和语音两个输出端"""

import logging
from typing import Optional

from alerts.messages import MessageSelector
from models.data_models import NORMAL, AlertSettings, AlertState, VoiceParams
from session.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

# 弹窗显示时长（毫秒），与冷却窗口相互独立
VISUAL_DISPLAY_MS = 3000.0


class AlertDispatcher:
    """单个会话内的分发器，持有当前弹窗的清除定时器和当前播报内容。

    两个输出端互不影响：任一端抛出的异常只记录日志，不会向上传播。
    """

    def __init__(self, visual_sink, speech_sink, scheduler: Scheduler,
                 selector: Optional[MessageSelector] = None,
                 voice: Optional[VoiceParams] = None):
        self.visual_sink = visual_sink
        self.speech_sink = speech_sink
        self.scheduler = scheduler
        self.selector = selector or MessageSelector()
        self.voice = voice or VoiceParams()
        self.current_message: Optional[str] = None
        self.current_utterance: Optional[str] = None
        self._clear_task: Optional[ScheduledTask] = None

    def dispatch(self, state: AlertState, settings: AlertSettings) -> Optional[str]:
        """
        分发一次已放行的告警。

        Returns:
            选中的文案；normal 类型不分发，返回 None
        """
        if state.type == NORMAL:
            return None

        message = self.selector.select(state.type)
        self._show(message, state.type)
        if settings.voice_alerts_enabled:
            self._speak(message)
        return message

    def shutdown(self):
        """停止监测时调用：取消清除定时器、清空弹窗、取消播报"""
        self.scheduler.cancel(self._clear_task)
        self._clear_task = None
        self._clear_visual()
        if self.current_utterance is not None:
            self._cancel_speech()
            self.current_utterance = None

    # ---- 可视端 ----

    def _show(self, message: str, alert_type: str):
        # 最新一条覆盖旧弹窗，清除定时器重新计时
        self.scheduler.cancel(self._clear_task)
        self.current_message = message
        try:
            self.visual_sink.show(message, alert_type)
        except Exception as e:
            logger.warning("弹窗显示失败: %s", e)
        self._clear_task = self.scheduler.call_later(
            VISUAL_DISPLAY_MS, self._on_clear_timer, name="visual-clear"
        )

    def _on_clear_timer(self):
        self._clear_task = None
        self._clear_visual()

    def _clear_visual(self):
        self.current_message = None
        try:
            self.visual_sink.clear()
        except Exception as e:
            logger.warning("弹窗清除失败: %s", e)

    # ---- 语音端 ----

    def _speak(self, message: str):
        self._cancel_speech()
        try:
            self.speech_sink.speak(message, self.voice)
            self.current_utterance = message
        except Exception as e:
            logger.warning("语音播报失败: %s", e)
            self.current_utterance = None

    def _cancel_speech(self):
        try:
            self.speech_sink.cancel()
        except Exception as e:
            logger.warning("取消语音失败: %s", e)
