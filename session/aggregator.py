"""会话统计汇总模块"""

import logging
from typing import Optional

from alerts.messages import SESSION_LABELS
from models.data_models import DISTRACTION, DROWSINESS, AlertState, SessionStats

logger = logging.getLogger(__name__)


class SessionAggregator:
    """累计会话时长和告警事件数；事件按类型边沿触发，停止监测后冻结。"""

    def __init__(self):
        self.stats = SessionStats()
        self._previous_type: Optional[str] = None
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def on_tick(self):
        """1Hz 计时回调"""
        if self._frozen:
            return
        self.stats.session_duration_seconds += 1

    def on_alert_fired(self, state: AlertState):
        """
        处理一次已放行的告警。

        与上一次放行告警类型相同时不计数。
        """
        if self._frozen:
            return
        previous, self._previous_type = self._previous_type, state.type
        if state.type == previous:
            return

        if state.type == DROWSINESS:
            self.stats.drowsiness_events += 1
        elif state.type == DISTRACTION:
            self.stats.distraction_events += 1
        else:
            return
        self.stats.last_alert_message = SESSION_LABELS[state.type]
        logger.debug("事件计数更新: %s", self.stats)

    def freeze(self):
        self._frozen = True
