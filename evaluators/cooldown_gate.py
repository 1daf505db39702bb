"""告警冷却门，防止高帧率下告警泛滥"""

from typing import Optional

from models.data_models import DISTRACTION, DROWSINESS, AlertState

# 两次告警之间的最小间隔（毫秒），与告警类型无关
ALERT_COOLDOWN_MS = 5000.0

# 严重度需严格大于该值才会触发
FIRE_SEVERITY_THRESHOLD = 0.5


class CooldownGate:
    """全局冷却窗口：疲劳和分心共用同一个 5 秒窗口。"""

    def __init__(self, cooldown_ms: float = ALERT_COOLDOWN_MS):
        self.cooldown_ms = cooldown_ms
        self.last_alert_fired_at: Optional[float] = None

    def should_fire(self, state: AlertState, now: float) -> bool:
        """
        判断当前状态是否触发新告警，触发时记录时间。

        Args:
            state: 分类结果
            now: 当前时间（毫秒）

        Returns:
            True 表示放行本次告警
        """
        if state.type not in (DROWSINESS, DISTRACTION):
            return False
        if state.severity <= FIRE_SEVERITY_THRESHOLD:
            return False
        if (
            self.last_alert_fired_at is not None
            and now - self.last_alert_fired_at <= self.cooldown_ms
        ):
            return False

        self.last_alert_fired_at = now
        return True

    def reset(self):
        """清除上次触发时间"""
        self.last_alert_fired_at = None
