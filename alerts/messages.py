"""告警文案及随机选择"""

import random
from typing import Optional

from models.data_models import DISTRACTION, DROWSINESS

ALERT_MESSAGES = {
    DROWSINESS: [
        "Please take a break, you appear drowsy",
        "Driver fatigue detected, consider resting",
        "Your eyes are closing frequently, please pull over safely",
        "Take a coffee break, staying alert is important",
    ],
    DISTRACTION: [
        "Please keep your eyes on the road",
        "Driver distraction detected, focus ahead",
        "Look forward, stay focused on driving",
        "Keep your attention on the road",
    ],
}

# 会话统计中"最近告警"显示的固定标签
SESSION_LABELS = {
    DROWSINESS: "Drowsiness detected",
    DISTRACTION: "Driver distraction detected",
}

# 弹窗标题
ALERT_TITLES = {
    DROWSINESS: "DROWSINESS ALERT",
    DISTRACTION: "DISTRACTION ALERT",
}


class MessageSelector:
    """从对应类型的文案列表中等概率选取一条，随机源可注入。"""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random()

    def select(self, alert_type: str) -> str:
        messages = ALERT_MESSAGES.get(alert_type)
        if not messages:
            raise ValueError(f"类型 {alert_type!r} 没有告警文案")
        return self._rng.choice(messages)
