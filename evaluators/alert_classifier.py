"""驾驶员状态分类模块"""

from models.data_models import (
    DISTRACTION,
    DROWSINESS,
    NORMAL,
    AlertSettings,
    AlertState,
    Sample,
)

# 灵敏度倍率
SENSITIVITY_MULTIPLIERS = {
    "low": 0.7,
    "medium": 1.0,
    "high": 1.3,
}

# 分心严重度归一化跨度（度），不可配置
DISTRACTION_SEVERITY_SPAN = 30.0


def clamp_severity(value: float) -> float:
    """将严重度限制在 [0, 1]"""
    return max(0.0, min(value, 1.0))


class AlertClassifier:
    """根据单帧样本和当前配置输出告警类型与严重度，无副作用。"""

    def classify(self, sample: Sample, settings: AlertSettings) -> AlertState:
        """
        分类单帧样本。

        闭眼与转头同时超阈值时，分心判定覆盖疲劳判定。

        Args:
            sample: 测量样本
            settings: 当前告警配置

        Returns:
            AlertState(type, severity, timestamp, eye_aspect_ratio, head_pose)
        """
        alert_type, raw_severity = self._raw_severity(sample, settings)
        multiplier = SENSITIVITY_MULTIPLIERS[settings.sensitivity]

        return AlertState(
            type=alert_type,
            severity=clamp_severity(raw_severity * multiplier),
            timestamp=sample.timestamp,
            eye_aspect_ratio=sample.eye_aspect_ratio,
            head_pose=sample.head_pose,
        )

    @staticmethod
    def _raw_severity(sample: Sample, settings: AlertSettings) -> tuple:
        """返回 (类型, 乘倍率前的严重度)"""
        alert_type = NORMAL
        severity = 0.0

        ear_threshold = settings.drowsiness_threshold
        if sample.eye_aspect_ratio < ear_threshold:
            alert_type = DROWSINESS
            severity = (ear_threshold - sample.eye_aspect_ratio) / ear_threshold

        yaw_threshold = settings.distraction_threshold
        head_turn = abs(sample.head_pose.yaw)
        if head_turn > yaw_threshold:
            alert_type = DISTRACTION
            severity = (head_turn - yaw_threshold) / DISTRACTION_SEVERITY_SPAN

        return alert_type, severity
