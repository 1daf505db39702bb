"""核心数据模型定义"""

import math
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

# 告警类型
NORMAL = "normal"
DROWSINESS = "drowsiness"
DISTRACTION = "distraction"
ALERT_TYPES = (NORMAL, DROWSINESS, DISTRACTION)

# 灵敏度等级
SENSITIVITY_LEVELS = ("low", "medium", "high")


class InvalidSampleError(ValueError):
    """测量样本格式错误（由测量源产生的缺陷，不在本地修复）"""


def _require_number(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSampleError(f"{name} 必须是数值，实际为 {value!r}")
    if not math.isfinite(value):
        raise InvalidSampleError(f"{name} 必须是有限数值，实际为 {value!r}")
    return float(value)


@dataclass
class FaceLandmarks:
    """人脸关键点检测结果（像素坐标）"""
    left_eye: List[Tuple[float, float]]
    right_eye: List[Tuple[float, float]]
    head_pose_points: List[Tuple[float, float]]
    all_landmarks: List[Tuple[float, float]]


@dataclass(frozen=True)
class HeadPose:
    """头部姿态（单位：度）"""
    yaw: float
    pitch: float
    roll: float

    def __post_init__(self):
        for name in ("yaw", "pitch", "roll"):
            object.__setattr__(self, name, _require_number(f"headPose.{name}", getattr(self, name)))


@dataclass(frozen=True)
class Sample:
    """单帧测量结果，timestamp 为单调时钟毫秒数"""
    eye_aspect_ratio: float
    head_pose: HeadPose
    timestamp: float

    def __post_init__(self):
        object.__setattr__(
            self, "eye_aspect_ratio", _require_number("eyeAspectRatio", self.eye_aspect_ratio)
        )
        object.__setattr__(self, "timestamp", _require_number("timestamp", self.timestamp))
        if not isinstance(self.head_pose, HeadPose):
            raise InvalidSampleError(f"headPose 缺失或类型错误: {self.head_pose!r}")

    @classmethod
    def from_dict(cls, data: dict) -> "Sample":
        """
        从 JSON 字典构建样本，字段缺失时直接报错。

        Args:
            data: {"eyeAspectRatio": float, "headPose": {"yaw", "pitch", "roll"}, "timestamp": float}
        """
        try:
            pose = data["headPose"]
            head_pose = HeadPose(yaw=pose["yaw"], pitch=pose["pitch"], roll=pose["roll"])
            return cls(
                eye_aspect_ratio=data["eyeAspectRatio"],
                head_pose=head_pose,
                timestamp=data["timestamp"],
            )
        except (KeyError, TypeError) as e:
            raise InvalidSampleError(f"样本字段缺失: {e}") from e


@dataclass(frozen=True)
class AlertSettings:
    """告警配置，热更新时整体替换"""
    drowsiness_threshold: float = 0.25
    distraction_threshold: float = 30.0
    voice_alerts_enabled: bool = True
    sensitivity: str = "medium"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AlertState:
    """分类结果，每个周期重新创建"""
    type: str
    severity: float
    timestamp: float
    eye_aspect_ratio: float
    head_pose: HeadPose

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "severity": round(self.severity, 4),
            "timestamp": self.timestamp,
            "ear": round(self.eye_aspect_ratio, 4),
            "yaw": round(self.head_pose.yaw, 2),
            "pitch": round(self.head_pose.pitch, 2),
            "roll": round(self.head_pose.roll, 2),
        }


@dataclass
class SessionStats:
    """会话统计"""
    session_duration_seconds: int = 0
    drowsiness_events: int = 0
    distraction_events: int = 0
    last_alert_message: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class VoiceParams:
    """语音播报参数（固定配置）"""
    rate: float = 0.9
    pitch: float = 1.2
    volume: float = 0.8
    preferred_voices: Tuple[str, ...] = field(default=("Microsoft", "Google"))
