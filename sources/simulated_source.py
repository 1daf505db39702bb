"""模拟测量源：无摄像头时生成近似真实的 EAR 和头部姿态波动"""

import math
import random
from typing import Optional

from models.data_models import HeadPose, Sample
from session.scheduler import MonotonicClock

BASE_EAR = 0.3
EAR_WAVE_AMPLITUDE = 0.05
EAR_WAVE_PERIOD_MS = 3000.0
EAR_NOISE = 0.02

# 各轴角度波动范围（度），以 0 为中心
YAW_SPAN = 20.0
PITCH_SPAN = 15.0
ROLL_SPAN = 10.0


class SimulatedSource:
    """EAR 正弦缓慢波动并叠加噪声，头部姿态均匀随机。"""

    def __init__(self, rng: Optional[random.Random] = None, clock=None):
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock if clock is not None else MonotonicClock()

    def _jitter(self, span: float) -> float:
        return (self._rng.random() - 0.5) * span

    def read(self) -> Sample:
        now = self._clock.now()
        ear = (
            BASE_EAR
            + math.sin(now / EAR_WAVE_PERIOD_MS) * EAR_WAVE_AMPLITUDE
            + self._jitter(EAR_NOISE)
        )
        pose = HeadPose(
            yaw=self._jitter(YAW_SPAN),
            pitch=self._jitter(PITCH_SPAN),
            roll=self._jitter(ROLL_SPAN),
        )
        return Sample(eye_aspect_ratio=ear, head_pose=pose, timestamp=now)

    @property
    def last_frame(self):
        return None

    @property
    def last_landmarks(self):
        return None

    def close(self):
        pass
