"""告警配置编辑：范围限制、JSON 配置加载与热更新"""

import json
import logging
import threading
from dataclasses import replace
from typing import Optional

from models.data_models import SENSITIVITY_LEVELS, AlertSettings

logger = logging.getLogger(__name__)

# 滑块范围 (最小值, 最大值, 步长)
SETTING_RANGES = {
    "drowsiness_threshold": (0.15, 0.35, 0.01),
    "distraction_threshold": (15.0, 45.0, 1.0),
}

DEFAULT_SETTINGS = AlertSettings()


def _clamp_to_range(key: str, value: float) -> float:
    low, high, step = SETTING_RANGES[key]
    value = min(max(float(value), low), high)
    # 对齐到滑块步长
    steps = round((value - low) / step)
    return round(low + steps * step, 6)


def clamp_settings(update: dict, base: AlertSettings = DEFAULT_SETTINGS) -> AlertSettings:
    """
    将更新字典合并到 base 上，返回新的配置。

    数值超出范围时截断；无效的灵敏度或语音开关保留原值；未知字段忽略。

    Args:
        update: 待更新字段，值为 None 时保留原值
        base: 当前配置

    Returns:
        新的 AlertSettings
    """
    changes = {}

    for key in SETTING_RANGES:
        value = update.get(key)
        if value is None:
            continue
        try:
            changes[key] = _clamp_to_range(key, value)
        except (TypeError, ValueError):
            logger.warning("配置项 %s 的值无效: %r，保留原值", key, value)

    voice = update.get("voice_alerts_enabled")
    if voice is not None:
        if isinstance(voice, bool):
            changes["voice_alerts_enabled"] = voice
        else:
            logger.warning("voice_alerts_enabled 必须为布尔值: %r，保留原值", voice)

    sensitivity = update.get("sensitivity")
    if sensitivity is not None:
        if sensitivity in SENSITIVITY_LEVELS:
            changes["sensitivity"] = sensitivity
        else:
            logger.warning("未知灵敏度: %r，保留原值", sensitivity)

    return replace(base, **changes)


def load_settings(config_path: Optional[str] = None) -> AlertSettings:
    """从 JSON 配置文件加载告警配置，缺失字段使用默认值。"""
    if config_path is None:
        return DEFAULT_SETTINGS

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认配置", config_path)
        return DEFAULT_SETTINGS
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认配置", config_path)
        return DEFAULT_SETTINGS

    if not isinstance(data, dict):
        logger.warning("配置文件内容应为 JSON 对象 %s，使用默认配置", config_path)
        return DEFAULT_SETTINGS

    return clamp_settings(data, DEFAULT_SETTINGS)


class SettingsStore:
    """线程安全的配置持有者；分类器和分发器每个周期读取一次。"""

    def __init__(self, settings: AlertSettings = DEFAULT_SETTINGS):
        self._lock = threading.Lock()
        self._settings = settings

    def get(self) -> AlertSettings:
        with self._lock:
            return self._settings

    def update(self, data: dict) -> AlertSettings:
        with self._lock:
            self._settings = clamp_settings(data, self._settings)
            logger.info("告警配置已更新: %s", self._settings)
            return self._settings
