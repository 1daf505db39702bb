"""DisplayRenderer 单元测试"""

import numpy as np
import pytest

from display.renderer import (
    DisplayRenderer,
    format_duration,
    format_value,
    severity_level,
    state_label,
)
from models.data_models import AlertState, FaceLandmarks, HeadPose


# --------------- helpers ---------------

def _make_frame(w=640, h=480):
    """创建黑色测试帧。"""
    return np.zeros((h, w, 3), dtype=np.uint8)


def _state(alert_type="normal", severity=0.0, ear=0.3, yaw=0.0):
    return AlertState(
        type=alert_type,
        severity=severity,
        timestamp=0.0,
        eye_aspect_ratio=ear,
        head_pose=HeadPose(yaw=yaw, pitch=0.0, roll=0.0),
    )


def _simple_landmarks():
    """生成简单的 FaceLandmarks 用于测试。"""
    pts = [(float(100 + i % 200), float(100 + i // 3)) for i in range(468)]
    return FaceLandmarks(
        left_eye=pts[:6],
        right_eye=pts[6:12],
        head_pose_points=pts[:6],
        all_landmarks=pts,
    )


@pytest.fixture
def renderer():
    return DisplayRenderer()


# --------------- 格式化函数 ---------------

class TestFormatValue:
    def test_two_decimal_places(self):
        assert format_value(0.123456) == "0.12"

    def test_zero(self):
        assert format_value(0.0) == "0.00"


class TestFormatDuration:
    def test_seconds_only(self):
        assert format_duration(3) == "3s"

    def test_minutes(self):
        assert format_duration(123) == "2m 3s"

    def test_hours(self):
        assert format_duration(3723) == "1h 2m 3s"

    def test_hour_with_zero_minutes(self):
        assert format_duration(3600) == "1h 0m 0s"


class TestSeverityLevel:
    @pytest.mark.parametrize("severity, level", [
        (0.0, "low"), (0.29, "low"), (0.3, "medium"), (0.59, "medium"), (0.6, "high"), (1.0, "high"),
    ])
    def test_buckets(self, severity, level):
        assert severity_level(severity) == level


class TestStateLabel:
    def test_labels(self):
        assert state_label("normal") == "Alert"
        assert state_label("drowsiness") == "Drowsy"
        assert state_label("distraction") == "Distracted"


# --------------- render ---------------

class TestRender:
    def test_output_same_shape(self, renderer):
        frame = _make_frame()
        out = renderer.render(frame, _state())
        assert out.shape == frame.shape
        assert out.dtype == np.uint8

    def test_input_not_modified(self, renderer):
        frame = _make_frame()
        renderer.render(frame, _state("drowsiness", 0.8, ear=0.1), overlay={
            "message": "Wake up!", "type": "drowsiness", "title": "DROWSINESS ALERT",
        })
        assert not frame.any()

    def test_none_state_returns_copy(self, renderer):
        frame = _make_frame()
        out = renderer.render(frame, None)
        assert out is not frame
        assert np.array_equal(out, frame)

    def test_draws_something(self, renderer):
        out = renderer.render(_make_frame(), _state())
        assert out.any()

    def test_overlay_changes_frame(self, renderer):
        state = _state("distraction", 0.7, yaw=45.0)
        without = renderer.render(_make_frame(), state)
        with_overlay = renderer.render(_make_frame(), state, overlay={
            "message": "Eyes on the road!", "type": "distraction", "title": "DISTRACTION ALERT",
        })
        assert not np.array_equal(without, with_overlay)

    def test_with_landmarks(self, renderer):
        out = renderer.render(_make_frame(), _state(), landmarks=_simple_landmarks())
        assert out.shape == (480, 640, 3)
        assert out.any()

    @pytest.mark.parametrize("severity", [0.0, 0.45, 1.0])
    def test_all_levels_render(self, renderer, severity):
        out = renderer.render(_make_frame(), _state("drowsiness", severity, ear=0.1))
        assert out.shape == (480, 640, 3)
