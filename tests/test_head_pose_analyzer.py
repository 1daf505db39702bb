"""HeadPoseAnalyzer 单元测试"""

from unittest.mock import patch

import cv2
import numpy as np
import pytest

from detectors.head_pose_analyzer import (
    _MODEL_POINTS,
    HeadPoseAnalyzer,
    camera_matrix_for,
    rotation_matrix_to_euler,
)
from models.data_models import HeadPose


def _make_front_facing_points(w=640, h=480):
    """生成大致正面朝向的 2D 关键点"""
    return [
        (w / 2, h / 3),          # 鼻尖
        (w / 2, h * 2 / 3),      # 下巴
        (w / 3, h / 4),          # 左眼角
        (w * 2 / 3, h / 4),      # 右眼角
        (w * 0.38, h * 0.58),    # 左嘴角
        (w * 0.62, h * 0.58),    # 右嘴角
    ]


class TestEstimatePose:
    """测试 estimate_pose() 方法"""

    def test_returns_head_pose(self):
        result = HeadPoseAnalyzer().estimate_pose(_make_front_facing_points(), (480, 640, 3))
        assert isinstance(result, HeadPose)

    def test_result_has_finite_angles(self):
        result = HeadPoseAnalyzer().estimate_pose(_make_front_facing_points(), (480, 640, 3))
        assert np.isfinite(result.pitch)
        assert np.isfinite(result.yaw)
        assert np.isfinite(result.roll)

    def test_frame_shape_without_channels(self):
        """frame_shape 为 (h, w) 时也应正常工作"""
        result = HeadPoseAnalyzer().estimate_pose(_make_front_facing_points(), (480, 640))
        assert isinstance(result, HeadPose)

    def test_solvepnp_failure_returns_none(self):
        with patch("detectors.head_pose_analyzer.cv2.solvePnP",
                   return_value=(False, None, None)):
            result = HeadPoseAnalyzer().estimate_pose(_make_front_facing_points(), (480, 640, 3))
        assert result is None


class TestHelpers:
    def test_camera_matrix_uses_long_side(self):
        matrix = camera_matrix_for((480, 640, 3))
        assert matrix[0, 0] == 640
        assert matrix[1, 1] == 640
        assert matrix[0, 2] == 320
        assert matrix[1, 2] == 240

    def test_identity_rotation_is_zero(self):
        pitch, yaw, roll = rotation_matrix_to_euler(np.eye(3))
        assert (pitch, yaw, roll) == pytest.approx((0.0, 0.0, 0.0))


    @pytest.mark.parametrize("axis, expected", [
        ("y", (0.0, 30.0, 0.0)),
        ("x", (30.0, 0.0, 0.0)),
        ("z", (0.0, 0.0, 30.0)),
    ])
    def test_single_axis_rotation(self, axis, expected):
        """绕竖直轴为 yaw，绕水平轴为 pitch，绕视线轴为 roll"""
        assert rotation_matrix_to_euler(_rotation(axis, 30.0)) == pytest.approx(expected, abs=1e-9)


def _rotation(axis, degrees):
    a = np.radians(degrees)
    c, s = np.cos(a), np.sin(a)
    if axis == "x":
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    if axis == "y":
        return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def _project_head(head_rotation, frame_shape=(480, 640, 3)):
    """把标准模型点按给定头部转动投影到图像上（模型先翻转到相机坐标系）"""
    rotation = head_rotation @ _rotation("x", 180.0)
    rvec, _ = cv2.Rodrigues(rotation)
    tvec = np.array([[0.0], [0.0], [1500.0]])
    points, _ = cv2.projectPoints(
        _MODEL_POINTS, rvec, tvec, camera_matrix_for(frame_shape), np.zeros((4, 1)),
    )
    return [tuple(p) for p in points.reshape(-1, 2)]


class TestProjectedPose:
    """由已知头部转动投影出的关键点反解姿态"""

    def test_frontal_face_is_zero(self):
        pose = HeadPoseAnalyzer().estimate_pose(_project_head(np.eye(3)), (480, 640, 3))
        assert pose.yaw == pytest.approx(0.0, abs=1.0)
        assert pose.pitch == pytest.approx(0.0, abs=1.0)
        assert pose.roll == pytest.approx(0.0, abs=1.0)

    @pytest.mark.parametrize("angle", [-40.0, 40.0])
    def test_head_turn_is_yaw(self, angle):
        """左右转头应体现在 yaw 上，超过分心阈值"""
        pose = HeadPoseAnalyzer().estimate_pose(_project_head(_rotation("y", angle)), (480, 640, 3))
        assert abs(pose.yaw) == pytest.approx(40.0, abs=1.0)
        assert abs(pose.yaw) > 30.0
        assert pose.pitch == pytest.approx(0.0, abs=1.0)
        assert pose.roll == pytest.approx(0.0, abs=1.0)

    def test_head_tilt_is_roll(self):
        """歪头不应被当作转头"""
        pose = HeadPoseAnalyzer().estimate_pose(_project_head(_rotation("z", 40.0)), (480, 640, 3))
        assert abs(pose.roll) == pytest.approx(40.0, abs=1.0)
        assert pose.yaw == pytest.approx(0.0, abs=1.0)

    def test_nod_is_pitch(self):
        pose = HeadPoseAnalyzer().estimate_pose(_project_head(_rotation("x", 20.0)), (480, 640, 3))
        assert abs(pose.pitch) == pytest.approx(20.0, abs=1.0)
        assert pose.yaw == pytest.approx(0.0, abs=1.0)
