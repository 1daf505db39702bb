"""FaceDetector 单元测试"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from detectors.face_detector import (
    HEAD_POSE_INDICES,
    LEFT_EYE_INDICES,
    RIGHT_EYE_INDICES,
    FaceDetector,
)
from models.data_models import FaceLandmarks


def _make_fake_landmark(x: float, y: float):
    """创建一个模拟的 MediaPipe landmark 对象"""
    lm = MagicMock()
    lm.x = x
    lm.y = y
    return lm


def _build_fake_results(num_landmarks: int = 468):
    """构建模拟的 MediaPipe FaceMesh 处理结果（归一化坐标）"""
    landmarks = [
        _make_fake_landmark((i % 100) / 100.0, (i // 100) / 100.0)
        for i in range(num_landmarks)
    ]
    face = MagicMock()
    face.landmark = landmarks

    results = MagicMock()
    results.multi_face_landmarks = [face]
    return results, landmarks


@pytest.fixture
def mesh():
    mesh = MagicMock()
    mesh.process.return_value = _build_fake_results()[0]
    return mesh


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


class TestFaceDetectorDetect:
    """测试 detect() 方法"""

    def test_returns_none_when_no_face(self, mesh, frame):
        """未检测到人脸时返回 None"""
        no_face_results = MagicMock()
        no_face_results.multi_face_landmarks = None
        mesh.process.return_value = no_face_results

        assert FaceDetector(face_mesh=mesh).detect(frame) is None

    def test_returns_face_landmarks_when_face_detected(self, mesh, frame):
        result = FaceDetector(face_mesh=mesh).detect(frame)
        assert isinstance(result, FaceLandmarks)

    def test_point_counts(self, mesh, frame):
        """双眼各 6 点，姿态 6 点，全部 468 点"""
        result = FaceDetector(face_mesh=mesh).detect(frame)
        assert len(result.left_eye) == 6
        assert len(result.right_eye) == 6
        assert len(result.head_pose_points) == 6
        assert len(result.all_landmarks) == 468

    def test_landmark_coordinates_are_pixel_values(self, mesh):
        """关键点坐标应为像素坐标（x*w, y*h）"""
        w, h = 640, 480
        results, raw_landmarks = _build_fake_results()
        mesh.process.return_value = results

        result = FaceDetector(face_mesh=mesh).detect(np.zeros((h, w, 3), dtype=np.uint8))

        idx = LEFT_EYE_INDICES[0]
        assert result.left_eye[0] == pytest.approx((raw_landmarks[idx].x * w, raw_landmarks[idx].y * h))
        idx = HEAD_POSE_INDICES[1]
        assert result.head_pose_points[1] == pytest.approx((raw_landmarks[idx].x * w, raw_landmarks[idx].y * h))

    def test_process_receives_rgb_frame(self, mesh, frame):
        FaceDetector(face_mesh=mesh).detect(frame)
        passed = mesh.process.call_args.args[0]
        assert passed.shape == frame.shape
        assert not passed.flags.writeable


class TestFaceDetectorClose:
    def test_close_releases_resources(self, mesh):
        """close() 应调用 FaceMesh.close()"""
        detector = FaceDetector(face_mesh=mesh)
        detector.close()
        mesh.close.assert_called_once()


class TestLandmarkIndices:
    """验证关键点索引常量的正确性"""

    def test_left_eye_indices(self):
        assert LEFT_EYE_INDICES == [33, 160, 158, 133, 153, 144]

    def test_right_eye_indices(self):
        assert RIGHT_EYE_INDICES == [362, 385, 387, 263, 373, 380]

    def test_head_pose_indices(self):
        assert HEAD_POSE_INDICES == [1, 152, 33, 263, 61, 291]
