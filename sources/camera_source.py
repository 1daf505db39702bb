"""摄像头测量源：OpenCV 采集 + MediaPipe 关键点 → EAR 与头部姿态"""

import logging
import threading
from typing import Optional

import cv2

from detectors.eye_analyzer import average_ear
from detectors.face_detector import FaceDetector
from detectors.head_pose_analyzer import HeadPoseAnalyzer
from models.data_models import Sample
from session.scheduler import MonotonicClock

logger = logging.getLogger(__name__)


class CameraSource:
    """每次 read() 采集一帧；无画面或无人脸时返回 None。

    最近一帧及其关键点保留给渲染使用。
    """

    def __init__(self, camera_index: int = 0, capture=None, face_detector=None,
                 pose_analyzer=None, clock=None):
        self.camera_index = camera_index
        self._cap = capture
        self._face_detector = face_detector
        self._pose_analyzer = pose_analyzer or HeadPoseAnalyzer()
        self._clock = clock if clock is not None else MonotonicClock()
        self._frame_lock = threading.Lock()
        self._last_frame = None
        self._last_landmarks = None

    def open(self) -> bool:
        """打开摄像头，失败返回 False"""
        if self._cap is None:
            self._cap = cv2.VideoCapture(self.camera_index)
        if not self._cap.isOpened():
            logger.error("无法打开摄像头 (index=%d)", self.camera_index)
            return False
        if self._face_detector is None:
            self._face_detector = FaceDetector()
        return True

    def read(self) -> Optional[Sample]:
        if self._cap is None or not self._cap.isOpened():
            return None
        ret, frame = self._cap.read()
        if not ret:
            return None

        landmarks = self._face_detector.detect(frame)
        with self._frame_lock:
            self._last_frame = frame
            self._last_landmarks = landmarks
        if landmarks is None:
            return None

        pose = self._pose_analyzer.estimate_pose(landmarks.head_pose_points, frame.shape)
        if pose is None:
            return None

        return Sample(
            eye_aspect_ratio=average_ear(landmarks.left_eye, landmarks.right_eye),
            head_pose=pose,
            timestamp=self._clock.now(),
        )

    @property
    def last_frame(self):
        with self._frame_lock:
            return self._last_frame

    @property
    def last_landmarks(self):
        with self._frame_lock:
            return self._last_landmarks

    def close(self):
        """释放摄像头和 FaceMesh 资源"""
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        if self._face_detector is not None:
            self._face_detector.close()
            self._face_detector = None
