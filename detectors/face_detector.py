"""人脸关键点检测模块，基于 MediaPipe FaceMesh"""

from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import FaceLandmarks

# 关键点索引常量
LEFT_EYE_INDICES = [33, 160, 158, 133, 153, 144]
RIGHT_EYE_INDICES = [362, 385, 387, 263, 373, 380]

# 顺序与 head_pose_analyzer 的 3D 模型点一致
HEAD_POSE_INDICES = [
    1,    # 鼻尖
    152,  # 下巴
    33,   # 左眼角
    263,  # 右眼角
    61,   # 左嘴角
    291,  # 右嘴角
]


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测人脸关键点"""

    def __init__(self, min_detection_confidence: float = 0.5, face_mesh=None):
        """初始化 FaceMesh；face_mesh 可注入替身对象"""
        if face_mesh is None:
            face_mesh = mp.solutions.face_mesh.FaceMesh(
                max_num_faces=1,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=0.5,
                refine_landmarks=False,
            )
        self._face_mesh = face_mesh

    def detect(self, frame: np.ndarray) -> Optional[FaceLandmarks]:
        """
        检测单帧图像中的人脸关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            FaceLandmarks；未检测到人脸时返回 None
        """
        h, w = frame.shape[:2]

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False
        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return None

        # 归一化坐标 -> 像素坐标
        points = [(lm.x * w, lm.y * h) for lm in results.multi_face_landmarks[0].landmark]

        return FaceLandmarks(
            left_eye=[points[i] for i in LEFT_EYE_INDICES],
            right_eye=[points[i] for i in RIGHT_EYE_INDICES],
            head_pose_points=[points[i] for i in HEAD_POSE_INDICES],
            all_landmarks=points,
        )

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
