"""头部姿态估计模块，使用 solvePnP 计算头部欧拉角"""

import math
from typing import List, Optional, Tuple

import cv2
import numpy as np

from models.data_models import HeadPose

# 标准 3D 人脸模型点（y 轴向上），顺序同 face_detector.HEAD_POSE_INDICES
_MODEL_POINTS = np.array([
    (0.0, 0.0, 0.0),          # 鼻尖
    (0.0, -330.0, -65.0),     # 下巴
    (-225.0, 170.0, -135.0),  # 左眼角
    (225.0, 170.0, -135.0),   # 右眼角
    (-150.0, -150.0, -125.0), # 左嘴角
    (150.0, -150.0, -125.0),  # 右嘴角
], dtype=np.float64)

# 模型坐标系 (y 上, z 朝向相机) 到相机坐标系 (y 下, z 朝前) 的基准翻转，即绕 x 轴 180°
_MODEL_TO_CAMERA = np.diag([1.0, -1.0, -1.0])


def camera_matrix_for(frame_shape: Tuple) -> np.ndarray:
    """以画面长边作为焦距的近似相机内参"""
    h, w = frame_shape[0], frame_shape[1]
    focal_length = max(h, w)
    return np.array([
        [focal_length, 0, w / 2.0],
        [0, focal_length, h / 2.0],
        [0, 0, 1],
    ], dtype=np.float64)


def rotation_matrix_to_euler(rotation_matrix: np.ndarray) -> Tuple[float, float, float]:
    """
    按 R = Ry(yaw) · Rx(pitch) · Rz(roll) 分解相机坐标系下的旋转矩阵。

    yaw 绕竖直轴（左右转头），pitch 绕水平轴（抬头/低头），roll 绕视线轴（歪头）。

    Returns:
        (pitch, yaw, roll)，单位为度
    """
    r = rotation_matrix
    cos_pitch = math.sqrt(r[1, 0] ** 2 + r[1, 1] ** 2)

    pitch = math.atan2(-r[1, 2], cos_pitch)
    if cos_pitch > 1e-6:
        yaw = math.atan2(r[0, 2], r[2, 2])
        roll = math.atan2(r[1, 0], r[1, 1])
    else:
        # 万向锁
        yaw = math.atan2(-r[2, 0], r[0, 0])
        roll = 0.0

    return math.degrees(pitch), math.degrees(yaw), math.degrees(roll)


class HeadPoseAnalyzer:
    """由 6 个 2D 关键点估计头部姿态"""

    def estimate_pose(self, face_points_2d: List[Tuple], frame_shape: Tuple) -> Optional[HeadPose]:
        """
        Args:
            face_points_2d: 6 个 2D 关键点坐标 [(x, y), ...]
            frame_shape: 图像尺寸 (h, w, c) 或 (h, w)

        Returns:
            HeadPose，正脸时三个角度均接近 0；solvePnP 求解失败时返回 None
        """
        image_points = np.array(face_points_2d, dtype=np.float64)
        dist_coeffs = np.zeros((4, 1), dtype=np.float64)

        success, rotation_vector, _ = cv2.solvePnP(
            _MODEL_POINTS, image_points, camera_matrix_for(frame_shape), dist_coeffs,
            flags=cv2.SOLVEPNP_ITERATIVE,
        )
        if not success:
            return None

        rotation_matrix, _ = cv2.Rodrigues(rotation_vector)
        # 去掉基准翻转，只保留头部相对正脸的转动
        head_rotation = rotation_matrix @ _MODEL_TO_CAMERA
        pitch, yaw, roll = rotation_matrix_to_euler(head_rotation)
        return HeadPose(yaw=yaw, pitch=pitch, roll=roll)
