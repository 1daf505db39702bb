"""眼睛纵横比（EAR）计算"""

import math
from typing import List, Tuple

Point = Tuple[float, float]


def calculate_ear(eye_points: List[Point]) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

    Args:
        eye_points: 6 个眼睛轮廓关键点 [(x,y), ...]

    Returns:
        EAR 值，眼宽为零时返回 0.0
    """
    p1, p2, p3, p4, p5, p6 = eye_points

    horizontal = math.dist(p1, p4)
    if horizontal == 0.0:
        return 0.0
    return (math.dist(p2, p6) + math.dist(p3, p5)) / (2.0 * horizontal)


def average_ear(left_eye: List[Point], right_eye: List[Point]) -> float:
    """双眼 EAR 均值"""
    return (calculate_ear(left_eye) + calculate_ear(right_eye)) / 2.0
