"""界面渲染模块 - 在视频帧上绘制人脸框、实时指标、告警等级和告警弹窗。"""

from typing import Optional

import cv2
import numpy as np

from models.data_models import DISTRACTION, DROWSINESS, NORMAL, AlertState, FaceLandmarks


def format_value(v: float) -> str:
    """格式化浮点数为两位小数字符串。"""
    return f"{v:.2f}"


def format_duration(seconds: int) -> str:
    """会话时长：1h 2m 3s / 2m 3s / 3s"""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def severity_level(severity: float) -> str:
    """告警等级分档，对应仪表盘的绿/黄/红"""
    if severity < 0.3:
        return "low"
    if severity < 0.6:
        return "medium"
    return "high"


_STATE_LABELS = {
    NORMAL: "Alert",
    DROWSINESS: "Drowsy",
    DISTRACTION: "Distracted",
}


def state_label(alert_type: str) -> str:
    return _STATE_LABELS.get(alert_type, "Alert")


class DisplayRenderer:
    """在视频帧上绘制分类结果和告警弹窗。"""

    # 按告警类型着色 (BGR)
    _TYPE_COLORS = {
        NORMAL: (94, 197, 34),
        DROWSINESS: (68, 68, 239),
        DISTRACTION: (11, 158, 245),
    }

    # 告警等级颜色 (BGR)
    _LEVEL_COLORS = {
        "low": (128, 222, 74),
        "medium": (21, 204, 250),
        "high": (113, 113, 248),
    }

    _STATUS_TEXT = {
        NORMAL: "正常",
        DROWSINESS: "疲劳",
        DISTRACTION: "分心",
    }

    def __init__(self, font_path: str = "SimHei"):
        """初始化中文字体，字体不存在时回退到 OpenCV 默认英文字体。"""
        self._pil_font = None
        self._pil_font_large = None
        self._use_pil = False

        try:
            from PIL import ImageFont

            font = self._try_load_font(font_path)
            if font is not None:
                self._pil_font = font
                self._pil_font_large = ImageFont.truetype(font.path, 28)
                self._use_pil = True
        except Exception:
            self._use_pil = False

    @staticmethod
    def _try_load_font(font_path: str):
        """尝试加载字体文件，返回 PIL ImageFont 或 None。"""
        from PIL import ImageFont

        try:
            return ImageFont.truetype(font_path, 18)
        except (OSError, IOError):
            pass

        common_paths = [
            "/usr/share/fonts/truetype/simhei/SimHei.ttf",
            "/usr/share/fonts/SimHei.ttf",
            "C:\\Windows\\Fonts\\simhei.ttf",
            "/System/Library/Fonts/STHeiti Medium.ttc",
        ]
        for path in common_paths:
            try:
                return ImageFont.truetype(path, 18)
            except (OSError, IOError):
                continue

        return None

    def render(
        self,
        frame: np.ndarray,
        state: Optional[AlertState],
        overlay: Optional[dict] = None,
        landmarks: Optional[FaceLandmarks] = None,
    ) -> np.ndarray:
        """渲染到帧的副本并返回；state 为 None 时只绘制原始画面。"""
        output = frame.copy()
        if state is None:
            return output

        color = self._TYPE_COLORS.get(state.type, self._TYPE_COLORS[NORMAL])
        self._draw_face_box(output, color, landmarks)
        self._draw_metrics(output, state, color)
        self._draw_level(output, state.severity)

        if overlay is not None:
            self._draw_overlay(output, overlay)

        return output

    @staticmethod
    def _draw_face_box(frame: np.ndarray, color: tuple, landmarks: Optional[FaceLandmarks]) -> None:
        """有关键点时按关键点包围盒绘制，否则画在画面中部。"""
        h, w = frame.shape[:2]
        if landmarks is not None and landmarks.all_landmarks:
            xs = [p[0] for p in landmarks.all_landmarks]
            ys = [p[1] for p in landmarks.all_landmarks]
            x1, y1, x2, y2 = int(min(xs)), int(min(ys)), int(max(xs)), int(max(ys))
            eyes = [
                np.mean(landmarks.left_eye, axis=0),
                np.mean(landmarks.right_eye, axis=0),
            ]
        else:
            x1, y1 = int(w * 0.3), int(h * 0.2)
            x2, y2 = int(w * 0.7), int(h * 0.7)
            eye_y = y1 + (y2 - y1) * 0.3
            eyes = [
                (x1 + (x2 - x1) * 0.25, eye_y),
                (x1 + (x2 - x1) * 0.75, eye_y),
            ]

        cv2.rectangle(frame, (x1, y1), (x2, y2), color, 3)
        for ex, ey in eyes:
            cv2.circle(frame, (int(ex), int(ey)), 8, color, -1)

    def _draw_metrics(self, frame: np.ndarray, state: AlertState, color: tuple) -> None:
        """左下角绘制 EAR、偏航角和状态。"""
        h, w = frame.shape[:2]
        ear_text = f"EAR: {format_value(state.eye_aspect_ratio)}"

        if self._use_pil:
            lines = [
                ear_text,
                f"Head: {state.head_pose.yaw:.1f}°",
                f"状态: {self._STATUS_TEXT.get(state.type, '正常')}",
            ]
            self._draw_pil_lines(frame, lines, x=10, y_start=h - 90, color=color)
        else:
            lines = [
                ear_text,
                f"Head: {state.head_pose.yaw:.1f} deg",
                f"State: {state_label(state.type)}",
            ]
            y = h - 70
            for text in lines:
                cv2.putText(frame, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
                y += 25

    def _draw_level(self, frame: np.ndarray, severity: float) -> None:
        """右上角绘制告警等级条和百分比。"""
        h, w = frame.shape[:2]
        level_color = self._LEVEL_COLORS[severity_level(severity)]
        x1, y1, bar_w, bar_h = w - 170, 15, 150, 14
        cv2.rectangle(frame, (x1, y1), (x1 + bar_w, y1 + bar_h), (80, 80, 80), 1)
        cv2.rectangle(frame, (x1, y1), (x1 + int(bar_w * severity), y1 + bar_h), level_color, -1)
        cv2.putText(
            frame, f"{round(severity * 100)}%", (x1, y1 + bar_h + 22),
            cv2.FONT_HERSHEY_SIMPLEX, 0.6, level_color, 2,
        )

    def _draw_overlay(self, frame: np.ndarray, overlay: dict) -> None:
        """半透明红色蒙层 + 居中显示告警标题和文案。"""
        h, w = frame.shape[:2]
        tint = np.zeros_like(frame)
        tint[:] = (0, 0, 255)
        cv2.addWeighted(tint, 0.2, frame, 0.8, 0, dst=frame)

        color = self._TYPE_COLORS.get(overlay.get("type"), self._TYPE_COLORS[DROWSINESS])
        title = overlay.get("title", "")
        message = overlay.get("message", "")

        if self._use_pil:
            from PIL import Image, ImageDraw

            img_pil = Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
            draw = ImageDraw.Draw(img_pil)
            fill = (color[2], color[1], color[0])
            y = h // 2 - 40
            for text, font in ((title, self._pil_font_large), (message, self._pil_font)):
                bbox = draw.textbbox((0, 0), text, font=font)
                draw.text(((w - (bbox[2] - bbox[0])) // 2, y), text, font=font, fill=fill)
                y += (bbox[3] - bbox[1]) + 20
            frame[:] = cv2.cvtColor(np.array(img_pil), cv2.COLOR_RGB2BGR)
        else:
            y = h // 2 - 20
            for text, scale, thickness in ((title, 1.0, 3), (message, 0.6, 2)):
                (text_w, text_h), _ = cv2.getTextSize(
                    text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness
                )
                cv2.putText(
                    frame, text, ((w - text_w) // 2, y),
                    cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness,
                )
                y += text_h + 20

    def _draw_pil_lines(
        self,
        frame: np.ndarray,
        lines: list,
        x: int,
        y_start: int,
        color: tuple,
    ) -> None:
        """使用 PIL 在帧上绘制多行文字（BGR color -> RGB fill）。"""
        from PIL import Image, ImageDraw

        img_pil = Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
        draw = ImageDraw.Draw(img_pil)
        fill = (color[2], color[1], color[0])
        y = y_start
        for line in lines:
            draw.text((x, y), line, font=self._pil_font, fill=fill)
            y += 26
        frame[:] = cv2.cvtColor(np.array(img_pil), cv2.COLOR_RGB2BGR)
