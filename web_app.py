"""Flask Web 前端 - 驾驶员警觉度监测系统"""

import datetime
import logging
import threading
import time

import cv2
import numpy as np
from flask import Flask, Response, jsonify, render_template, request

from alerts.sinks import BrowserSpeechSink, OverlayVisualSink
from display.renderer import DisplayRenderer, format_duration, severity_level, state_label
from models.data_models import NORMAL
from session.monitor import AlertMonitor
from session.runner import MonitorRunner
from settings.settings_editor import SETTING_RANGES, SettingsStore, load_settings
from sources.simulated_source import SimulatedSource

app = Flask(__name__, template_folder="web/templates")

logger = logging.getLogger(__name__)

# 无摄像头画面时的画布尺寸
_CANVAS_SHAPE = (480, 640, 3)


class WebAlertSystem:
    """Web 版监测系统：后台线程驱动监测器，提供实时数据、日志和 MJPEG 画面。"""

    MAX_LOG_ENTRIES = 200

    def __init__(self, source=None, settings_store=None):
        self.settings_store = settings_store or SettingsStore()
        self.visual_sink = OverlayVisualSink()
        self.speech_sink = BrowserSpeechSink()
        self.source = source or SimulatedSource()
        self.monitor = AlertMonitor(
            self.settings_store, self.visual_sink, self.speech_sink, source=self.source,
        )
        self.monitor.set_on_cycle(self._on_cycle)
        self.runner = MonitorRunner(self.monitor)
        self.renderer = DisplayRenderer()

        self._lock = threading.Lock()
        self._latest_frame = None
        self._latest_view = None
        self._view_seq = 0
        self._encoded_seq = 0
        self._logs = []
        self._log_lock = threading.Lock()
        self._prev_type = NORMAL

    def start(self):
        """开始监测。"""
        if self.runner.running:
            return True
        open_source = getattr(self.source, "open", None)
        if open_source is not None and not open_source():
            self._add_log("danger", "无法打开摄像头")
            return False
        self._prev_type = NORMAL
        self._add_log("info", "监测开始")
        self.runner.start()
        return True

    def stop(self):
        """停止监测，统计数据保留到下次开始。"""
        self.runner.stop()
        stats = self.monitor.stats
        self._add_log(
            "info",
            f"监测已停止，时长 {format_duration(stats.session_duration_seconds)}，"
            f"疲劳 {stats.drowsiness_events} 次，分心 {stats.distraction_events} 次",
        )

    def _on_cycle(self, sample, state, fired):
        """每个采样周期：检测状态变化、记录日志、渲染画面。"""
        if state.type != self._prev_type:
            if state.type == NORMAL:
                self._add_log("info", "驾驶员状态恢复正常")
            else:
                self._add_log("warning", f"检测到 {state_label(state.type)} (严重度 {state.severity:.0%})")
            self._prev_type = state.type

        if fired:
            overlay = self.visual_sink.current
            message = overlay["message"] if overlay else ""
            self._add_log("danger", f"⚠️ 告警: {message}")

        # 此处仍持有监测器的锁，只记录画面数据，渲染和编码由 get_frame 完成
        with self._lock:
            self._latest_view = (
                self.source.last_frame, state, self.visual_sink.current, self.source.last_landmarks,
            )
            self._view_seq += 1

    def _add_log(self, level, message):
        """添加一条系统日志。level: info / warning / danger"""
        entry = {
            "time": datetime.datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        }
        with self._log_lock:
            self._logs.append(entry)
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    def get_logs(self, since=0):
        """获取日志，since 为起始索引。"""
        with self._log_lock:
            return self._logs[since:], len(self._logs)

    def get_frame(self):
        """最新画面的 JPEG 数据，画面未变化时复用上次的编码结果。"""
        with self._lock:
            view, seq = self._latest_view, self._view_seq
            if view is None or seq == self._encoded_seq:
                return self._latest_frame

        frame, state, overlay, landmarks = view
        if frame is None:
            frame = np.zeros(_CANVAS_SHAPE, dtype=np.uint8)
        rendered = self.renderer.render(frame, state, overlay, landmarks=landmarks)
        _, jpeg = cv2.imencode(".jpg", rendered, [cv2.IMWRITE_JPEG_QUALITY, 80])

        with self._lock:
            if seq > self._encoded_seq:
                self._latest_frame = jpeg.tobytes()
                self._encoded_seq = seq
            return self._latest_frame

    def get_data(self):
        data = self.monitor.snapshot()
        if self.runner.last_error is not None:
            data["error"] = str(self.runner.last_error)
        state = data["state"]
        if state is not None:
            state["label"] = state_label(state["type"])
            state["level"] = severity_level(state["severity"])
            state["severity_percent"] = round(state["severity"] * 100)
        data["stats"]["duration_text"] = format_duration(data["stats"]["session_duration_seconds"])
        data["speech"] = self.speech_sink.snapshot()
        return data

    def update_settings(self, data):
        """热更新告警配置，不重启会话。"""
        settings = self.settings_store.update(data)
        self._add_log("info", "告警配置已更新")
        return settings


def create_system(source_name="simulated", config_path=None, camera_index=0):
    """按测量源名称和配置文件创建监测系统。"""
    store = SettingsStore(load_settings(config_path))
    if source_name == "camera":
        from sources.camera_source import CameraSource
        source = CameraSource(camera_index)
    else:
        source = SimulatedSource()
    return WebAlertSystem(source=source, settings_store=store)


# 全局监测系统实例（start.py 可替换）
system = create_system()


# ---- Flask 路由 ----

@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/start", methods=["POST"])
def api_start():
    ok = system.start()
    return jsonify({"success": ok, "message": "监测已开始" if ok else "无法打开摄像头"})


@app.route("/api/stop", methods=["POST"])
def api_stop():
    system.stop()
    return jsonify({"success": True, "message": "监测已停止"})


@app.route("/api/data")
def api_data():
    return jsonify(system.get_data())


@app.route("/api/settings", methods=["GET", "POST"])
def api_settings():
    if request.method == "POST":
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            return jsonify({"success": False, "message": "请求体必须是 JSON 对象"}), 400
        settings = system.update_settings(data)
        return jsonify({"success": True, "settings": settings.to_dict()})
    ranges = {key: {"min": low, "max": high, "step": step}
              for key, (low, high, step) in SETTING_RANGES.items()}
    return jsonify({"settings": system.settings_store.get().to_dict(), "ranges": ranges})


@app.route("/api/logs")
def api_logs():
    since = request.args.get("since", 0, type=int)
    logs, total = system.get_logs(since)
    return jsonify({"logs": logs, "total": total})


@app.route("/video_feed")
def video_feed():
    def generate():
        while True:
            frame = system.get_frame()
            if frame is not None:
                yield (b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame + b"\r\n")
            time.sleep(0.03)
    return Response(generate(), mimetype="multipart/x-mixed-replace; boundary=frame")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
