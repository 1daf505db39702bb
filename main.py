"""驾驶员警觉度监测 - 命令行入口"""

import argparse
import logging
import sys
import time

from alerts.sinks import ConsoleVisualSink, NullSpeechSink, Pyttsx3SpeechSink
from display.renderer import format_duration
from session.monitor import AlertMonitor
from settings.settings_editor import SettingsStore, load_settings
from sources.simulated_source import SimulatedSource


class ConsoleMonitor:
    """无界面监测：告警输出到终端并用本地语音引擎播报。"""

    def __init__(self, source_name="simulated", config_path=None, voice=True, camera_index=0):
        self.settings_store = SettingsStore(load_settings(config_path))
        if not voice:
            self.settings_store.update({"voice_alerts_enabled": False})
        self.source = self._create_source(source_name, camera_index)
        self.monitor = AlertMonitor(
            self.settings_store,
            ConsoleVisualSink(),
            Pyttsx3SpeechSink() if voice else NullSpeechSink(),
            source=self.source,
        )

    @staticmethod
    def _create_source(source_name, camera_index):
        if source_name == "camera":
            from sources.camera_source import CameraSource
            return CameraSource(camera_index)
        return SimulatedSource()

    def run(self, duration=None):
        """运行监测直到时长用完或 Ctrl+C，返回会话统计。"""
        open_source = getattr(self.source, "open", None)
        if open_source is not None and not open_source():
            print("无法打开摄像头")
            sys.exit(1)

        self.monitor.start()
        deadline = None if duration is None else time.monotonic() + duration
        try:
            while deadline is None or time.monotonic() < deadline:
                self.monitor.pump()
                time.sleep(0.005)
        except KeyboardInterrupt:
            print("\n收到中断，停止监测")
        finally:
            stats = self.monitor.stop()
            self.source.close()
        return stats


def main():
    parser = argparse.ArgumentParser(description="驾驶员警觉度监测")
    parser.add_argument(
        "--source",
        choices=["simulated", "camera"],
        default="simulated",
        help="测量源: simulated(模拟), camera(摄像头)",
    )
    parser.add_argument("--camera-index", type=int, default=0, help="摄像头编号")
    parser.add_argument("--config", type=str, default=None, help="JSON 告警配置文件路径")
    parser.add_argument("--duration", type=float, default=None, help="监测时长（秒），缺省为一直运行")
    parser.add_argument("--no-voice", action="store_true", help="关闭语音告警")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    system = ConsoleMonitor(
        source_name=args.source,
        config_path=args.config,
        voice=not args.no_voice,
        camera_index=args.camera_index,
    )
    stats = system.run(duration=args.duration)

    print("===== 会话统计 =====")
    print(f"时长: {format_duration(stats.session_duration_seconds)}")
    print(f"疲劳事件: {stats.drowsiness_events}")
    print(f"分心事件: {stats.distraction_events}")
    print(f"最近告警: {stats.last_alert_message or '-'}")


if __name__ == "__main__":
    main()
