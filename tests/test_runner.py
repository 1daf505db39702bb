"""MonitorRunner 后台线程测试"""

import time

from alerts.sinks import NullSpeechSink, OverlayVisualSink
from models.data_models import HeadPose, InvalidSampleError, Sample
from session.monitor import AlertMonitor
from session.runner import MonitorRunner
from settings.settings_editor import SettingsStore


class SteadySource:
    def read(self):
        return Sample(eye_aspect_ratio=0.3, head_pose=HeadPose(0.0, 0.0, 0.0), timestamp=0.0)


class BrokenSource:
    def read(self):
        return Sample.from_dict({"eyeAspectRatio": 0.3, "timestamp": 0})


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _runner(source):
    monitor = AlertMonitor(SettingsStore(), OverlayVisualSink(), NullSpeechSink(),
                           source=source, sample_interval_ms=10.0)
    return MonitorRunner(monitor)


class TestMonitorRunner:
    def test_processes_samples_in_background(self):
        runner = _runner(SteadySource())
        runner.start()
        try:
            assert runner.running
            assert _wait_until(lambda: runner.monitor.last_state is not None)
        finally:
            runner.stop()
        assert not runner.running
        assert not runner.monitor.active

    def test_start_twice_is_noop(self):
        runner = _runner(SteadySource())
        runner.start()
        thread = runner._thread
        runner.start()
        assert runner._thread is thread
        runner.stop()

    def test_malformed_sample_stops_session(self):
        """样本格式错误时记录异常并终止会话"""
        runner = _runner(BrokenSource())
        runner.start()
        assert _wait_until(lambda: not runner.running)
        assert isinstance(runner.last_error, InvalidSampleError)
        assert _wait_until(lambda: not runner.monitor.active)
        runner.stop()
