"""命令行入口 ConsoleMonitor 测试"""

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

import main
from alerts.sinks import NullSpeechSink, Pyttsx3SpeechSink
from main import ConsoleMonitor
from sources.simulated_source import SimulatedSource


class TestConsoleMonitorInit:
    def test_defaults(self):
        system = ConsoleMonitor(voice=False)
        assert isinstance(system.source, SimulatedSource)
        assert system.settings_store.get().sensitivity == "medium"

    def test_config_loaded(self, tmp_path):
        cfg_file = tmp_path / "config.json"
        cfg_file.write_text(json.dumps({"sensitivity": "high", "distraction_threshold": 20}),
                            encoding="utf-8")
        system = ConsoleMonitor(config_path=str(cfg_file), voice=False)
        settings = system.settings_store.get()
        assert settings.sensitivity == "high"
        assert settings.distraction_threshold == 20.0

    def test_no_voice_disables_speech(self):
        system = ConsoleMonitor(voice=False)
        assert system.settings_store.get().voice_alerts_enabled is False
        assert isinstance(system.monitor.speech_sink, NullSpeechSink)

    def test_voice_uses_local_engine(self):
        system = ConsoleMonitor(voice=True)
        assert isinstance(system.monitor.speech_sink, Pyttsx3SpeechSink)


class TestConsoleMonitorRun:
    def test_short_run_returns_stats(self):
        system = ConsoleMonitor(voice=False)
        stats = system.run(duration=0.05)
        assert stats.session_duration_seconds == 0
        assert not system.monitor.active

    def test_camera_open_failure_exits(self):
        system = ConsoleMonitor(voice=False)
        system.source = MagicMock()
        system.source.open.return_value = False
        with pytest.raises(SystemExit):
            system.run(duration=0.01)


class TestMainCli:
    def test_prints_summary(self, capsys):
        argv = ["main.py", "--duration", "0.05", "--no-voice"]
        with patch.object(sys, "argv", argv):
            main.main()
        out = capsys.readouterr().out
        assert "会话统计" in out
        assert "时长: 0s" in out
