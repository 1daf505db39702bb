"""告警输出端：可视弹窗和语音播报"""

import logging
import threading
from typing import Callable, Optional

import pyttsx3

from alerts.messages import ALERT_TITLES
from models.data_models import VoiceParams

logger = logging.getLogger(__name__)


# ---- 可视输出 ----

class OverlayVisualSink:
    """保存当前弹窗内容，供网页轮询和视频帧渲染读取（线程安全）"""

    def __init__(self):
        self._lock = threading.Lock()
        self._message: Optional[str] = None
        self._alert_type: Optional[str] = None

    def show(self, message: str, alert_type: str):
        with self._lock:
            self._message = message
            self._alert_type = alert_type

    def clear(self):
        with self._lock:
            self._message = None
            self._alert_type = None

    @property
    def current(self) -> Optional[dict]:
        """当前弹窗，无弹窗时返回 None"""
        with self._lock:
            if self._message is None:
                return None
            return {
                "message": self._message,
                "type": self._alert_type,
                "title": ALERT_TITLES.get(self._alert_type, ""),
            }


class ConsoleVisualSink(OverlayVisualSink):
    """命令行版本：弹窗变化时输出到终端"""

    def show(self, message: str, alert_type: str):
        super().show(message, alert_type)
        print(f"[{ALERT_TITLES.get(alert_type, alert_type)}] {message}")

    def clear(self):
        had_message = self.current is not None
        super().clear()
        if had_message:
            print("[告警已清除]")


# ---- 语音输出 ----

def pick_preferred_voice(voices, keywords):
    """按关键字选择首选语音，找不到时返回 None（使用引擎默认语音）"""
    for voice in voices or []:
        name = getattr(voice, "name", "") or ""
        if any(keyword in name for keyword in keywords):
            return voice
    return None


class NullSpeechSink:
    """不发声的语音端"""

    def speak(self, text: str, voice: VoiceParams):
        pass

    def cancel(self):
        pass


class Pyttsx3SpeechSink:
    """使用 pyttsx3 本地引擎播报，后台线程执行，不等待播报结束。

    每次 speak/cancel 都递增代号；播报线程拿到锁后、以及引擎开始发声时
    都会核对代号，已被取代或取消的内容不会再播出。
    """

    def __init__(self, engine_factory: Optional[Callable] = None):
        self._engine_factory = engine_factory or pyttsx3.init
        self._engine = None
        self._base_rate: Optional[int] = None
        self._speak_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._generation = 0
        self._playing_generation: Optional[int] = None
        self._thread: Optional[threading.Thread] = None

    def _get_engine(self):
        """懒加载引擎，初始化失败时返回 None"""
        if self._engine is None:
            try:
                engine = self._engine_factory()
                self._base_rate = engine.getProperty("rate")
                engine.connect("started-utterance", self._on_utterance_started)
                self._engine = engine
            except Exception as e:
                logger.warning("语音引擎不可用，跳过语音告警: %s", e)
                self._engine = None
        return self._engine

    def _is_current(self, generation: int) -> bool:
        with self._state_lock:
            return generation == self._generation

    def speak(self, text: str, voice: VoiceParams):
        with self._state_lock:
            self._generation += 1
            generation = self._generation
        engine = self._get_engine()
        if engine is None:
            return
        self._thread = threading.Thread(
            target=self._speak_blocking, args=(engine, text, voice, generation), daemon=True
        )
        self._thread.start()

    def _speak_blocking(self, engine, text: str, voice: VoiceParams, generation: int):
        # 上一条被 cancel 后 runAndWait 返回，才会拿到锁
        with self._speak_lock:
            if not self._is_current(generation):
                return
            try:
                self._configure(engine, voice)
                if not self._is_current(generation):
                    return
                self._playing_generation = generation
                engine.say(text)
                engine.runAndWait()
            except Exception as e:
                logger.warning("语音播报失败: %s", e)
                self._engine = None
            finally:
                self._playing_generation = None

    def _on_utterance_started(self, name=None):
        # cancel 恰好发生在 say 与 runAndWait 之间时，stop 不会生效，在这里补上
        generation = self._playing_generation
        engine = self._engine
        if engine is not None and generation is not None and not self._is_current(generation):
            engine.stop()

    def _configure(self, engine, voice: VoiceParams):
        if self._base_rate:
            engine.setProperty("rate", int(self._base_rate * voice.rate))
        engine.setProperty("volume", voice.volume)
        # pyttsx3 不支持音高，pitch 仅用于浏览器端
        try:
            preferred = pick_preferred_voice(engine.getProperty("voices"), voice.preferred_voices)
        except Exception as e:
            logger.debug("读取语音列表失败，使用默认语音: %s", e)
            preferred = None
        if preferred is not None:
            engine.setProperty("voice", preferred.id)

    def cancel(self):
        with self._state_lock:
            self._generation += 1
        engine = self._engine
        if engine is None:
            return
        try:
            engine.stop()
        except Exception as e:
            logger.warning("停止语音失败: %s", e)


class BrowserSpeechSink:
    """把待播报内容交给网页，由浏览器 speechSynthesis 播放。

    每次 speak/cancel 都递增 seq，网页发现 seq 变化时先取消当前播报。
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = 0
        self._utterance: Optional[dict] = None

    def speak(self, text: str, voice: VoiceParams):
        with self._lock:
            self._seq += 1
            self._utterance = {
                "text": text,
                "rate": voice.rate,
                "pitch": voice.pitch,
                "volume": voice.volume,
                "preferred_voices": list(voice.preferred_voices),
            }

    def cancel(self):
        with self._lock:
            if self._utterance is None:
                return
            self._seq += 1
            self._utterance = None

    def snapshot(self) -> dict:
        with self._lock:
            return {"seq": self._seq, "utterance": self._utterance}
