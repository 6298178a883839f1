"""Pytest configuration and fixtures for voice translator tests."""

import asyncio
import logging
from typing import List, Optional, Tuple

import numpy as np
import pytest

from voice_translator.exceptions import DeviceUnavailable
from voice_translator.models import CapturedAudio, TargetLanguage
from voice_translator.pipeline import TranslatorPipeline, TranslatorSession
from voice_translator.settings_store import MemorySettingsStore


# Configure logging for tests
logging.basicConfig(level=logging.INFO)


class FakeCapture:
    """Microphone stand-in returning a canned recording."""

    def __init__(self, audio: Optional[CapturedAudio] = None, start_error: Optional[Exception] = None):
        self.audio = audio
        self.start_error = start_error
        self.is_recording = False
        self.released = 0
        self.reacquired = 0
        self.starts = 0

    async def start(self) -> None:
        self.starts += 1
        if self.start_error:
            raise self.start_error
        self.is_recording = True

    async def stop(self) -> Optional[CapturedAudio]:
        if not self.is_recording:
            return None
        self.is_recording = False
        return self.audio

    def release(self) -> None:
        self.released += 1
        self.is_recording = False

    def reacquire(self) -> None:
        self.reacquired += 1


class FakeSpeechToText:
    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[Tuple[Optional[CapturedAudio], str]] = []

    async def transcribe(self, audio, credential):
        self.calls.append((audio, credential))
        if self.error:
            raise self.error
        if audio is None or not audio.data:
            return ""
        return self.text


class FakeTranslator:
    """Returns ``replies[instruction]``; ``gates`` lets a test hold a call open."""

    def __init__(self, replies=None, error: Optional[Exception] = None):
        self.replies = replies or {}
        self.error = error
        self.gates = {}
        self.calls: List[Tuple[str, str, str]] = []

    async def translate(self, text, instruction, credential):
        self.calls.append((text, instruction, credential))
        gate = self.gates.get(instruction)
        if gate is not None:
            await gate.wait()
        if self.error:
            raise self.error
        return self.replies.get(instruction, f"[{instruction}] {text}")


class FakeSynthesizer:
    """Plays until ``finish()``; a new ``speak()`` interrupts the current one."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.spoken: List[Tuple[str, TargetLanguage]] = []
        self.stops = 0
        self._release: Optional[asyncio.Event] = None

    @property
    def is_playing(self) -> bool:
        return self._release is not None and not self._release.is_set()

    async def speak(self, text, language):
        self.spoken.append((text, language))
        self.finish()
        if self.error:
            raise self.error
        release = asyncio.Event()
        self._release = release
        await release.wait()

    def finish(self) -> None:
        if self._release is not None:
            self._release.set()

    def stop(self) -> None:
        self.stops += 1
        self.finish()


@pytest.fixture
def speech_audio():
    """One second of a 440 Hz tone as 16-bit PCM."""
    t = np.linspace(0, 1.0, 16000, False)
    data = (np.sin(2 * np.pi * 440 * t) * 32767).astype(np.int16).tobytes()
    return CapturedAudio(data=data, sample_rate=16000)


@pytest.fixture
def store():
    return MemorySettingsStore({"credential": "VALIDKEY"})


@pytest.fixture
def capture(speech_audio):
    return FakeCapture(audio=speech_audio)


@pytest.fixture
def stt():
    return FakeSpeechToText(text="Good morning")


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def pipeline(capture, stt, translator, synthesizer, store):
    return TranslatorPipeline(
        capture=capture,
        stt=stt,
        translator=translator,
        synthesizer=synthesizer,
        store=store,
    )


@pytest.fixture
def make_session(pipeline):
    def factory(**kwargs):
        return TranslatorSession(pipeline, **kwargs)

    return factory


@pytest.fixture
def device_unavailable():
    return DeviceUnavailable("no microphone")
