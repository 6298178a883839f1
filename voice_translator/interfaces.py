"""Protocol interfaces for dependency injection."""

from __future__ import annotations

from typing import Optional, Protocol

from .models import CapturedAudio, TargetLanguage


class AudioCapture(Protocol):
    """Owns the microphone for one recording session at a time."""

    @property
    def is_recording(self) -> bool:
        """True between a successful ``start()`` and the matching ``stop()``."""

    async def start(self) -> None:
        """Acquire the microphone and begin buffering audio."""

    async def stop(self) -> Optional[CapturedAudio]:
        """Finish the session and return the audio, or None when nothing was started."""

    def release(self) -> None:
        """Drop the microphone handle (application lost focus)."""

    def reacquire(self) -> None:
        """Silently acquire the microphone again (application regained focus)."""


class SpeechToText(Protocol):
    """Transcribes recorded audio into text."""

    async def transcribe(self, audio: Optional[CapturedAudio], credential: str) -> str:
        """Return the recognized text, or an empty string when nothing was recognized."""


class Translator(Protocol):
    """Translates text with a hosted language model."""

    async def translate(self, text: str, instruction: str, credential: str) -> str:
        """Return the model's reply verbatim."""


class SpeechSynthesizer(Protocol):
    """Speaks text through the platform speech output channel."""

    @property
    def is_playing(self) -> bool:
        """True while an utterance is being played."""

    async def speak(self, text: str, language: TargetLanguage) -> None:
        """Play ``text``, interrupting any current playback. Returns once playback ends."""

    def stop(self) -> None:
        """Cancel playback. Safe to call when nothing is playing."""


class SettingsStore(Protocol):
    """Durable key to string mapping."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` durably before returning."""
