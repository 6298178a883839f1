"""Shared dataclasses for the translator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple


@dataclass
class CapturedAudio:
    """
    Audio blob produced by a finished recording session.

    Attributes:
        data: Raw 16-bit little-endian PCM bytes.
        sample_rate: Sample rate in Hz (e.g., 16000).
        channels: Number of interleaved channels.
        encoding: Encoding label understood by the recognition service.
    """

    data: bytes
    sample_rate: int
    channels: int = 1
    encoding: str = "LINEAR16"

    @property
    def duration(self) -> float:
        """Length of the recording in seconds."""
        frame_bytes = 2 * self.channels
        if not self.sample_rate:
            return 0.0
        return len(self.data) / frame_bytes / self.sample_rate


@dataclass(frozen=True)
class TargetLanguage:
    """
    A language the transcript can be translated into.

    Attributes:
        name: Human readable name.
        code: Short code shown on the language buttons.
        locale: BCP-47 locale, used to pick a voice.
        instruction: Language name embedded in the translation prompt.
    """

    name: str
    code: str
    locale: str
    instruction: str


CHINESE = TargetLanguage(name="Chinese", code="CN", locale="zh-CN", instruction="Chinese")
ENGLISH = TargetLanguage(name="English", code="EN", locale="en-US", instruction="English")
JAPANESE = TargetLanguage(name="Japanese", code="JP", locale="ja-JP", instruction="Japanese")

TARGET_LANGUAGES: Tuple[TargetLanguage, ...] = (CHINESE, ENGLISH, JAPANESE)


def language_for_code(code: str) -> TargetLanguage:
    """Look up a target language by display code (``"cn"``, ``"EN"``...) or locale."""
    wanted = code.strip().lower()
    for language in TARGET_LANGUAGES:
        if wanted in (language.code.lower(), language.locale.lower()):
            return language
    raise KeyError(f"Unknown target language: {code}")


@dataclass(frozen=True)
class PipelineState:
    """
    Everything the screen shows at one instant.

    The orchestrator never mutates a state; each transition returns a new one.
    """

    transcript: str = ""
    translation: str = ""
    language: Optional[TargetLanguage] = None
    recording: bool = False
    transcribing: bool = False
    translating: bool = False
    playing: bool = False

    def update(self, **changes: Any) -> "PipelineState":
        return replace(self, **changes)

    @property
    def selected_locale(self) -> Optional[str]:
        return self.language.locale if self.language else None

    @property
    def busy(self) -> bool:
        """True while the microphone button must stay disabled."""
        return self.recording or self.transcribing

    def flags(self) -> Dict[str, bool]:
        return {
            "recording": self.recording,
            "transcribing": self.transcribing,
            "translating": self.translating,
            "playing": self.playing,
        }


@dataclass
class TaskOutcome:
    """Single completion result of an awaited side effect."""

    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
