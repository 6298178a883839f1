"""Platform voice synthesis through pyttsx3."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ..exceptions import VoiceTranslatorError
from ..interfaces import SpeechSynthesizer
from ..models import TargetLanguage

logger = logging.getLogger(__name__)

_CONTROL_CHARS = "".join(chr(i) for i in range(32))


@dataclass
class _Playback:
    cancelled: bool = False
    started: bool = False
    utterance_done: bool = False
    finished: asyncio.Event = field(default_factory=asyncio.Event)


class NativeSpeechSynthesizer(SpeechSynthesizer):
    """
    Speaks with the operating system's voices (SAPI5, NSSpeechSynthesizer, eSpeak).

    The pyttsx3 loop is driven from the event loop with ``startLoop(False)`` and
    ``iterate()``, so playback never blocks other tasks.

    Args:
        rate: Optional speaking rate in words per minute.
        poll_interval: Seconds between engine iterations.
        engine_factory: Callable returning a pyttsx3 engine; defaults to ``pyttsx3.init``.
    """

    def __init__(
        self,
        *,
        rate: Optional[int] = None,
        poll_interval: float = 0.05,
        engine_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.rate = rate
        self.poll_interval = poll_interval
        self._engine_factory = engine_factory or _default_engine
        self._engine: Any = None
        self._playback: Optional[_Playback] = None

    @property
    def is_playing(self) -> bool:
        return self._playback is not None and not self._playback.finished.is_set()

    async def speak(self, text: str, language: TargetLanguage) -> None:
        playback = _Playback()
        previous, self._playback = self._playback, playback
        if previous is not None and not previous.finished.is_set():
            logger.debug("Interrupting current playback")
            self._interrupt(previous)
            await previous.finished.wait()
        if playback.cancelled:
            # replaced or stopped while the previous utterance was winding down
            playback.finished.set()
            return
        try:
            await self._say(playback, text, language)
        finally:
            playback.finished.set()

        if playback.cancelled:
            logger.info("Playback stopped")
        else:
            logger.info("Playback finished")

    async def _say(self, playback: _Playback, text: str, language: TargetLanguage) -> None:
        engine = self._get_engine()
        voice_id = match_voice(engine.getProperty("voices") or [], language.locale)
        if voice_id:
            engine.setProperty("voice", voice_id)
        else:
            logger.info("No %s voice installed; using the default voice", language.locale)

        def on_finished(name: Any = None, completed: bool = True) -> None:
            playback.utterance_done = True

        token = engine.connect("finished-utterance", on_finished)
        try:
            playback.started = True
            engine.say(text)
            engine.startLoop(False)
            try:
                while not playback.utterance_done and not playback.cancelled:
                    engine.iterate()
                    await asyncio.sleep(self.poll_interval)
            finally:
                engine.endLoop()
        except RuntimeError as exc:
            raise VoiceTranslatorError(f"Speech engine failed: {exc}") from exc
        finally:
            engine.disconnect(token)

    def stop(self) -> None:
        playback = self._playback
        if playback is not None:
            self._interrupt(playback)

    def _interrupt(self, playback: _Playback) -> None:
        if playback.cancelled or playback.finished.is_set():
            return
        playback.cancelled = True
        if playback.started and self._engine is not None:
            self._engine.stop()

    def _get_engine(self) -> Any:
        if self._engine is None:
            self._engine = self._engine_factory()
            if self.rate:
                self._engine.setProperty("rate", self.rate)
        return self._engine


def match_voice(voices: Iterable[Any], locale: str) -> Optional[str]:
    """
    Pick the voice id best matching ``locale``.

    A voice advertising the full locale (``ja-JP``) wins over one advertising only
    the primary language (``ja``). Returns None when nothing matches.
    """
    wanted = _normalize(locale)
    primary = wanted.split("-")[0]
    fallback: Optional[str] = None

    for voice in voices:
        tags = [_normalize(lang) for lang in getattr(voice, "languages", None) or []]
        voice_id = str(getattr(voice, "id", ""))
        if wanted in tags or wanted in _normalize(voice_id):
            return voice_id
        if fallback is None and any(tag.split("-")[0] == primary for tag in tags if tag):
            fallback = voice_id
    return fallback


def _normalize(tag: Any) -> str:
    if isinstance(tag, bytes):
        # eSpeak prefixes each language with a priority byte
        tag = tag.decode("latin-1").lstrip(_CONTROL_CHARS)
    return str(tag).strip().lower().replace("_", "-")


def _default_engine() -> Any:
    try:
        import pyttsx3  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("pyttsx3 is required for native speech synthesis. Install via pip.") from exc
    return pyttsx3.init()
