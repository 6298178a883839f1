"""Google Cloud Text-to-Speech synthesis played through sounddevice."""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
import wave
from typing import Any, Callable, Dict, Optional, Tuple
from xml.sax.saxutils import escape

import aiohttp

from ..exceptions import NoTextReturned, ServiceError
from ..interfaces import SpeechSynthesizer
from ..models import TargetLanguage
from .http import post_json, require_credential

logger = logging.getLogger(__name__)

DEFAULT_TTS_URL = "https://texttospeech.googleapis.com/v1"

# locale -> (languageCode, voice name)
CLOUD_VOICES: Dict[str, Tuple[str, str]] = {
    "zh-CN": ("cmn-CN", "cmn-CN-Wavenet-B"),
    "en-US": ("en-US", "en-US-Wavenet-D"),
    "ja-JP": ("ja-JP", "ja-JP-Wavenet-B"),
}


class CloudSpeechSynthesizer(SpeechSynthesizer):
    """
    Text-to-speech using the Google Cloud ``text:synthesize`` endpoint.

    Args:
        credential_provider: Returns the current API key at call time.
        base_url: API root (default: ``https://texttospeech.googleapis.com/v1``).
        speaking_rate: Passed through as ``audioConfig.speakingRate``.
        ssml_gender: Voice gender hint.
        poll_interval: Seconds between playback completion checks.
        session: Optional shared ``aiohttp`` session.

    API format:
        POST /text:synthesize
        Header: X-goog-api-key: <credential>
        Body: {"input": {"ssml": "<speak>...</speak>"},
               "voice": {"languageCode": "cmn-CN", "name": "cmn-CN-Wavenet-B", "ssmlGender": "NEUTRAL"},
               "audioConfig": {"audioEncoding": "LINEAR16", "speakingRate": 1.0}}

        Response: {"audioContent": "<base64 WAV>"}
    """

    def __init__(
        self,
        *,
        credential_provider: Callable[[], str],
        base_url: str = DEFAULT_TTS_URL,
        speaking_rate: float = 1.0,
        ssml_gender: str = "NEUTRAL",
        poll_interval: float = 0.05,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._credential_provider = credential_provider
        self._endpoint = f"{base_url.rstrip('/')}/text:synthesize"
        self.speaking_rate = speaking_rate
        self.ssml_gender = ssml_gender
        self.poll_interval = poll_interval
        self._session = session
        self._playing = False
        self._generation = 0

    @property
    def is_playing(self) -> bool:
        return self._playing

    async def speak(self, text: str, language: TargetLanguage) -> None:
        self.stop()
        key = require_credential(self._credential_provider())

        self._generation += 1
        generation = self._generation
        self._playing = True
        try:
            response = await post_json(
                self._endpoint,
                self.build_request(text, language),
                headers={"X-goog-api-key": key},
                session=self._session,
                service="Text-to-Speech",
            )
            if generation != self._generation:
                return
            pcm, sample_rate = _decode_audio(response)
            await self._play(pcm, sample_rate, generation)
        finally:
            if generation == self._generation:
                self._playing = False

    def stop(self) -> None:
        if not self._playing:
            return
        self._generation += 1
        self._playing = False
        sd = _lazy_import_sounddevice()
        sd.stop()

    def build_request(self, text: str, language: TargetLanguage) -> Dict[str, Any]:
        language_code, voice_name = CLOUD_VOICES.get(language.locale, (language.locale, ""))
        voice: Dict[str, str] = {"languageCode": language_code, "ssmlGender": self.ssml_gender}
        if voice_name:
            voice["name"] = voice_name
        return {
            "input": {"ssml": f"<speak>{escape(text)}</speak>"},
            "voice": voice,
            "audioConfig": {
                "audioEncoding": "LINEAR16",
                "speakingRate": self.speaking_rate,
            },
        }

    async def _play(self, pcm: Any, sample_rate: int, generation: int) -> None:
        sd = _lazy_import_sounddevice()
        sd.play(pcm, samplerate=sample_rate)
        stream = sd.get_stream()
        while generation == self._generation and stream.active:
            await asyncio.sleep(self.poll_interval)


def _decode_audio(payload: Dict[str, Any]) -> Tuple[Any, int]:
    import numpy as np

    content = payload.get("audioContent")
    if not isinstance(content, str) or not content:
        raise NoTextReturned("Text-to-Speech produced no audio output.")
    try:
        audio_data = base64.b64decode(content)
    except (binascii.Error, ValueError) as exc:
        raise ServiceError("Text-to-Speech audioContent was not valid base64") from exc

    sample_rate = 24000
    if audio_data.startswith(b"RIFF"):
        with wave.open(io.BytesIO(audio_data), "rb") as wav:
            sample_rate = wav.getframerate()
            audio_data = wav.readframes(wav.getnframes())

    try:
        pcm = np.frombuffer(audio_data, dtype="<i2").astype(np.float32) / 32768.0
    except ValueError as exc:
        raise ServiceError("Text-to-Speech audio was not 16-bit PCM") from exc
    return pcm, sample_rate


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice and numpy required for audio playback. Install via pip.") from exc
    return sd
