"""Google Cloud Speech-to-Text adapter via the REST API."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..exceptions import ServiceError
from ..interfaces import SpeechToText
from ..models import CapturedAudio
from .http import post_json, require_credential

logger = logging.getLogger(__name__)

DEFAULT_SPEECH_URL = "https://speech.googleapis.com/v1"


class GoogleSpeechToText(SpeechToText):
    """
    Speech-to-text implementation using Google Cloud ``speech:recognize``.

    Args:
        base_url: API root (default: ``https://speech.googleapis.com/v1``).
        language: BCP-47 code of the spoken language.
        enable_automatic_punctuation: Ask the service to punctuate the transcript.
        session: Optional shared ``aiohttp`` session.

    API format:
        POST /speech:recognize?key=<credential>
        Body: {"config": {"encoding": "LINEAR16", "sampleRateHertz": 16000,
                          "languageCode": "en-US", ...},
               "audio": {"content": "<base64>"}}

        Response: {"results": [{"alternatives": [{"transcript": "...", "confidence": 0.9}]}]}
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_SPEECH_URL,
        language: str = "en-US",
        enable_automatic_punctuation: bool = True,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/speech:recognize"
        self.language = language
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self._session = session

    async def transcribe(self, audio: Optional[CapturedAudio], credential: str) -> str:
        key = require_credential(credential)
        if audio is None or not audio.data:
            logger.info("No audio captured; nothing to transcribe")
            return ""

        logger.debug(
            "Transcribing %.2fs of audio (%d bytes, %d Hz, %s)",
            audio.duration,
            len(audio.data),
            audio.sample_rate,
            self.language,
        )
        response = await post_json(
            self._endpoint,
            self._build_request(audio),
            params={"key": key},
            session=self._session,
            service="Speech-to-Text",
        )
        text = _best_transcript(response)
        if not text:
            logger.info("Speech-to-Text returned no speech")
        return text

    def _build_request(self, audio: CapturedAudio) -> Dict[str, Any]:
        return {
            "config": {
                "encoding": audio.encoding,
                "sampleRateHertz": audio.sample_rate,
                "audioChannelCount": audio.channels,
                "languageCode": self.language,
                "enableAutomaticPunctuation": self.enable_automatic_punctuation,
            },
            "audio": {"content": base64.b64encode(audio.data).decode("ascii")},
        }


def _best_transcript(payload: Dict[str, Any]) -> str:
    """Join the top alternative of every result; an absent ``results`` means silence."""
    results = payload.get("results")
    if results is None:
        return ""
    if not isinstance(results, list):
        raise ServiceError("Speech-to-Text response had an unexpected 'results' field")

    pieces = []
    for result in results:
        alternatives = result.get("alternatives") if isinstance(result, dict) else None
        if not alternatives or not isinstance(alternatives[0], dict):
            continue
        transcript = alternatives[0].get("transcript")
        if isinstance(transcript, str) and transcript.strip():
            pieces.append(transcript.strip())
    return " ".join(pieces)
