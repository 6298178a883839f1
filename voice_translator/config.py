"""Configuration helpers for the voice translator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .services.stt_google import DEFAULT_SPEECH_URL
from .services.translate_gemini import DEFAULT_GENAI_URL, DEFAULT_MODEL
from .services.tts_cloud import DEFAULT_TTS_URL

SYNTHESIS_MODES = ("native", "cloud")


@dataclass
class AppConfig:
    """
    Runtime configuration for the translator.

    Attributes:
        api_key: Google API key used when none has been entered in the app yet.
        settings_path: JSON file holding the saved credential and transcript.
        model: Gemini model id used for every translation.
        speech_url: Root URL of the Speech-to-Text API.
        genai_url: Root URL of the Generative Language API.
        tts_url: Root URL of the Text-to-Speech API.
        recognition_language: BCP-47 code of the language being spoken.
        sample_rate: Microphone sample rate in Hz.
        synthesis: "native" (platform voices) or "cloud" (Google Text-to-Speech).
        speaking_rate: Speaking rate for cloud synthesis.

    Usage:
        >>> config = AppConfig.from_env()
        >>> config.model
        'gemini-2.0-flash-exp'
    """

    api_key: Optional[str]
    settings_path: str
    model: str
    speech_url: str
    genai_url: str
    tts_url: str
    recognition_language: str
    sample_rate: int
    synthesis: str
    speaking_rate: float

    @classmethod
    def from_env(cls, *, load_env_file: bool = True) -> "AppConfig":
        """
        Build an :class:`AppConfig` from environment variables (and ``.env``).

        Supported variables:
            - VOICE_TRANSLATOR_API_KEY: Google API key seed.
            - VOICE_TRANSLATOR_SETTINGS_PATH: Settings file (default: ~/.voice_translator/settings.json).
            - VOICE_TRANSLATOR_MODEL: Gemini model (default: gemini-2.0-flash-exp).
            - VOICE_TRANSLATOR_SPEECH_URL: Speech-to-Text API root.
            - VOICE_TRANSLATOR_GENAI_URL: Generative Language API root.
            - VOICE_TRANSLATOR_TTS_URL: Text-to-Speech API root.
            - VOICE_TRANSLATOR_RECOGNITION_LANGUAGE: Spoken language (default: en-US).
            - VOICE_TRANSLATOR_SAMPLE_RATE: Capture rate in Hz (default: 16000).
            - VOICE_TRANSLATOR_SYNTHESIS: "native" (default) or "cloud".
            - VOICE_TRANSLATOR_SPEAKING_RATE: Cloud speaking rate (default: 1.0).
        """
        if load_env_file:
            load_dotenv()

        api_key = os.environ.get("VOICE_TRANSLATOR_API_KEY") or None
        settings_path = os.environ.get(
            "VOICE_TRANSLATOR_SETTINGS_PATH",
            os.path.join("~", ".voice_translator", "settings.json"),
        )
        model = os.environ.get("VOICE_TRANSLATOR_MODEL") or DEFAULT_MODEL
        speech_url = os.environ.get("VOICE_TRANSLATOR_SPEECH_URL", DEFAULT_SPEECH_URL).rstrip("/")
        genai_url = os.environ.get("VOICE_TRANSLATOR_GENAI_URL", DEFAULT_GENAI_URL).rstrip("/")
        tts_url = os.environ.get("VOICE_TRANSLATOR_TTS_URL", DEFAULT_TTS_URL).rstrip("/")
        recognition_language = os.environ.get("VOICE_TRANSLATOR_RECOGNITION_LANGUAGE") or "en-US"

        sample_rate_raw = os.environ.get("VOICE_TRANSLATOR_SAMPLE_RATE", "16000")
        try:
            sample_rate = int(sample_rate_raw)
        except ValueError as exc:
            raise ValueError("VOICE_TRANSLATOR_SAMPLE_RATE must be an integer") from exc

        synthesis = os.environ.get("VOICE_TRANSLATOR_SYNTHESIS", "native").lower()
        if synthesis not in SYNTHESIS_MODES:
            raise ValueError(f"VOICE_TRANSLATOR_SYNTHESIS must be one of {', '.join(SYNTHESIS_MODES)}")

        speaking_rate_raw = os.environ.get("VOICE_TRANSLATOR_SPEAKING_RATE", "1.0")
        try:
            speaking_rate = float(speaking_rate_raw)
        except ValueError as exc:
            raise ValueError("VOICE_TRANSLATOR_SPEAKING_RATE must be a number") from exc

        return cls(
            api_key=api_key,
            settings_path=settings_path,
            model=model,
            speech_url=speech_url,
            genai_url=genai_url,
            tts_url=tts_url,
            recognition_language=recognition_language,
            sample_rate=sample_rate,
            synthesis=synthesis,
            speaking_rate=speaking_rate,
        )
