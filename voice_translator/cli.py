"""CLI entrypoint for the voice translator."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from .config import SYNTHESIS_MODES, AppConfig
from .console import ConsoleScreen
from .interfaces import SpeechSynthesizer
from .pipeline import TranslatorPipeline, TranslatorSession
from .services.mic_recorder import SoundDeviceCapture
from .services.stt_google import GoogleSpeechToText
from .services.translate_gemini import GeminiTranslator
from .services.tts_cloud import CloudSpeechSynthesizer
from .services.tts_native import NativeSpeechSynthesizer
from .settings_store import JsonFileSettingsStore

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_pipeline(config: AppConfig) -> TranslatorPipeline:
    """Wire the pipeline with the microphone, the Google services and the configured voice."""
    store = JsonFileSettingsStore(config.settings_path)

    pipeline: TranslatorPipeline
    synthesizer: SpeechSynthesizer
    if config.synthesis == "cloud":
        synthesizer = CloudSpeechSynthesizer(
            credential_provider=lambda: pipeline.credential,
            base_url=config.tts_url,
            speaking_rate=config.speaking_rate,
        )
    else:
        synthesizer = NativeSpeechSynthesizer()

    pipeline = TranslatorPipeline(
        capture=SoundDeviceCapture(sample_rate=config.sample_rate),
        stt=GoogleSpeechToText(base_url=config.speech_url, language=config.recognition_language),
        translator=GeminiTranslator(base_url=config.genai_url, model=config.model),
        synthesizer=synthesizer,
        store=store,
        default_credential=config.api_key,
    )
    logger.info(
        "Translator ready (model=%s, synthesis=%s, settings=%s)",
        config.model,
        config.synthesis,
        store.path,
    )
    return pipeline


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record, transcribe, translate and speak.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--synthesis",
        choices=SYNTHESIS_MODES,
        help="Override VOICE_TRANSLATOR_SYNTHESIS (native/cloud).",
    )
    parser.add_argument(
        "--settings",
        help="Override VOICE_TRANSLATOR_SETTINGS_PATH.",
    )
    return parser.parse_args(argv)


async def _run(config: AppConfig) -> None:
    session = TranslatorSession(build_pipeline(config))
    screen = ConsoleScreen(session)
    try:
        await screen.run()
    finally:
        await session.drain()


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    config = AppConfig.from_env()
    if args.synthesis:
        config.synthesis = args.synthesis
    if args.settings:
        config.settings_path = args.settings
    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
