"""
Voice Translator package.

Records speech, transcribes it, translates the transcript with a hosted
language model and speaks the translation back. The interactive console
entrypoint is ``python -m voice_translator``.
"""

__all__ = [
    "config",
    "interfaces",
    "models",
    "pipeline",
    "settings_store",
]
