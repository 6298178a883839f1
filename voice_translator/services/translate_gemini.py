"""Gemini translation client via the Generative Language REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from ..exceptions import NoTextReturned
from ..interfaces import Translator
from .http import post_json, require_credential

logger = logging.getLogger(__name__)

DEFAULT_GENAI_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash-exp"

PROMPT_TEMPLATE = (
    "You are a professional translator. Translate the following text to {language}. "
    'Only reply the best translation without other words.\n Text: "{text}"'
)


def build_prompt(text: str, instruction: str) -> str:
    """Embed the source text and target language name into the translation instruction."""
    return PROMPT_TEMPLATE.format(language=instruction, text=text)


class GeminiTranslator(Translator):
    """
    Translates text by prompting a fixed Gemini model.

    The model reply is returned exactly as produced; nothing checks that it is
    actually a translation.

    Usage:
        >>> translator = GeminiTranslator(model="gemini-2.0-flash-exp")
        >>> await translator.translate("Hello", "Japanese", credential)
        'こんにちは'
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_GENAI_URL,
        model: str = DEFAULT_MODEL,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.model = model
        self._endpoint = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._session = session

    async def translate(self, text: str, instruction: str, credential: str) -> str:
        key = require_credential(credential)
        payload = {"contents": [{"role": "user", "parts": [{"text": build_prompt(text, instruction)}]}]}

        logger.debug("Translating %d characters to %s with %s", len(text), instruction, self.model)
        response = await post_json(
            self._endpoint,
            payload,
            params={"key": key},
            session=self._session,
            service="Gemini",
        )
        return _extract_text(response)


def _extract_text(payload: Dict[str, Any]) -> str:
    """
    Concatenate the text parts of the first candidate.

    Shape:
        {"candidates": [{"content": {"role": "model", "parts": [{"text": "..."}]},
                         "finishReason": "STOP"}]}
    """
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = payload.get("promptFeedback")
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if reason:
            raise NoTextReturned(f"Gemini returned no candidates (blocked: {reason})")
        raise NoTextReturned("Gemini returned no candidates")

    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    texts = []
    if isinstance(parts, list):
        for part in parts:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                texts.append(part["text"])

    text = "".join(texts)
    if not text:
        raise NoTextReturned(f"Gemini candidate had no text (finishReason={first.get('finishReason')})")
    return text
