"""Durable key/value settings used for the credential and the saved transcript."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from .interfaces import SettingsStore

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "credential"
TRANSCRIPT_KEY = "savedTranscript"


class JsonFileSettingsStore(SettingsStore):
    """
    Stores string values in a single JSON object on disk.

    The file is read once when the store is created and rewritten atomically
    on every ``set()``, so a crash never leaves a half-written settings file.

    Usage:
        >>> store = JsonFileSettingsStore("~/.voice_translator/settings.json")
        >>> store.set("savedTranscript", "Hello")
        >>> store.get("savedTranscript")
        'Hello'
    """

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = Path(path).expanduser()
        self._values: Dict[str, str] = self._load()

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._write()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            logger.debug("No settings file at %s yet", self.path)
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected a JSON object", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class MemorySettingsStore(SettingsStore):
    """In-process store; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
