"""Interactive console screen for the translator."""

from __future__ import annotations

import asyncio
import getpass
import logging
from typing import Callable, List

from .models import TARGET_LANGUAGES, PipelineState, language_for_code
from .pipeline import TranslatorSession

logger = logging.getLogger(__name__)

HELP = """Commands:
  key          enter the Google API key (hidden)
  rec          start recording; press Enter to stop and transcribe
  edit         replace the transcript (finish with an empty line)
  cn / en / jp translate the transcript
  play / stop  speak the translation / stop speaking
  save         save the transcript
  reset        clear transcript and translation
  show         redraw the screen
  quit         leave"""


class ConsoleScreen:
    """
    Text rendition of the translator screen.

    Blocking reads happen off the event loop, so translations and playback keep
    running while the prompt waits.

    Usage:
        screen = ConsoleScreen(session)
        await screen.run()
    """

    def __init__(
        self,
        session: TranslatorSession,
        *,
        read_line: Callable[[str], str] = input,
        read_secret: Callable[[str], str] = getpass.getpass,
        write: Callable[[str], None] = print,
    ) -> None:
        self.session = session
        self._read_line = read_line
        self._read_secret = read_secret
        self._write = write
        self._last_texts = (session.state.transcript, session.state.translation)

    def attach(self) -> None:
        """Route session notices and text changes to this screen."""
        self.session.on_change = self.on_change
        self.session.notify = self.notify

    async def run(self) -> None:
        self.attach()
        self.render()
        self._write(HELP)
        while True:
            try:
                line = await self._ask("> ")
            except EOFError:
                break
            command = line.strip().lower()
            if command in ("quit", "exit", "q"):
                break
            try:
                await self.handle(command)
            except Exception as exc:  # pragma: no cover - defensive guard
                logger.exception("Unexpected error handling %r: %s", command, exc)
                self._write(f"[unexpected error] {exc}")
        self.session.stop_playback()
        self.session.focus_lost()

    async def handle(self, command: str) -> None:
        session = self.session
        if not command:
            return
        if command == "help":
            self._write(HELP)
        elif command == "show":
            self.render()
        elif command == "key":
            secret = await self._ask_secret("Google API key: ")
            session.set_credential(secret.strip())
            self._write("API key saved.")
        elif command == "rec":
            await self._record()
        elif command == "edit":
            session.edit_transcript(await self._read_block())
        elif command in {language.code.lower() for language in TARGET_LANGUAGES}:
            session.translate(language_for_code(command))
        elif command == "play":
            session.play()
        elif command == "stop":
            session.stop_playback()
        elif command == "save":
            session.save_transcript()
            self._write("Transcript saved.")
        elif command == "reset":
            session.reset()
            self.render()
        else:
            self._write(f"Unknown command: {command} (type 'help')")

    def on_change(self, state: PipelineState) -> None:
        texts = (state.transcript, state.translation)
        if texts != self._last_texts:
            self._last_texts = texts
            self.render()

    def notify(self, message: str) -> None:
        self._write(f"[!] {message}")

    def render(self) -> None:
        state = self.session.state
        key_status = "set" if self.session.pipeline.credential else "not set"
        locale = state.selected_locale or "-"
        lines: List[str] = [
            "",
            "=== Voice Translator ===",
            f"API key: {key_status}",
            "Transcript:",
            _indent(state.transcript or "(your transcribed text will be shown here)"),
            f"Translation [{locale}]:",
            _indent(state.translation or "(translation will be shown here)"),
        ]
        active = [name for name, value in state.flags().items() if value]
        if active:
            lines.append("Status: " + ", ".join(active))
        self._write("\n".join(lines))

    async def _record(self) -> None:
        await self.session.start_recording()
        if not self.session.state.recording:
            self._write("Could not start recording (see log).")
            return
        try:
            await self._ask("Recording... press Enter to stop. ")
        except EOFError:
            pass
        self.session.stop_recording()
        self._write("Transcribing...")

    async def _read_block(self) -> str:
        self._write("Enter the new transcript; finish with an empty line.")
        lines: List[str] = []
        while True:
            try:
                line = await self._ask("")
            except EOFError:
                break
            if not line:
                break
            lines.append(line)
        return "\n".join(lines)

    async def _ask(self, prompt: str) -> str:
        return await asyncio.to_thread(self._read_line, prompt)

    async def _ask_secret(self, prompt: str) -> str:
        return await asyncio.to_thread(self._read_secret, prompt)


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line for line in text.splitlines() or [""])