"""Core orchestration: record, transcribe, translate, speak."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Set

from .exceptions import VoiceTranslatorError
from .interfaces import AudioCapture, SettingsStore, SpeechSynthesizer, SpeechToText, Translator
from .models import PipelineState, TargetLanguage, TaskOutcome
from .settings_store import CREDENTIAL_KEY, TRANSCRIPT_KEY

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[TaskOutcome]]
Continuation = Callable[[PipelineState, TaskOutcome], "Transition"]

EMPTY_TRANSLATION_NOTICE = "Nothing to play yet. Translate the transcript first."


@dataclass
class Transition:
    """
    Result of one orchestrator step.

    Attributes:
        state: State to show immediately.
        task: Side effect to await, if any.
        on_done: Receives the state current when ``task`` completes plus its outcome.
        notice: Message for the user, if any.
    """

    state: PipelineState
    task: Optional[TaskFactory] = None
    on_done: Optional[Continuation] = None
    notice: Optional[str] = None


async def run_guarded(description: str, call: Callable[[], Awaitable[Any]]) -> TaskOutcome:
    """Await ``call`` and fold any failure into a :class:`TaskOutcome` after logging it."""
    try:
        value = await call()
    except VoiceTranslatorError as exc:
        logger.error("%s failed: %s", description, exc)
        return TaskOutcome(error=exc)
    except Exception as exc:  # pragma: no cover - defensive guard
        logger.exception("Unexpected error during %s: %s", description.lower(), exc)
        return TaskOutcome(error=exc)
    return TaskOutcome(value=value)


class TranslatorPipeline:
    """
    State machine over :class:`PipelineState`.

    Every public step takes the current state and returns a :class:`Transition`;
    nothing here holds on to screen state. Persistence of the transcript happens
    synchronously inside the step that changes it.

    Usage:
        pipeline = TranslatorPipeline(
            capture=SoundDeviceCapture(),
            stt=GoogleSpeechToText(),
            translator=GeminiTranslator(),
            synthesizer=NativeSpeechSynthesizer(),
            store=JsonFileSettingsStore("settings.json"),
        )
        state = pipeline.initial_state()
        transition = pipeline.request_translation(state, ENGLISH)
    """

    def __init__(
        self,
        *,
        capture: AudioCapture,
        stt: SpeechToText,
        translator: Translator,
        synthesizer: SpeechSynthesizer,
        store: SettingsStore,
        default_credential: Optional[str] = None,
    ) -> None:
        self._capture = capture
        self._stt = stt
        self._translator = translator
        self._synthesizer = synthesizer
        self._store = store
        self._default_credential = default_credential or ""

    @property
    def credential(self) -> str:
        """Key used by the next outbound call."""
        return self._store.get(CREDENTIAL_KEY) or self._default_credential

    def set_credential(self, value: str) -> None:
        self._store.set(CREDENTIAL_KEY, value)
        logger.info("API key updated")

    def initial_state(self) -> PipelineState:
        transcript = self._store.get(TRANSCRIPT_KEY) or ""
        if transcript:
            logger.info("Restored saved transcript (%d characters)", len(transcript))
        return PipelineState(transcript=transcript)

    # Recording and transcription

    def start_recording(self, state: PipelineState) -> Transition:
        if state.busy:
            logger.debug("Microphone busy (recording=%s, transcribing=%s)", state.recording, state.transcribing)
            return Transition(state)
        return Transition(
            state.update(recording=True),
            task=lambda: run_guarded("Recording", self._capture.start),
            on_done=self.recording_started,
        )

    def recording_started(self, state: PipelineState, outcome: TaskOutcome) -> Transition:
        if outcome.ok:
            return Transition(state)
        return Transition(state.update(recording=False))

    def stop_recording(self, state: PipelineState) -> Transition:
        if not state.recording:
            return Transition(state)
        return Transition(
            state.update(recording=False, transcribing=True),
            task=lambda: run_guarded("Transcription", self._capture_and_transcribe),
            on_done=self.transcription_finished,
        )

    async def _capture_and_transcribe(self) -> str:
        audio = await self._capture.stop()
        return await self._stt.transcribe(audio, self.credential)

    def transcription_finished(self, state: PipelineState, outcome: TaskOutcome) -> Transition:
        state = state.update(transcribing=False)
        text = outcome.value.strip() if outcome.ok and outcome.value else ""
        if not text:
            return Transition(state)
        transcript = f"{state.transcript}\n{text}" if state.transcript else text
        return self._with_transcript(state, transcript)

    def focus_lost(self, state: PipelineState) -> Transition:
        self._capture.release()
        return Transition(state.update(recording=False))

    def focus_gained(self, state: PipelineState) -> Transition:
        self._capture.reacquire()
        return Transition(state)

    # Transcript editing

    def edit_transcript(self, state: PipelineState, text: str) -> Transition:
        return self._with_transcript(state, text)

    def save_transcript(self, state: PipelineState) -> Transition:
        self._persist_transcript(state.transcript)
        return Transition(state)

    def reset(self, state: PipelineState) -> Transition:
        self._persist_transcript("")
        return Transition(PipelineState(language=state.language))

    # Translation

    def request_translation(self, state: PipelineState, language: TargetLanguage) -> Transition:
        source = state.transcript

        async def translate() -> str:
            return await self._translator.translate(source, language.instruction, self.credential)

        return Transition(
            state.update(translating=True),
            task=lambda: run_guarded(f"Translation to {language.name}", translate),
            on_done=functools.partial(self.translation_finished, language=language),
        )

    def translation_finished(
        self,
        state: PipelineState,
        outcome: TaskOutcome,
        *,
        language: TargetLanguage,
    ) -> Transition:
        state = state.update(translating=False)
        if not outcome.ok or not outcome.value:
            return Transition(state)
        logger.info("Translated to %s (%d characters)", language.locale, len(outcome.value))
        return Transition(state.update(translation=outcome.value, language=language))

    # Playback

    def request_playback(self, state: PipelineState) -> Transition:
        text, language = state.translation, state.language
        if not text.strip() or language is None:
            return Transition(state, notice=EMPTY_TRANSLATION_NOTICE)
        return Transition(
            state.update(playing=True),
            task=lambda: run_guarded("Playback", lambda: self._synthesizer.speak(text, language)),
            on_done=self.playback_finished,
        )

    def playback_finished(self, state: PipelineState, outcome: TaskOutcome) -> Transition:
        # a newer utterance may have replaced the one that just ended
        return Transition(state.update(playing=self._synthesizer.is_playing))

    def stop_playback(self, state: PipelineState) -> Transition:
        self._synthesizer.stop()
        return Transition(state.update(playing=False))

    def _with_transcript(self, state: PipelineState, transcript: str) -> Transition:
        self._persist_transcript(transcript)
        return Transition(state.update(transcript=transcript))

    def _persist_transcript(self, transcript: str) -> None:
        try:
            self._store.set(TRANSCRIPT_KEY, transcript)
        except OSError as exc:
            logger.error("Could not save transcript: %s", exc)


class TranslatorSession:
    """
    Holds the live :class:`PipelineState` and runs transitions against it.

    Each user action is computed from the current state, applied at once, and
    its task (if any) runs as an asyncio task. When the task completes, its
    continuation sees whatever state is current at that moment, so two racing
    translations resolve as last-write-wins.

    Args:
        pipeline: The orchestrator.
        on_change: Called with every newly applied state.
        notify: Called with user-facing notices.
    """

    def __init__(
        self,
        pipeline: TranslatorPipeline,
        *,
        on_change: Optional[Callable[[PipelineState], None]] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.pipeline = pipeline
        self.state = pipeline.initial_state()
        self.on_change = on_change
        self.notify = notify
        self._tasks: Set["asyncio.Task[None]"] = set()

    async def dispatch(self, transition: Transition) -> None:
        """Apply ``transition`` and follow its continuations until none is left."""
        while True:
            self._apply(transition)
            if transition.task is None:
                return
            outcome = await transition.task()
            if transition.on_done is None:
                return
            transition = transition.on_done(self.state, outcome)

    def submit(self, transition: Transition) -> "asyncio.Task[None]":
        """Run ``transition`` in the background; the state change is visible immediately."""
        self._apply(transition)
        task = asyncio.create_task(self._follow(transition))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every background task started through :meth:`submit`."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def start_recording(self) -> "asyncio.Task[None]":
        return self.submit(self.pipeline.start_recording(self.state))

    def stop_recording(self) -> "asyncio.Task[None]":
        return self.submit(self.pipeline.stop_recording(self.state))

    def translate(self, language: TargetLanguage) -> "asyncio.Task[None]":
        return self.submit(self.pipeline.request_translation(self.state, language))

    def play(self) -> "asyncio.Task[None]":
        return self.submit(self.pipeline.request_playback(self.state))

    def stop_playback(self) -> None:
        self._apply(self.pipeline.stop_playback(self.state))

    def edit_transcript(self, text: str) -> None:
        self._apply(self.pipeline.edit_transcript(self.state, text))

    def save_transcript(self) -> None:
        self._apply(self.pipeline.save_transcript(self.state))

    def reset(self) -> None:
        self._apply(self.pipeline.reset(self.state))

    def focus_lost(self) -> None:
        self._apply(self.pipeline.focus_lost(self.state))

    def focus_gained(self) -> None:
        self._apply(self.pipeline.focus_gained(self.state))

    def set_credential(self, value: str) -> None:
        self.pipeline.set_credential(value)

    async def _follow(self, transition: Transition) -> None:
        if transition.task is None:
            return
        outcome = await transition.task()
        if transition.on_done is not None:
            await self.dispatch(transition.on_done(self.state, outcome))

    def _apply(self, transition: Transition) -> None:
        changed = transition.state != self.state
        self.state = transition.state
        if changed and self.on_change is not None:
            self.on_change(self.state)
        if transition.notice:
            logger.info("Notice: %s", transition.notice)
            if self.notify is not None:
                self.notify(transition.notice)
